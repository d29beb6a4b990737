"""
Configuration for the Canal ZooKeeper exporter.

Two sources:
- Settings: runtime options from CANALZK_* environment variables
  (CLI options override them)
- ClusterConfig: the INI cluster file, one section per ZooKeeper cluster

Example cluster file:

    [DEFAULT]
    chroot =

    [shard1]
    zk = zk1:2181,zk2:2181,zk3:2181
    filter = example

    [shard2]
    zk = zk4:2181
    chroot = /canal

Keys in [DEFAULT] are inherited by every section.
"""

import configparser
import logging
from pathlib import Path

from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings

from canalzk_exporter.exceptions import ConfigError
from canalzk_exporter.types import ClusterDescriptor

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """
    Exporter runtime configuration.

    All settings can be overridden via environment variables with
    CANALZK_ prefix. For example:
        CANALZK_CONFIG_FILE=/etc/canalzk/canal.ini
        CANALZK_ZK_TIMEOUT=2.5
    """

    # Cluster file
    config_file: Path = Path("canal.ini")

    # HTTP listener
    listen_host: str = "0.0.0.0"
    listen_port: int = 9311
    metrics_path: str = "/metrics"

    # Seconds per ZooKeeper connect and per read
    zk_timeout: float = 5.0

    # Seconds a metrics request may take before it is answered with 503
    web_timeout: float = 60.0

    # Logging; no file means stderr
    log_file: Path | None = Path("canalzk.log")
    log_level: str = "INFO"

    # Metric name prefix: <namespace>_zk_<metric>
    namespace: str = "canal"

    model_config = {"env_prefix": "CANALZK_"}

    @field_validator("log_file", mode="before")
    @classmethod
    def empty_log_file(cls, v: object) -> object:
        return None if v == "" else v


class ClusterConfig:
    """
    Cluster sections of the exporter INI file.

    The file is read once; clusters() maps sections to descriptors on
    every call, so each scrape resolves its own immutable list.

    Example:
        config = ClusterConfig.load(Path("canal.ini"))
        for cluster in config.clusters():
            print(cluster.name, cluster.endpoint)
    """

    def __init__(self, parser: configparser.ConfigParser, source: str = "<string>") -> None:
        self._parser = parser
        self.source = source

    @classmethod
    def load(cls, path: Path) -> "ClusterConfig":
        """
        Read the cluster file.

        Raises:
            ConfigError: If the file is unreadable or not valid INI.
        """
        parser = _new_parser()
        try:
            with path.open(encoding="utf-8") as fh:
                parser.read_file(fh)
        except (OSError, configparser.Error) as e:
            raise ConfigError(str(path), str(e)) from e
        return cls(parser, str(path))

    @classmethod
    def from_string(cls, text: str) -> "ClusterConfig":
        parser = _new_parser()
        try:
            parser.read_string(text)
        except configparser.Error as e:
            raise ConfigError("<string>", str(e)) from e
        return cls(parser)

    def clusters(self) -> list[ClusterDescriptor]:
        """
        Map every section to a ClusterDescriptor.

        Invalid sections (e.g. missing `zk`) are logged and skipped.
        """
        clusters = []
        for section in self._parser.sections():
            values = dict(self._parser.items(section))
            try:
                clusters.append(ClusterDescriptor.model_validate({**values, "name": section}))
            except ValidationError as e:
                logger.error(f"Skipping cluster section [{section}] in {self.source}: {e}")
        return clusters


def _new_parser() -> configparser.ConfigParser:
    # Chroot paths and filters are taken literally
    return configparser.ConfigParser(interpolation=None)
