"""Tests for cluster file parsing and runtime settings."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from canalzk_exporter.config import ClusterConfig, Settings
from canalzk_exporter.exceptions import ConfigError
from canalzk_exporter.types import ClusterDescriptor

CANAL_INI = """
[DEFAULT]
chroot =

[shard1]
zk = zk1:2181,zk2:2181
filter = example, test ,

[shard2]
zk = zk3:2181
chroot = /canal

[broken]
chroot = /nowhere
"""


class TestClusterConfig:
    def test_sections_become_clusters(self):
        clusters = ClusterConfig.from_string(CANAL_INI).clusters()

        assert clusters == [
            ClusterDescriptor(
                name="shard1",
                endpoint="zk1:2181,zk2:2181",
                root="",
                exclude=frozenset({"example", "test"}),
            ),
            ClusterDescriptor(name="shard2", endpoint="zk3:2181", root="/canal"),
        ]

    def test_section_without_zk_is_skipped(self, caplog):
        clusters = ClusterConfig.from_string(CANAL_INI).clusters()

        assert "broken" not in {c.name for c in clusters}
        assert "Skipping cluster section [broken]" in caplog.text

    def test_default_section_values_are_inherited(self):
        config = ClusterConfig.from_string("[DEFAULT]\nzk = shared:2181\n\n[a]\n\n[b]\nzk = own:2181\n")

        endpoints = {c.name: c.endpoint for c in config.clusters()}

        assert endpoints == {"a": "shared:2181", "b": "own:2181"}

    def test_load_from_file(self, tmp_path):
        path = tmp_path / "canal.ini"
        path.write_text(CANAL_INI, encoding="utf-8")

        config = ClusterConfig.load(path)

        assert config.source == str(path)
        assert [c.name for c in config.clusters()] == ["shard1", "shard2"]

    def test_missing_file_raises_config_error(self, tmp_path):
        with pytest.raises(ConfigError) as exc_info:
            ClusterConfig.load(tmp_path / "missing.ini")

        assert exc_info.value.source.endswith("missing.ini")

    def test_malformed_file_raises_config_error(self):
        with pytest.raises(ConfigError):
            ClusterConfig.from_string("zk = no section header\n")

    def test_descriptors_are_immutable(self):
        cluster = ClusterConfig.from_string(CANAL_INI).clusters()[0]

        with pytest.raises(ValidationError):
            cluster.endpoint = "other:2181"


class TestSettings:
    def test_defaults(self, monkeypatch):
        for var in ("CANALZK_CONFIG_FILE", "CANALZK_LISTEN_PORT", "CANALZK_ZK_TIMEOUT", "CANALZK_WEB_TIMEOUT"):
            monkeypatch.delenv(var, raising=False)

        settings = Settings()

        assert settings.config_file == Path("canal.ini")
        assert settings.listen_port == 9311
        assert settings.zk_timeout == 5.0
        assert settings.web_timeout == 60.0
        assert settings.namespace == "canal"
        assert settings.metrics_path == "/metrics"

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("CANALZK_ZK_TIMEOUT", "2.5")
        monkeypatch.setenv("CANALZK_LISTEN_PORT", "9400")

        settings = Settings()

        assert settings.zk_timeout == 2.5
        assert settings.listen_port == 9400

    def test_empty_log_file_means_stderr(self, monkeypatch):
        monkeypatch.setenv("CANALZK_LOG_FILE", "")

        assert Settings().log_file is None
