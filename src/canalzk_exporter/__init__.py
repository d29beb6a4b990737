"""
Prometheus exporter for Canal destinations registered in ZooKeeper.

On every scrape the exporter connects to each configured ZooKeeper
cluster, walks <root>/otter/canal/destinations and publishes per
destination:

- canal_zk_cluster: Canal servers registered for the destination
- canal_zk_running: 0 if the running node is readable, 1 otherwise
- canal_zk_timestamp: replication lag in ms from the binlog cursor
- canal_zk_up: 1 for clusters that could not be reached
"""

__version__ = "0.1.0"

from canalzk_exporter.collector import Collector, SampleSink, create_collector
from canalzk_exporter.config import ClusterConfig, Settings
from canalzk_exporter.cursor import CursorRecord, decode_cursor
from canalzk_exporter.exceptions import (
    ConfigError,
    ConnectError,
    DecodeError,
    PathError,
)
from canalzk_exporter.metrics import SnapshotCollector, render
from canalzk_exporter.scanner import DestinationScanner
from canalzk_exporter.types import ClusterDescriptor, MetricKind, Sample
from canalzk_exporter.zk_client import ZkSession, connect

__all__ = [
    "__version__",
    # Collection
    "Collector",
    "DestinationScanner",
    "SampleSink",
    "create_collector",
    # ZooKeeper
    "ZkSession",
    "connect",
    # Cursor
    "CursorRecord",
    "decode_cursor",
    # Exposition
    "SnapshotCollector",
    "render",
    # Config
    "ClusterConfig",
    "Settings",
    # Types
    "ClusterDescriptor",
    "MetricKind",
    "Sample",
    # Errors
    "ConfigError",
    "ConnectError",
    "DecodeError",
    "PathError",
]
