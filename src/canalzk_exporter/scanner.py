"""
DestinationScanner - per-cluster walk of the Canal ZooKeeper tree.

For one ClusterDescriptor the scanner:
1. Connects; on ConnectError emits up=1 (cluster, endpoint) and stops
2. Lists <root>/otter/canal/destinations; on PathError logs and stops
3. For every destination not in the cluster's exclude set emits:
   - cluster: child count of <destination>/cluster (0 if unreadable)
   - running: 0 if <destination>/running is readable, 1 otherwise
   - timestamp: now_ms - cursor timestamp from <destination>/1001/cursor
     (skipped when the cursor cannot be read or decoded)

The three per-destination facts are independent: a failed read only
affects its own sample. No retries; the next scrape reads again.

Polarity note: `up` is only emitted on failure, and `running` is 0 when
healthy. Existing Canal dashboards alert on exactly these values.
"""

import logging
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from typing import Protocol

from canalzk_exporter.cursor import decode_cursor, now_ms
from canalzk_exporter.exceptions import ConnectError, DecodeError, PathError
from canalzk_exporter.types import ClusterDescriptor, MetricKind, Sample
from canalzk_exporter.zk_client import connect as zk_connect, join_path

logger = logging.getLogger(__name__)

DESTINATIONS_PATH = "otter/canal/destinations"
CLUSTER_NODE = "cluster"
RUNNING_NODE = "running"
CURSOR_NODE = "1001/cursor"


class Session(Protocol):
    """Read operations the scanner needs from a ZooKeeper session."""

    async def children(self, path: str) -> list[str]: ...

    async def get(self, path: str) -> bytes: ...


Connector = Callable[[str, float], AbstractAsyncContextManager[Session]]
Emit = Callable[[Sample], None]


def destinations_path(root: str) -> str:
    """Path listing Canal destinations under a cluster root."""
    return join_path(root, DESTINATIONS_PATH)


@dataclass
class DestinationScanner:
    """
    Converts one cluster descriptor into metric samples.

    Attributes:
        timeout: Seconds allowed for connecting and for each ZooKeeper read.
        connect: Session factory, zk_client.connect by default.
        clock: Returns the current time in ms; sampled once per cursor.

    Example:
        scanner = DestinationScanner(timeout=5.0)
        samples: list[Sample] = []
        await scanner.scan(cluster, samples.append)
    """

    timeout: float = 5.0
    connect: Connector = zk_connect
    clock: Callable[[], float] = now_ms

    async def scan(self, cluster: ClusterDescriptor, emit: Emit) -> None:
        """
        Scan one cluster, passing every sample to `emit`.

        Never raises for ZooKeeper or payload failures; they become an
        `up` sample, sentinel values, skipped samples or log lines.
        """
        try:
            async with self.connect(cluster.endpoint, self.timeout) as session:
                await self._scan_session(cluster, session, emit)
        except ConnectError as e:
            logger.error(f"Cluster {cluster.name}: {e}")
            emit(Sample(MetricKind.UP, cluster.name, cluster.endpoint, 1.0))

    async def _scan_session(
        self, cluster: ClusterDescriptor, session: Session, emit: Emit
    ) -> None:
        root = destinations_path(cluster.root)
        try:
            destinations = await session.children(root)
        except PathError as e:
            logger.error(f"Cluster {cluster.name}: cannot list destinations: {e}")
            return

        for destination in destinations:
            if destination in cluster.exclude:
                logger.debug(f"Cluster {cluster.name}: skipping excluded {destination}")
                continue
            base = join_path(root, destination)
            await self._emit_cluster(cluster, session, destination, base, emit)
            await self._emit_running(cluster, session, destination, base, emit)
            await self._emit_lag(cluster, session, destination, base, emit)

    async def _emit_cluster(
        self,
        cluster: ClusterDescriptor,
        session: Session,
        destination: str,
        base: str,
        emit: Emit,
    ) -> None:
        try:
            members = await session.children(join_path(base, CLUSTER_NODE))
        except PathError as e:
            logger.warning(f"Cluster {cluster.name}/{destination}: {e}")
            count = 0
        else:
            count = len(members)
        emit(Sample(MetricKind.CLUSTER, cluster.name, destination, float(count)))

    async def _emit_running(
        self,
        cluster: ClusterDescriptor,
        session: Session,
        destination: str,
        base: str,
        emit: Emit,
    ) -> None:
        # 0: running node readable, 1: missing or unreadable
        running = 0
        try:
            await session.get(join_path(base, RUNNING_NODE))
        except PathError as e:
            logger.warning(f"Cluster {cluster.name}/{destination}: {e}")
            running = 1
        emit(Sample(MetricKind.RUNNING, cluster.name, destination, float(running)))

    async def _emit_lag(
        self,
        cluster: ClusterDescriptor,
        session: Session,
        destination: str,
        base: str,
        emit: Emit,
    ) -> None:
        try:
            payload = await session.get(join_path(base, CURSOR_NODE))
        except PathError as e:
            logger.warning(f"Cluster {cluster.name}/{destination}: {e}")
            return
        try:
            record = decode_cursor(payload)
        except DecodeError as e:
            logger.warning(f"Cluster {cluster.name}/{destination}: {e}")
            return
        lag = record.lag_ms(self.clock())
        emit(Sample(MetricKind.TIMESTAMP, cluster.name, destination, lag))
