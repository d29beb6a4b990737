"""Shared fixtures: an in-memory ZooKeeper tree and Canal tree builders."""

import json
from contextlib import asynccontextmanager

import pytest

from canalzk_exporter.exceptions import ConnectError, PathError
from canalzk_exporter.scanner import DestinationScanner
from canalzk_exporter.types import ClusterDescriptor
from canalzk_exporter.zk_client import join_path

# Fixed clock for lag assertions (ms since epoch)
NOW_MS = 1_700_000_060_000.0


class FakeSession:
    """Session over a FakeZooKeeper tree."""

    def __init__(self, zk: "FakeZooKeeper", endpoint: str) -> None:
        self.zk = zk
        self.endpoint = endpoint
        self.closed = False
        self.reads: list[str] = []

    async def children(self, path: str) -> list[str]:
        self.reads.append(path)
        if path in self.zk.failing or path not in self.zk.nodes:
            raise PathError(path, "NoNodeError")
        prefix = path.rstrip("/") + "/"
        return sorted(
            {p[len(prefix):].split("/")[0] for p in self.zk.nodes if p.startswith(prefix)}
        )

    async def get(self, path: str) -> bytes:
        self.reads.append(path)
        if path in self.zk.failing or path not in self.zk.nodes:
            raise PathError(path, "NoNodeError")
        return self.zk.nodes[path]

    async def close(self) -> None:
        self.closed = True


class FakeZooKeeper:
    """
    In-memory ZooKeeper tree shared by all endpoints.

    Attributes:
        nodes: Path -> data for every existing node.
        failing: Paths whose reads raise PathError even if they exist.
        unreachable: Endpoints whose connect raises ConnectError.
        sessions: Every session opened, for close assertions.
    """

    def __init__(self) -> None:
        self.nodes: dict[str, bytes] = {"/": b""}
        self.failing: set[str] = set()
        self.unreachable: set[str] = set()
        self.sessions: list[FakeSession] = []

    def add(self, path: str, data: bytes = b"") -> None:
        parts = path.strip("/").split("/")
        for i in range(1, len(parts)):
            self.nodes.setdefault("/" + "/".join(parts[:i]), b"")
        self.nodes[path] = data

    def add_destination(
        self,
        root: str,
        name: str,
        members: int = 1,
        running: bool = True,
        cursor: bytes | None = None,
    ) -> str:
        """Create a Canal destination subtree and return its path."""
        base = join_path(root, "otter/canal/destinations", name)
        self.add(join_path(base, "cluster"))
        for i in range(members):
            self.add(join_path(base, "cluster", f"10.0.0.{i + 1}:11111"))
        if running:
            self.add(join_path(base, "running"), b'{"active":true,"address":"10.0.0.1:11111"}')
        if cursor is not None:
            self.add(join_path(base, "1001/cursor"), cursor)
        return base

    @asynccontextmanager
    async def connect(self, endpoint: str, timeout: float):
        if endpoint in self.unreachable:
            raise ConnectError(endpoint, "Connection time-out")
        session = FakeSession(self, endpoint)
        self.sessions.append(session)
        try:
            yield session
        finally:
            await session.close()


def cursor_payload(timestamp: float, key: str = "postion") -> bytes:
    """Canal LogPosition JSON with the given position timestamp."""
    return json.dumps(
        {
            "@type": "com.alibaba.otter.canal.protocol.position.LogPosition",
            "identity": {
                "slaveId": -1,
                "sourceAddress": {"address": "mysql-1", "port": 3306},
            },
            key: {
                "gtid": "",
                "included": False,
                "journalName": "mysql-bin.000042",
                "position": 1024,
                "serverId": 1,
                "timestamp": timestamp,
            },
        }
    ).encode()


@pytest.fixture
def fake_zk():
    """Empty in-memory ZooKeeper."""
    return FakeZooKeeper()


@pytest.fixture
def scanner(fake_zk):
    """DestinationScanner wired to the fake tree and a fixed clock."""
    return DestinationScanner(timeout=1.0, connect=fake_zk.connect, clock=lambda: NOW_MS)


@pytest.fixture
def shard1():
    """Cluster descriptor with no chroot and inst2 excluded."""
    return ClusterDescriptor(name="shard1", endpoint="zk1:2181", root="", exclude={"inst2"})
