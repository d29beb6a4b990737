"""
ZooKeeper session adapter for reading the Canal coordination tree.

This module wraps kazoo's KazooClient behind a small read-only session:
- connect(): async context manager, raises ConnectError, always closes
- ZkSession.children(): child node names of a path
- ZkSession.get(): raw data of a node

Kazoo is thread based. Each session owns a single worker thread that runs
its blocking calls, waiting on kazoo's async result with the configured
timeout. Sessions never share the event loop's default executor, so one
slow ensemble cannot queue another cluster's calls behind it.
"""

import asyncio
import functools
import logging
from collections.abc import AsyncIterator, Callable
from concurrent.futures import ThreadPoolExecutor
from contextlib import asynccontextmanager
from typing import Any

from kazoo.client import KazooClient
from kazoo.exceptions import KazooException
from kazoo.handlers.threading import KazooTimeoutError

from canalzk_exporter.exceptions import ConnectError, PathError

logger = logging.getLogger(__name__)

# Errors kazoo raises for a failed request: ZooKeeper errors (NoNodeError,
# ConnectionLoss, ...) and the handler's wait timeout.
KAZOO_ERRORS = (KazooException, KazooTimeoutError)


def join_path(*parts: str) -> str:
    """
    Join ZooKeeper path segments into one absolute path.

    Empty segments and duplicate slashes are dropped, so an empty or "/"
    chroot joins the same as no chroot.

    Example:
        join_path("/canal", "otter/canal/destinations", "example")
        # -> "/canal/otter/canal/destinations/example"
    """
    segments = (segment.strip("/") for segment in parts)
    return "/" + "/".join(s for s in segments if s)


class ZkSession:
    """
    Read-only session on one ZooKeeper ensemble.

    Obtain one through connect(); the context manager closes it. close()
    is idempotent and safe on a client that never finished starting.

    Attributes:
        endpoint: Connection string the session was opened with.
        timeout: Seconds each request may take before it fails.
    """

    def __init__(
        self,
        client: KazooClient,
        endpoint: str,
        timeout: float,
        executor: ThreadPoolExecutor,
    ) -> None:
        self._client = client
        self._executor = executor
        self.endpoint = endpoint
        self.timeout = timeout
        self._closed = False

    async def children(self, path: str) -> list[str]:
        """
        List child node names of `path`.

        Raises:
            PathError: If the node is missing or the request fails/times out.
        """
        return await self._request(path, self._client.get_children_async)

    async def get(self, path: str) -> bytes:
        """
        Read the data stored at `path`.

        Raises:
            PathError: If the node is missing or the request fails/times out.
        """
        data, _stat = await self._request(path, self._client.get_async)
        return data

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self.run(self._shutdown)

    async def run(self, func: Callable[..., Any], *args: Any) -> Any:
        """Run a blocking kazoo call on this session's worker thread."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, functools.partial(func, *args))

    async def _request(self, path: str, operation: Callable[[str], Any]) -> Any:
        def wait() -> Any:
            return operation(path).get(timeout=self.timeout)

        try:
            return await self.run(wait)
        except KAZOO_ERRORS as e:
            raise PathError(path, str(e) or type(e).__name__) from e

    def _shutdown(self) -> None:
        try:
            self._client.stop()
            self._client.close()
        except KAZOO_ERRORS as e:
            # Session is discarded either way
            logger.warning(f"Error closing ZooKeeper session {self.endpoint}: {e!r}")


@asynccontextmanager
async def connect(
    endpoint: str,
    timeout: float,
    client_factory: Callable[..., KazooClient] = KazooClient,
) -> AsyncIterator[ZkSession]:
    """
    Open a session to a ZooKeeper endpoint.

    Args:
        endpoint: Connection string, e.g. "zk1:2181,zk2:2181".
        timeout: Seconds allowed for connecting and for each request.
        client_factory: KazooClient constructor (injectable for tests).

    Yields:
        A connected ZkSession, closed on every exit path.

    Raises:
        ConnectError: If the client cannot be created or does not connect
            within `timeout`.

    Example:
        async with connect("localhost:2181", timeout=5.0) as session:
            names = await session.children("/otter/canal/destinations")
    """
    try:
        client = client_factory(hosts=endpoint, timeout=timeout)
    except ValueError as e:
        raise ConnectError(endpoint, str(e)) from e

    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="zk-session")
    session = ZkSession(client, endpoint, timeout, executor)
    try:
        try:
            await session.run(client.start, timeout)
        except KAZOO_ERRORS as e:
            raise ConnectError(endpoint, str(e) or type(e).__name__) from e
        yield session
    finally:
        try:
            await session.close()
        finally:
            executor.shutdown(wait=False)
