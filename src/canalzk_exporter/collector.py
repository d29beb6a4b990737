"""
Collector - fans one scrape out over all configured clusters.

Each cluster is scanned by its own asyncio task; collect() returns only
after every task has settled. Tasks share nothing except the SampleSink,
and all of them run on the same event loop, so each emit() is atomic.
An unexpected exception in one task is logged and never cancels the
others (asyncio.gather with return_exceptions=True).
"""

import asyncio
import logging
import time
from collections.abc import Sequence

from canalzk_exporter.scanner import DestinationScanner
from canalzk_exporter.types import ClusterDescriptor, Sample

logger = logging.getLogger(__name__)


class SampleSink:
    """Append-only sample buffer for a single scrape."""

    def __init__(self) -> None:
        self._samples: list[Sample] = []

    def emit(self, sample: Sample) -> None:
        self._samples.append(sample)

    @property
    def samples(self) -> list[Sample]:
        return list(self._samples)


class Collector:
    """
    Runs one DestinationScanner pass per cluster, concurrently.

    Stateless between scrapes: every call to collect() starts from an
    empty sink and opens fresh ZooKeeper sessions.

    Example:
        collector = Collector(DestinationScanner(timeout=5.0))
        samples = await collector.collect(cluster_config.clusters())
    """

    def __init__(self, scanner: DestinationScanner) -> None:
        self.scanner = scanner

    async def collect(self, clusters: Sequence[ClusterDescriptor]) -> list[Sample]:
        """
        Scan all clusters and return the merged samples.

        Args:
            clusters: Cluster descriptors resolved for this scrape.

        Returns:
            Samples from every cluster, in no particular order.
        """
        sink = SampleSink()
        started = time.monotonic()

        results = await asyncio.gather(
            *(self.scanner.scan(cluster, sink.emit) for cluster in clusters),
            return_exceptions=True,
        )
        for cluster, result in zip(clusters, results):
            if isinstance(result, BaseException):
                logger.error(f"Scan of cluster {cluster.name} failed: {result!r}")

        samples = sink.samples
        logger.info(
            f"Scrape complete: {len(clusters)} clusters, {len(samples)} samples "
            f"in {time.monotonic() - started:.3f}s"
        )
        return samples


def create_collector(zk_timeout: float) -> Collector:
    """
    Build a Collector backed by real ZooKeeper sessions.

    Args:
        zk_timeout: Seconds allowed for connecting and for each read.
    """
    return Collector(DestinationScanner(timeout=zk_timeout))
