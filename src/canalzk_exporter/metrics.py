"""Prometheus exposition for one scrape's samples."""

from collections.abc import Iterable, Iterator

from prometheus_client import CollectorRegistry, generate_latest
from prometheus_client.metrics_core import GaugeMetricFamily, InfoMetricFamily, Metric

from canalzk_exporter import __version__
from canalzk_exporter.types import MetricKind, Sample

DEFAULT_NAMESPACE = "canal"
SUBSYSTEM = "zk"

# Text exposition format 0.0.4, independent of the prometheus_client default
CONTENT_TYPE = "text/plain; version=0.0.4; charset=utf-8"

METRIC_HELP = {
    MetricKind.UP: "Whether the ZooKeeper cluster was unreachable this scrape (1)",
    MetricKind.CLUSTER: "Number of Canal servers registered for the destination",
    MetricKind.RUNNING: "Destination running node readable (0) or missing/unreadable (1)",
    MetricKind.TIMESTAMP: "Milliseconds since the destination cursor position timestamp",
}


def metric_name(namespace: str, kind: MetricKind) -> str:
    """Fully-qualified metric name, e.g. canal_zk_running."""
    return "_".join(part for part in (namespace, SUBSYSTEM, kind.value) if part)


class SnapshotCollector:
    """
    prometheus_client custom collector over a fixed list of samples.

    Every family is yielded even when it has no samples, so HELP/TYPE
    lines are stable across scrapes.
    """

    def __init__(self, samples: Iterable[Sample], namespace: str = DEFAULT_NAMESPACE) -> None:
        self.samples = list(samples)
        self.namespace = namespace

    def collect(self) -> Iterator[Metric]:
        families = {
            kind: GaugeMetricFamily(
                metric_name(self.namespace, kind),
                METRIC_HELP[kind],
                labels=list(kind.label_names),
            )
            for kind in MetricKind
        }
        for sample in self.samples:
            families[sample.kind].add_metric(list(sample.labels.values()), sample.value)
        yield from families.values()

        yield InfoMetricFamily(
            "canalzk_exporter_build",
            "Canal ZooKeeper exporter build information",
            value={"version": __version__},
        )


def render(samples: Iterable[Sample], namespace: str = DEFAULT_NAMESPACE) -> bytes:
    """Render samples in the Prometheus text exposition format."""
    registry = CollectorRegistry()
    registry.register(SnapshotCollector(samples, namespace))
    return generate_latest(registry)
