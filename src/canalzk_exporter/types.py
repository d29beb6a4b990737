"""
Shared data types for the exporter.

Sample and MetricKind are internal types and use @dataclass / Enum.
Pydantic models are reserved for validated input: ClusterDescriptor is
built from the INI cluster file, the cursor models (see cursor.py) from
ZooKeeper payloads.
"""

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class MetricKind(str, Enum):
    """
    The four metric families published per scrape.

    UP: 1 when the ZooKeeper cluster is unreachable (absent when reachable)
    CLUSTER: number of Canal servers registered for a destination
    RUNNING: 0 when the destination running node is readable, 1 otherwise
    TIMESTAMP: replication lag in milliseconds from the destination cursor
    """

    UP = "up"
    CLUSTER = "cluster"
    RUNNING = "running"
    TIMESTAMP = "timestamp"

    @property
    def label_names(self) -> tuple[str, str]:
        """Label names for this family; `up` is keyed by endpoint."""
        if self is MetricKind.UP:
            return ("cluster", "endpoint")
        return ("cluster", "destination")


@dataclass(frozen=True)
class Sample:
    """
    One metric value produced during a scrape.

    Attributes:
        kind: Metric family this sample belongs to.
        cluster: Name of the cluster (INI section) it was collected from.
        target: Destination name, or the ZooKeeper endpoint for `up`.
        value: Numeric gauge value.
    """

    kind: MetricKind
    cluster: str
    target: str
    value: float

    @property
    def labels(self) -> dict[str, str]:
        return dict(zip(self.kind.label_names, (self.cluster, self.target)))


class ClusterDescriptor(BaseModel):
    """
    One monitored ZooKeeper deployment.

    Field aliases match the keys of an INI cluster section:

        [shard1]
        zk = zk1:2181,zk2:2181
        chroot = /canal
        filter = example,test

    The section name becomes `name`.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(min_length=1)
    endpoint: str = Field(alias="zk", min_length=1)
    root: str = Field(default="", alias="chroot")
    exclude: frozenset[str] = Field(default_factory=frozenset, alias="filter")

    @field_validator("endpoint", "root", mode="before")
    @classmethod
    def strip_value(cls, v: object) -> object:
        return v.strip() if isinstance(v, str) else v

    @field_validator("exclude", mode="before")
    @classmethod
    def split_filter(cls, v: object) -> object:
        """Accept the comma-separated INI form as well as any iterable."""
        if isinstance(v, str):
            return frozenset(item.strip() for item in v.split(",") if item.strip())
        return v
