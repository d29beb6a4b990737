"""
Exception classes for ZooKeeper collection failures.

Each exception marks the scope it is caught in:
- ConnectError: the whole cluster is unreachable this scrape (emits up=1)
- PathError: one ZooKeeper lookup failed (list-children or get-data)
- DecodeError: a destination cursor payload could not be parsed
- ConfigError: the cluster file could not be loaded at startup

Per project patterns:
- Inherit from Exception for base exception type
- Store context data in attributes for error handling
- Include descriptive message with relevant details
"""


class ConnectError(Exception):
    """
    Raised when a session to a ZooKeeper endpoint cannot be established.

    Attributes:
        endpoint: The ZooKeeper connection string that was attempted
        reason: Why the connection failed
    """

    def __init__(self, endpoint: str, reason: str) -> None:
        self.endpoint = endpoint
        self.reason = reason
        super().__init__(f"Cannot connect to ZooKeeper {endpoint}: {reason}")


class PathError(Exception):
    """
    Raised when a single ZooKeeper path lookup fails.

    Covers missing nodes, per-request timeouts and lost connections.
    Localized to one path: callers decide whether it ends the cluster
    scan (destinations root) or only one sample.

    Attributes:
        path: The ZooKeeper path that was read
        reason: Why the lookup failed
    """

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"ZooKeeper lookup failed for {path}: {reason}")


class DecodeError(Exception):
    """
    Raised when a Canal cursor payload is not a valid position record.

    Attributes:
        reason: What was wrong with the payload
    """

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Invalid cursor payload: {reason}")


class ConfigError(Exception):
    """
    Raised when the cluster configuration file cannot be loaded.

    Attributes:
        source: Path of the configuration file
        reason: Why loading failed
    """

    def __init__(self, source: str, reason: str) -> None:
        self.source = source
        self.reason = reason
        super().__init__(f"Cannot load cluster config {source}: {reason}")
