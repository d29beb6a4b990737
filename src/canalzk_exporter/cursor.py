"""
Canal cursor payload types and decoder.

Canal stores each destination's binlog position at
`<destination>/1001/cursor` as JSON:

    {
        "@type": "com.alibaba.otter.canal.protocol.position.LogPosition",
        "identity": {
            "slaveId": -1,
            "sourceAddress": {"address": "mysql-1", "port": 3306}
        },
        "postion": {
            "gtid": "",
            "included": false,
            "journalName": "mysql-bin.000042",
            "position": 1024,
            "serverId": 1,
            "timestamp": 1700000000000
        }
    }

Note the misspelled "postion" key: it is what Canal writes. "position"
is accepted too. Only `postion.timestamp` is required; it drives the lag
metric.
"""

import time
from typing import Annotated, Any, TypeVar

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidatorFunctionWrapHandler,
    WrapValidator,
)

from canalzk_exporter.exceptions import DecodeError

T = TypeVar("T")


def _none_if_invalid(value: Any, handler: ValidatorFunctionWrapHandler) -> Any:
    try:
        return handler(value)
    except ValidationError:
        return None


# Informational field: null or mistyped values decode as None instead of
# failing the whole cursor.
Lenient = Annotated[T | None, WrapValidator(_none_if_invalid)]


class SourceAddress(BaseModel):
    """MySQL server the destination is reading binlog from."""

    address: Lenient[str] = None
    port: Lenient[int] = None


class CursorIdentity(BaseModel):
    """Replication client identity recorded with the position."""

    model_config = ConfigDict(populate_by_name=True)

    slave_id: Lenient[int] = Field(default=None, alias="slaveId")
    source_address: Lenient[SourceAddress] = Field(default=None, alias="sourceAddress")


class CursorPosition(BaseModel):
    """
    Binlog position of the last acknowledged event.

    timestamp is the event time in milliseconds since the epoch and the
    only field validated strictly.
    """

    model_config = ConfigDict(populate_by_name=True)

    timestamp: float
    position: Lenient[int] = None
    journal_name: Lenient[str] = Field(default=None, alias="journalName")
    server_id: Lenient[int | str] = Field(default=None, alias="serverId")
    included: Lenient[bool] = None
    gtid: Lenient[str] = None


class CursorRecord(BaseModel):
    """Decoded Canal cursor (LogPosition)."""

    model_config = ConfigDict(populate_by_name=True)

    type: Lenient[str] = Field(default=None, alias="@type")
    identity: Lenient[CursorIdentity] = None
    position: CursorPosition = Field(
        validation_alias=AliasChoices("postion", "position"),
    )

    @property
    def timestamp(self) -> float:
        return self.position.timestamp

    def lag_ms(self, now: float) -> float:
        """Milliseconds between `now` (ms since epoch) and the position timestamp."""
        return now - self.position.timestamp


def now_ms() -> float:
    """Current wall-clock time in milliseconds since the epoch."""
    return time.time() * 1000


def decode_cursor(payload: bytes) -> CursorRecord:
    """
    Parse a raw cursor node payload.

    Args:
        payload: Bytes read from `<destination>/1001/cursor`.

    Returns:
        CursorRecord with at least the position timestamp.

    Raises:
        DecodeError: On invalid JSON or a missing/mistyped position.
    """
    if not payload:
        raise DecodeError("empty payload")
    try:
        return CursorRecord.model_validate_json(payload)
    except ValueError as e:
        # pydantic.ValidationError is a ValueError; so is a bad UTF-8 payload
        raise DecodeError(" ".join(str(e).split())) from e
