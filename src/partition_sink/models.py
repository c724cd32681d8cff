"""
Pydantic data models for the partition sink.

Records are immutable once created; validation happens at construction so a
malformed record never reaches a buffer.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, StrictInt, ValidationError, field_validator

from .errors import InvalidRecordError

KEY_ATTRIBUTE = "key"
PARTITION_ATTRIBUTE = "partition"


class OutboundMessage(BaseModel):
    """A record as it is delivered to the destination topic."""

    model_config = ConfigDict(frozen=True)

    data: bytes
    attributes: Dict[str, str]


class Record(BaseModel):
    """Keyed payload read from one source partition."""

    model_config = ConfigDict(frozen=True)

    partition: StrictInt
    key: Optional[str] = None
    payload: bytes

    def __init__(self, **data: Any):
        try:
            super().__init__(**data)
        except ValidationError as e:
            raise InvalidRecordError(str(e)) from e

    @field_validator("partition")
    def _non_negative(cls, v):
        if v < 0:
            raise ValueError(f"partition must be >= 0, got {v}")
        return v

    @field_validator("key", mode="before")
    def _stringify_key(cls, v):
        if v is None or isinstance(v, str):
            return v
        return str(v)

    @field_validator("payload", mode="before")
    def _bytes_only(cls, v):
        # str would be silently encoded by pydantic; only raw bytes are accepted
        if not isinstance(v, (bytes, bytearray, memoryview)):
            raise ValueError(f"payload must be bytes, got {type(v).__name__}")
        return bytes(v)

    def to_message(self) -> OutboundMessage:
        attributes = {}
        if self.key is not None:
            attributes[KEY_ATTRIBUTE] = self.key
        attributes[PARTITION_ATTRIBUTE] = str(self.partition)
        return OutboundMessage(data=self.payload, attributes=attributes)


def make_record(partition: int, payload: Any, key: Any = None) -> Record:
    """Build a Record; raises InvalidRecordError on malformed input."""
    return Record(partition=partition, key=key, payload=payload)
