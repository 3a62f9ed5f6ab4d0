"""Helpers for native writes: grouping, chunking, timestamps and echo codes."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, Sequence, TypeVar

from .errors import ErrorKind, OpError, validation
from .model import PointType, Sample

T = TypeVar("T")

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_INT32_MIN = -(1 << 31)
_INT32_MAX = (1 << 31) - 1


@dataclass
class ArchiveWriteBlock:
    """The samples of one point and type, written together."""

    id: int
    type: PointType
    samples: list[Sample] = field(default_factory=list)


def archive_write_blocks(samples: Iterable[Sample]) -> list[ArchiveWriteBlock]:
    """Group samples by (ID, type), blocks in order of first appearance."""
    blocks: dict[tuple[int, PointType], ArchiveWriteBlock] = {}
    for sample in samples:
        key = (sample.id, sample.type)
        block = blocks.get(key)
        if block is None:
            block = blocks[key] = ArchiveWriteBlock(id=sample.id, type=sample.type)
        block.samples.append(sample)
    return list(blocks.values())


def chunked(values: Sequence[T], size: int) -> list[list[T]]:
    """Split values into chunks of at most size; size <= 0 means one chunk."""
    values = list(values)
    if not values:
        return []
    if size <= 0 or size >= len(values):
        return [values]
    return [values[start:start + size] for start in range(0, len(values), size)]


def time_unix32(op: str, tm: datetime) -> int:
    """Return tm as whole Unix seconds, raising if it does not fit in int32.

    Naive datetimes are taken to be UTC.
    """
    if tm.tzinfo is None:
        tm = tm.replace(tzinfo=timezone.utc)
    delta = tm - _EPOCH
    unix = delta.days * 86400 + delta.seconds
    if unix < _INT32_MIN or unix > _INT32_MAX:
        raise validation(op, "timestamp is outside native protocol int32 range")
    return unix


def same_base_table(table: str, want: str) -> bool:
    """True if the last dotted part of table equals want, ignoring case."""
    return table.split(".")[-1].casefold() == want.casefold()


def decode_native_write_echo(code: int, op: str) -> None:
    """Raise a server error if the one-byte write echo is not zero."""
    if code != 0:
        raise OpError(ErrorKind.SERVER, op, "native write failed", code=code)