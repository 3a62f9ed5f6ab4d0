"""Row and index helpers used by realtime and table subscriptions."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from .subscription import TableRequest


@dataclass
class Indexes:
    """Index values that select rows by one key column.

    Only one of int32, int64 and strings is meant to be filled.
    """

    key: str = ""
    int32: list[int] = field(default_factory=list)
    int64: list[int] = field(default_factory=list)
    strings: list[str] = field(default_factory=list)


def unique_subscription_ids(ids: Iterable[int]) -> list[int]:
    """Return the positive IDs, without duplicates, in ascending order."""
    return sorted({point_id for point_id in ids if point_id > 0})


def table_subscription_indexes(req: TableRequest) -> Indexes:
    """Build the indexes of a table subscription from its first filled value list."""
    indexes = Indexes(key=req.key)
    if req.int32:
        indexes.int32 = list(req.int32)
    elif req.int64:
        indexes.int64 = list(req.int64)
    elif req.strings:
        indexes.strings = list(req.strings)
    return indexes


def clone_row(row: Mapping[str, Any]) -> dict[str, Any]:
    """Return a shallow copy of a row."""
    return dict(row)