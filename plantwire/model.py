"""Core data model: point types, samples, points and validators."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum, IntFlag
from typing import Any, Iterable

from .errors import validation


class PointType(IntEnum):
    """Value type of a point."""

    UNKNOWN = -1
    AX = 0
    DX = 1
    I2 = 2
    I4 = 3
    R8 = 4
    I8 = 5
    TX = 6
    BN = 7


class PointSource(IntEnum):
    """Where a point's values come from."""

    DAS = 0
    CALC = 1


class AlarmCode(IntFlag):
    """Alarm limit flags of an analog point."""

    NONE = 0
    LL = 1
    HL = 2
    ZL = 4
    ZH = 8
    L3 = 16
    H3 = 32
    L4 = 64
    H4 = 128
    LIMIT_MASK = 255


class AlarmPriority(IntEnum):
    """Alarm priority level."""

    UNSET = 0
    RED = 1
    YELLOW = 2
    WHITE = 3
    GREEN = 4


class DeadbandType(IntEnum):
    """How a deadband value is interpreted."""

    PCT = 0
    ENG = 1


class PointCompression(IntEnum):
    """Archive compression method of a point."""

    DEADBAND = 0
    LINEAR = 1
    NONE = 2


@dataclass
class AlarmLimits:
    """The eight analog alarm limits."""

    ll: float = 0.0
    hl: float = 0.0
    zl: float = 0.0
    zh: float = 0.0
    l3: float = 0.0
    h3: float = 0.0
    l4: float = 0.0
    h4: float = 0.0


@dataclass
class TimeRange:
    """A closed time interval."""

    begin: datetime | None = None
    end: datetime | None = None

    def validate(self) -> None:
        """Raise a validation error unless both ends are set and ordered."""
        if self.begin is None or self.end is None:
            raise validation("model.TimeRange.validate", "time range requires begin and end")
        if self.end < self.begin:
            raise validation("model.TimeRange.validate", "time range end is before begin")


@dataclass
class Sample:
    """One timed value of a point."""

    id: int = 0
    gn: str = ""
    type: PointType = PointType.UNKNOWN
    format: int = 0
    time: datetime | None = None
    status: int = 0
    value: Any = None


@dataclass
class Point:
    """A point's identity as known to the server."""

    id: int = 0
    gn: str = ""
    name: str = ""
    type: PointType = PointType.UNKNOWN


@dataclass
class PointConfig:
    """The configuration of a point as stored in the Point table."""

    id: int = 0
    node_id: int = 0
    gn: str = ""
    source: PointSource = PointSource.DAS
    type: PointType = PointType.AX
    name: str = ""
    description: str = ""
    alarm_code: AlarmCode = AlarmCode.NONE
    alarm_level: AlarmPriority = AlarmPriority.UNSET
    archived: bool = False
    unit: str = ""
    format: int = 0
    range_lower: float = 0.0
    range_upper: float = 0.0
    limits: AlarmLimits = field(default_factory=AlarmLimits)
    deadband: float = 0.0
    deadband_type: DeadbandType = DeadbandType.PCT
    compression: PointCompression = PointCompression.DEADBAND
    calc_type: int = 0
    calc_order: int = 0
    scale_factor: float = 0.0
    offset: float = 0.0
    expression: str = ""


_DB_PATTERN = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_GN_PART_PATTERN = re.compile(r"[^\s.'\"\\;]+")
_INTERVAL_PATTERN = re.compile(r"[1-9][0-9]*(ms|s|m|h|d)")


def validate_database(db: str) -> str:
    """Return db if it is a valid database name, else raise."""
    if not isinstance(db, str) or not _DB_PATTERN.fullmatch(db):
        raise validation("model.validate_database", f"invalid database name: {db!r}")
    return db


def validate_gn(gn: str) -> str:
    """Return gn if it is a valid global point name, else raise."""
    if not isinstance(gn, str) or not gn:
        raise validation("model.validate_gn", "GN is required")
    parts = gn.split(".")
    if len(parts) < 2 or not _DB_PATTERN.fullmatch(parts[0]):
        raise validation("model.validate_gn", f"invalid GN: {gn!r}")
    if not all(_GN_PART_PATTERN.fullmatch(part) for part in parts[1:]):
        raise validation("model.validate_gn", f"invalid GN: {gn!r}")
    return gn


def gn_database(gn: str) -> str:
    """Return the database part of a global point name."""
    return gn.split(".", 1)[0]


def validate_point_selector(ids: Iterable[int] | None, gns: Iterable[str] | None) -> None:
    """Raise unless the selector names at least one valid ID or GN."""
    ids = list(ids or ())
    gns = list(gns or ())
    if not ids and not gns:
        raise validation(
            "model.validate_point_selector", "at least one point ID or GN is required"
        )
    for point_id in ids:
        if point_id <= 0:
            raise validation(
                "model.validate_point_selector", f"point ID must be positive: {point_id}"
            )
    for gn in gns:
        validate_gn(gn)


def validate_interval(interval: str) -> str:
    """Return interval if it is a valid, non-empty span such as '2s'."""
    if not isinstance(interval, str) or not _INTERVAL_PATTERN.fullmatch(interval):
        raise validation("model.validate_interval", f"invalid interval: {interval!r}")
    return interval