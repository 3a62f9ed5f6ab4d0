"""System metrics: catalog, SQL reads of their realtime and archived values."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Iterable, Mapping

from .errors import unsupported, validation
from .model import (
    PointType,
    Sample,
    TimeRange,
    validate_database,
    validate_interval,
)
from .sqltext import literal_string, qualified_table, quote_identifier

_SAMPLE_COLUMNS = ("ID", "GN", "TM", "DS", "AV", "RT", "FM")
_MODE_SPAN = "span"


class Metric(str, Enum):
    """A built-in system metric of the database server."""

    CACHE_QUEUE = "CACHEQ"
    CALC_TIME = "CALCTIME"
    COUNTER = "COUNTER"
    DATABASE_LOAD = "DBLOAD"
    DATABASE_MEMORY = "DBMEM"
    DATABASE_MEMORY_PC = "DBMEMPRE"
    EVENT_QUEUE = "EVENT"
    IDLE_THREADS = "IDLE"
    LOAD = "LOAD"
    MEMORY_FREE = "MEMFREE"
    MEMORY_FREE_PC = "MEMFREEPRE"
    MEMORY_TOTAL = "MEMTOTAL"
    PING = "PING"
    RATE = "RATE"
    SESSION = "SESSION"
    SESSION_PEAK = "SESSIONPEAK"
    THREADS = "THREAD"
    UPTIME = "UPTIME"
    USED_DISK = "USEDDISK"
    USED_DISK_PC = "USEDDISKPRE"
    VOLUME_FREE = "VOLFREE"
    VOLUME_FREE_PC = "VOLFREEPRE"
    VOLUME_TOTAL = "VOLTOTAL"

    def gn(self, db: str) -> str:
        """Return the global point name of this metric in database db."""
        return f"{db}.SYS.{self.value}"

    def validate(self) -> None:
        """Raise a validation error unless the metric is in the catalog."""
        if self not in _SPECS:
            raise validation(
                "system.Metric.validate", f"unsupported system metric: {self.value}"
            )


@dataclass(frozen=True)
class MetricInfo:
    """Catalog entry of a metric, with its formula for one database."""

    metric: Metric
    name: str
    description: str
    unit: str
    formula: str


@dataclass(frozen=True)
class _MetricSpec:
    metric: Metric
    name: str
    description: str
    unit: str
    formula: Callable[[str], str]

    def info(self, db: str) -> MetricInfo:
        return MetricInfo(self.metric, self.name, self.description, self.unit, self.formula(db))


def _fixed(text: str) -> Callable[[str], str]:
    return lambda db: text


def _per_db(template: str) -> Callable[[str], str]:
    return lambda db: template.replace("{{db}}", db)


_CATALOG: tuple[_MetricSpec, ...] = (
    _MetricSpec(Metric.CACHE_QUEUE, "archive_cache_queue", "Archive cache queue length.", "",
                _per_db('return op.cacheq("{{db}}")')),
    _MetricSpec(Metric.CALC_TIME, "calc_time", "Periodic calculation duration in milliseconds.",
                "ms", _fixed("return op.calc_time()")),
    _MetricSpec(Metric.COUNTER, "counter", "Database counter value.", "",
                _fixed("return op.counter()")),
    _MetricSpec(Metric.DATABASE_LOAD, "database_load", "Instant database load.", "%",
                _fixed("return op.dbload()")),
    _MetricSpec(Metric.DATABASE_MEMORY, "database_memory", "Database memory usage.", "MB",
                _fixed("return op.dbmem()")),
    _MetricSpec(Metric.DATABASE_MEMORY_PC, "database_memory_percent",
                "Database memory usage percent.", "%",
                _per_db('return op.value("{{db}}.SYS.DBMEM") / op.value("{{db}}.SYS.MEMTOTAL") * 100')),
    _MetricSpec(Metric.EVENT_QUEUE, "event_queue", "Realtime event queue length.", "",
                _fixed("return op.event()")),
    _MetricSpec(Metric.IDLE_THREADS, "idle_threads", "Idle thread count.", "",
                _fixed("return op.idle()")),
    _MetricSpec(Metric.LOAD, "system_load", "System load percent.", "%",
                _fixed("return op.load()")),
    _MetricSpec(Metric.MEMORY_FREE, "memory_free", "Free system memory.", "MB",
                _fixed("return op.memfree()")),
    _MetricSpec(Metric.MEMORY_FREE_PC, "memory_free_percent", "Free system memory percent.", "%",
                _per_db('return op.value("{{db}}.SYS.MEMFREE") / op.value("{{db}}.SYS.MEMTOTAL") * 100')),
    _MetricSpec(Metric.MEMORY_TOTAL, "memory_total", "Total system memory.", "MB",
                _fixed("return op.memtotal()")),
    _MetricSpec(Metric.PING, "ping", "Ping status for a configured address.", "",
                _fixed('return op.ping("127.0.0.1")')),
    _MetricSpec(Metric.RATE, "event_rate", "Average event change rate over five seconds.", "",
                _per_db('return op.rate("{{db}}.SYS.EVENT", 5)')),
    _MetricSpec(Metric.SESSION, "session", "Active session count.", "",
                _fixed("return op.session()")),
    _MetricSpec(Metric.SESSION_PEAK, "session_peak", "Peak session count.", "",
                _fixed("return op.session_peak()")),
    _MetricSpec(Metric.THREADS, "threads", "Thread count.", "",
                _fixed("return op.thread()")),
    _MetricSpec(Metric.UPTIME, "uptime", "Database uptime in days.", "day",
                _fixed("return op.uptime()")),
    _MetricSpec(Metric.USED_DISK, "used_disk", "Used database disk space.", "MB",
                _per_db('return op.value("{{db}}.SYS.VOLTOTAL") - op.value("{{db}}.SYS.VOLFREE")')),
    _MetricSpec(Metric.USED_DISK_PC, "used_disk_percent", "Used database disk space percent.", "%",
                _per_db('return (op.value("{{db}}.SYS.VOLTOTAL") - op.value("{{db}}.SYS.VOLFREE")) '
                        '/ op.value("{{db}}.SYS.VOLTOTAL") * 100')),
    _MetricSpec(Metric.VOLUME_FREE, "volume_free", "Free database disk space.", "MB",
                _fixed("return op.volfree()")),
    _MetricSpec(Metric.VOLUME_FREE_PC, "volume_free_percent", "Free database disk space percent.",
                "%", _per_db('return op.value("{{db}}.SYS.VOLFREE") / op.value("{{db}}.SYS.VOLTOTAL") * 100')),
    _MetricSpec(Metric.VOLUME_TOTAL, "volume_total", "Total database disk space.", "MB",
                _fixed("return op.voltotal()")),
)

_SPECS: dict[Metric, _MetricSpec] = {spec.metric: spec for spec in _CATALOG}


def _as_metric(value: Any) -> Metric | None:
    try:
        return Metric(value)
    except ValueError:
        return None


def default_trend_metrics() -> list[Metric]:
    """Return the metrics worth trending by default."""
    return [
        Metric.SESSION,
        Metric.SESSION_PEAK,
        Metric.RATE,
        Metric.CACHE_QUEUE,
        Metric.LOAD,
        Metric.CALC_TIME,
    ]


def metrics() -> list[Metric]:
    """Return every catalog metric, in catalog order."""
    return [spec.metric for spec in _CATALOG]


def catalog(db: str) -> list[MetricInfo]:
    """Return the catalog with formulas for database db."""
    validate_database(db)
    return [spec.info(db) for spec in _CATALOG]


def lookup_metric(metric: Metric | str, db: str) -> MetricInfo | None:
    """Return the catalog entry of metric for db, or None if either is invalid."""
    try:
        validate_database(db)
    except Exception:
        return None
    known = _as_metric(metric)
    if known is None or known not in _SPECS:
        return None
    return _SPECS[known].info(db)


def metric_from_gn(gn: str) -> Metric | None:
    """Return the metric named by a system GN such as 'W3.SYS.LOAD', or None."""
    parts = gn.split(".SYS.")
    if len(parts) != 2 or not parts[0]:
        return None
    metric = _as_metric(parts[1])
    if metric is None or metric not in _SPECS:
        return None
    return metric


def _validate_metrics(values: Iterable[Metric | str], op: str) -> list[Metric]:
    values = list(values)
    if not values:
        raise validation(op, "at least one system metric is required")
    out = []
    for value in values:
        metric = _as_metric(value)
        if metric is None:
            raise validation("system.Metric.validate", f"unsupported system metric: {value}")
        metric.validate()
        out.append(metric)
    return out


@dataclass
class Query:
    """A read of the current values of some metrics."""

    db: str = ""
    metrics: list[Metric] = field(default_factory=list)

    def validate(self) -> None:
        """Raise a validation error unless db and metrics are valid."""
        validate_database(self.db)
        _validate_metrics(self.metrics, "system.Query.validate")


@dataclass
class HistoryQuery:
    """A read of archived metric values at a fixed interval."""

    db: str = ""
    metrics: list[Metric] = field(default_factory=list)
    range: TimeRange = field(default_factory=TimeRange)
    interval: str = ""
    limit: int = 0

    def validate(self) -> None:
        """Raise a validation error unless every field is valid."""
        validate_database(self.db)
        _validate_metrics(self.metrics, "system.HistoryQuery.validate")
        self.range.validate()
        validate_interval(self.interval)
        if self.limit < 0:
            raise validation("system.HistoryQuery.validate", "limit cannot be negative")


@dataclass
class MetricSample:
    """A sample together with the metric its GN names, if any."""

    metric: Metric | None
    sample: Sample


class Service:
    """Reads system metrics through an SQL queryer.

    The queryer has query(sql) returning an iterable of row mappings, or
    an object whose rows attribute is one.
    """

    def __init__(self, queryer: Any = None, *, closed: BaseException | None = None) -> None:
        self.queryer = queryer
        self._closed = closed

    def read_sql(self, q: Query) -> list[MetricSample]:
        """Return the current values of the queried metrics."""
        return self._run(q, build_read_sql, "system.Service.read_sql")

    def history_sql(self, q: HistoryQuery) -> list[MetricSample]:
        """Return archived values of the queried metrics."""
        return self._run(q, build_history_sql, "system.Service.history_sql")

    def _run(self, q: Any, build: Callable[[Any], str], op: str) -> list[MetricSample]:
        if self._closed is not None:
            raise self._closed
        q.validate()
        if self.queryer is None:
            raise unsupported(op, "SQL queryer is not configured")
        result = self.queryer.query(build(q))
        rows = getattr(result, "rows", result) or []
        return [_metric_sample(row) for row in rows]


def _metric_sample(row: Mapping[str, Any]) -> MetricSample:
    sample = sample_from_row(row)
    return MetricSample(metric=metric_from_gn(sample.gn), sample=sample)


def _columns() -> str:
    return ",".join(quote_identifier(column) for column in _SAMPLE_COLUMNS)


def _metric_scope_sql(db: str, values: Iterable[Metric | str]) -> str:
    items = ",".join(literal_string(Metric(value).gn(db)) for value in values)
    return f'"GN" IN ({items})'


def build_read_sql(q: Query) -> str:
    """Return the SQL reading the current values of q's metrics."""
    table = qualified_table(q.db, "Realtime")
    return (
        f"SELECT {_columns()} FROM {table} WHERE {_metric_scope_sql(q.db, q.metrics)}"
        ' ORDER BY "GN" ASC'
    )


def build_history_sql(q: HistoryQuery) -> str:
    """Return the SQL reading span-mode archived values of q's metrics."""
    table = qualified_table(q.db, "Archive")
    conditions = [
        _metric_scope_sql(q.db, q.metrics),
        f'"TM" BETWEEN {time_literal(q.range.begin)} AND {time_literal(q.range.end)}',
        f'"MODE" = {literal_string(_MODE_SPAN)}',
        f'"INTERVAL" = {literal_string(q.interval)}',
    ]
    limit = f" LIMIT {q.limit}" if q.limit > 0 else ""
    return (
        f"SELECT {_columns()} FROM {table} WHERE {' AND '.join(conditions)}"
        f' ORDER BY "TM" ASC,"GN" ASC{limit}'
    )


def time_literal(tm: datetime) -> str:
    """Return tm as an SQL string literal, with milliseconds only when non-zero."""
    millis = tm.microsecond // 1000
    text = tm.strftime("%Y-%m-%d %H:%M:%S")
    if millis:
        text += f".{millis:03d}"
    return literal_string(text)


def _to_int(raw: Any) -> int:
    if isinstance(raw, (bool, int)):
        return int(raw)
    if isinstance(raw, float):
        return int(raw)
    return 0


def _to_str(raw: Any) -> str:
    if isinstance(raw, str):
        return raw
    if isinstance(raw, (bytes, bytearray)):
        return bytes(raw).decode("utf-8", errors="replace")
    return ""


def _to_time(raw: Any) -> datetime | None:
    if isinstance(raw, datetime):
        return raw
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        return datetime.fromtimestamp(raw, tz=timezone.utc)
    return None


def _value(raw: Any) -> tuple[Any, PointType]:
    if isinstance(raw, bool):
        return raw, PointType.DX
    if isinstance(raw, int):
        return raw, PointType.I8
    if isinstance(raw, float):
        return raw, PointType.R8
    if isinstance(raw, str):
        return raw, PointType.TX
    if isinstance(raw, (bytes, bytearray)):
        return bytes(raw), PointType.BN
    return None, PointType.UNKNOWN


def _value_for_type(typ: PointType, raw: Any) -> tuple[Any, bool]:
    if raw is None:
        return None, False
    try:
        if typ in (PointType.AX, PointType.R8):
            return float(raw), True
        if typ is PointType.DX:
            return bool(raw), True
        if typ in (PointType.I2, PointType.I4, PointType.I8):
            return int(raw), True
        if typ is PointType.TX:
            return (raw if isinstance(raw, str) else str(raw)), True
        if typ is PointType.BN and isinstance(raw, (bytes, bytearray)):
            return bytes(raw), True
    except (TypeError, ValueError):
        pass
    return None, False


def sample_from_row(row: Mapping[str, Any]) -> Sample:
    """Build a sample from a result row; RT, when present, fixes the value type."""
    value, typ = _value(row.get("AV"))
    if row.get("RT") is not None:
        try:
            declared = PointType(_to_int(row["RT"]))
        except ValueError:
            declared = None
        if declared is not None:
            typed, ok = _value_for_type(declared, row.get("AV"))
            if ok:
                value, typ = typed, declared
    return Sample(
        id=_to_int(row.get("ID")),
        gn=_to_str(row.get("GN")),
        type=typ,
        format=_to_int(row.get("FM")),
        time=_to_time(row.get("TM")),
        status=_to_int(row.get("DS")),
        value=value,
    )