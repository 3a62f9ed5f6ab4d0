"""Subscriptions to realtime point values and raw table rows."""

from __future__ import annotations

import threading
import time
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Deque, Generic, Iterator, TypeVar

from .errors import ErrorKind, OpError, is_kind, unsupported, validation
from .model import Sample, validate_database, validate_point_selector
from .sqltext import quote_identifier

_POLL_SECONDS = 0.05

T = TypeVar("T")


class EventKind(str, Enum):
    """What a subscription event carries."""

    DATA = "data"
    ERROR = "error"
    RECONNECTING = "reconnecting"
    RECONNECTED = "reconnected"


@dataclass
class Request:
    """A subscription to points selected by ID and/or GN."""

    db: str = ""
    gns: list[str] = field(default_factory=list)
    ids: list[int] = field(default_factory=list)

    def validate(self) -> None:
        """Raise a validation error unless the request names a database and points."""
        validate_database(self.db)
        validate_point_selector(self.ids, self.gns)


def _plain_identifier(name: str) -> bool:
    try:
        quote_identifier(name)
    except OpError:
        return False
    return name != "*" and "." not in name


@dataclass
class TableRequest:
    """A subscription to rows of one table, selected by exactly one index type."""

    db: str = ""
    table: str = ""
    columns: list[str] = field(default_factory=list)
    key: str = ""
    int32: list[int] = field(default_factory=list)
    int64: list[int] = field(default_factory=list)
    strings: list[str] = field(default_factory=list)
    snapshot: bool = False

    def validate(self) -> None:
        """Raise a validation error if any name is unsafe or the index is ambiguous."""
        op = "subscription.TableRequest.validate"
        validate_database(self.db)
        if not _plain_identifier(self.table):
            raise validation(op, "table name is invalid")
        if not _plain_identifier(self.key):
            raise validation(op, "key column is invalid")
        for column in self.columns:
            if column == "*":
                continue
            if not _plain_identifier(column):
                raise validation(op, f"column name is invalid: {column}")
        kinds = sum(1 for values in (self.int32, self.int64, self.strings) if values)
        if kinds != 1:
            raise validation(
                op, f"table subscription requires exactly one index value type, got {kinds}"
            )


@dataclass
class Event:
    """A point subscription event."""

    kind: EventKind | None = None
    sample: Sample = field(default_factory=Sample)
    err: BaseException | None = None

    def is_data(self) -> bool:
        """True for data events, including untyped events without an error."""
        return self.kind == EventKind.DATA or (self.kind is None and self.err is None)

    def is_error(self) -> bool:
        """True for error events, including untyped events with an error."""
        return self.kind == EventKind.ERROR or (self.kind is None and self.err is not None)


@dataclass
class TableEvent:
    """A table subscription event."""

    kind: EventKind | None = None
    row: dict[str, Any] = field(default_factory=dict)
    err: BaseException | None = None

    def is_data(self) -> bool:
        """True for row events, including untyped events without an error."""
        return self.kind == EventKind.DATA or (self.kind is None and self.err is None)

    def is_error(self) -> bool:
        """True for error events, including untyped events with an error."""
        return self.kind == EventKind.ERROR or (self.kind is None and self.err is not None)


class _Channel(Generic[T]):
    """A bounded, closable queue of events."""

    def __init__(self, capacity: int) -> None:
        self._capacity = max(capacity, 1)
        self._items: Deque[T] = deque()
        self._cond = threading.Condition()
        self._closed = False

    def send(self, item: T, cancel: threading.Event) -> bool:
        with self._cond:
            while True:
                if cancel.is_set() or self._closed:
                    return False
                if len(self._items) < self._capacity:
                    self._items.append(item)
                    self._cond.notify_all()
                    return True
                self._cond.wait(_POLL_SECONDS)

    def offer(self, item: T) -> bool:
        with self._cond:
            if self._closed or len(self._items) >= self._capacity:
                return False
            self._items.append(item)
            self._cond.notify_all()
            return True

    def close(self) -> None:
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    def wake(self) -> None:
        with self._cond:
            self._cond.notify_all()

    def receive(self, timeout: float | None) -> T | None:
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._cond:
            while True:
                if self._items:
                    item = self._items.popleft()
                    self._cond.notify_all()
                    return item
                if self._closed:
                    return None
                if deadline is None:
                    self._cond.wait()
                    continue
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise TimeoutError("no event received before the timeout")
                self._cond.wait(remaining)


class _StreamBase(Generic[T]):
    def __init__(self, channel: _Channel[T], cancel: threading.Event) -> None:
        self._channel = channel
        self._cancel = cancel
        self._done = threading.Event()
        self._lock = threading.Lock()
        self._err: BaseException | None = None

    @property
    def err(self) -> BaseException | None:
        """The terminal error of the subscription, if any."""
        with self._lock:
            return self._err

    @property
    def done(self) -> bool:
        """True once the subscription has ended."""
        return self._done.is_set()

    def _receive(self, timeout: float | None) -> T | None:
        return self._channel.receive(timeout)

    def _wait_done(self, timeout: float | None) -> bool:
        return self._done.wait(timeout)

    def _cancel_run(self) -> None:
        self._cancel.set()
        self._channel.wake()

    def __iter__(self) -> Iterator[T]:
        while (event := self._receive(None)) is not None:
            yield event

    def __enter__(self):
        return self

    def __exit__(self, *exc_info: object) -> None:
        self._cancel_run()

    def _set_err(self, err: BaseException) -> None:
        with self._lock:
            self._err = err


class Stream(_StreamBase[Event]):
    """The consumer side of a point subscription."""

    def get(self, timeout: float | None = None) -> Event | None:
        """Return the next event, or None once the stream has ended and is drained.

        Raises TimeoutError if no event arrives within timeout seconds.
        """
        return self._receive(timeout)

    def wait(self, timeout: float | None = None) -> bool:
        """Wait until the subscription ends; return whether it has."""
        return self._wait_done(timeout)

    def close(self) -> None:
        """Cancel the subscription. Safe to call more than once."""
        self._cancel_run()


class TableStream(_StreamBase[TableEvent]):
    """The consumer side of a table subscription."""

    def get(self, timeout: float | None = None) -> TableEvent | None:
        """Return the next event, or None once the stream has ended and is drained.

        Raises TimeoutError if no event arrives within timeout seconds.
        """
        return self._receive(timeout)

    def wait(self, timeout: float | None = None) -> bool:
        """Wait until the subscription ends; return whether it has."""
        return self._wait_done(timeout)

    def close(self) -> None:
        """Cancel the subscription. Safe to call more than once."""
        self._cancel_run()


def _should_publish(cancel: threading.Event, err: BaseException) -> bool:
    return not (cancel.is_set() and is_kind(err, ErrorKind.CANCELED))


class Service:
    """Starts subscriptions on a source and delivers their events through streams.

    A source has subscribe(cancel, req, emit); a table source also has
    subscribe_table(cancel, req, emit). emit returns False once the
    consumer has gone away. A source may have validate_request(req).
    """

    def __init__(
        self,
        source: Any = None,
        *,
        refresh_interval: float = 0.0,
        backoff_min: float = 0.0,
        backoff_max: float = 0.0,
        event_buffer: int = 0,
    ) -> None:
        self.source = source
        self.refresh_interval = refresh_interval or 60.0
        self.backoff_min = backoff_min or 0.2
        self.backoff_max = backoff_max or 30.0
        self.event_buffer = max(event_buffer, 0)
        self._closed: BaseException | None = None

    def subscribe(self, req: Request) -> Stream:
        """Start a point subscription and return its stream."""
        if self._closed is not None:
            raise self._closed
        req.validate()
        if self.source is None:
            raise unsupported(
                "subscription.Service.subscribe", "subscription source is not configured"
            )
        validate_request = getattr(self.source, "validate_request", None)
        if callable(validate_request):
            validate_request(req)
        source = self.source
        return self._launch(
            Stream,
            lambda err: Event(kind=EventKind.ERROR, err=err),
            lambda cancel, emit: source.subscribe(cancel, req, emit),
        )

    def subscribe_table(self, req: TableRequest) -> TableStream:
        """Start a table subscription and return its stream."""
        if self._closed is not None:
            raise self._closed
        req.validate()
        subscribe_table = getattr(self.source, "subscribe_table", None)
        if not callable(subscribe_table):
            raise unsupported(
                "subscription.Service.subscribe_table",
                "table subscription source is not configured",
            )
        return self._launch(
            TableStream,
            lambda err: TableEvent(kind=EventKind.ERROR, err=err),
            lambda cancel, emit: subscribe_table(cancel, req, emit),
        )

    def _launch(self, stream_cls, error_event: Callable, run: Callable):
        cancel = threading.Event()
        channel: _Channel = _Channel(self.event_buffer)
        stream = stream_cls(channel, cancel)

        def emit(event) -> bool:
            return channel.send(event, cancel)

        def worker() -> None:
            try:
                try:
                    run(cancel, emit)
                except Exception as exc:
                    if _should_publish(cancel, exc):
                        stream._set_err(exc)
                        channel.offer(error_event(exc))
            finally:
                channel.close()
                stream._done.set()
                cancel.set()

        threading.Thread(target=worker, name="plantwire-subscription", daemon=True).start()
        return stream


def new_closed_service(err: BaseException) -> Service:
    """Return a service whose every subscription fails with err."""
    service = Service()
    service._closed = err
    return service