"""A subscription source that follows GNs whose point IDs change over time."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Iterable

from .errors import unsupported, validation
from .mapping import GNBinding, build_gn_binding, expand_gn_event, plan_gn_rebind
from .subscription import Event, EventKind, Request

_POLL_SECONDS = 0.05

Emit = Callable[[Event], bool]


class _BindingState:
    def __init__(self, binding: GNBinding) -> None:
        self.lock = threading.Lock()
        self.binding = binding


@dataclass
class GNDriftSource:
    """Subscribes by ID on behalf of GN requests and rebinds when IDs drift.

    source has subscribe_ids(cancel, db, ids, emit) returning an ID stream
    with add_ids(ids), remove_ids(ids), close(), wait(timeout) and err.
    resolver has resolve_points(db, gns) returning points.
    """

    source: Any = None
    resolver: Any = None
    refresh_interval: float = 0.0

    def subscribe(
        self, cancel: threading.Event | None, req: Request, emit: Emit
    ) -> None:
        """Run the subscription until cancel is set or the ID stream ends."""
        op = "subscription.GNDriftSource.subscribe"
        req.validate()
        if self.source is None:
            raise unsupported(op, "ID source is not configured")
        if cancel is None:
            cancel = threading.Event()
        explicit_ids = unique_point_ids(req.ids)
        explicit_set = set(explicit_ids)
        if not req.gns:
            stream = self.source.subscribe_ids(cancel, req.db, explicit_ids, emit)
            try:
                wait_id_stream(cancel, stream)
            finally:
                stream.close()
            return
        if self.resolver is None:
            raise unsupported(op, "point resolver is not configured")

        gns = unique_gns(req.gns)
        state = _BindingState(build_gn_binding(self._resolve_gn_to_id(req.db, gns)))
        ids = merge_point_ids(explicit_ids, state.binding.ids)
        stream = self.source.subscribe_ids(
            cancel,
            req.db,
            ids,
            lambda event: _emit_bound_event(emit, event, explicit_set, state),
        )
        try:
            interval = self.refresh_interval if self.refresh_interval > 0 else 60.0
            next_refresh = time.monotonic() + interval
            while not cancel.is_set():
                remaining = next_refresh - time.monotonic()
                if remaining <= 0:
                    next_refresh = time.monotonic() + interval
                    try:
                        self._refresh_binding(req.db, gns, stream, explicit_set, state)
                    except Exception as exc:
                        if not emit(Event(kind=EventKind.ERROR, err=exc)):
                            return
                    continue
                if stream.wait(min(remaining, _POLL_SECONDS)):
                    if stream.err is not None:
                        raise stream.err
                    return
        finally:
            stream.close()

    def _resolve_gn_to_id(self, db: str, gns: list[str]) -> dict[str, int]:
        points = self.resolver.resolve_points(db, gns)
        found = {point.gn: point.id for point in points if point.gn and point.id > 0}
        out: dict[str, int] = {}
        for gn in gns:
            if found.get(gn, 0) <= 0:
                raise validation(
                    "subscription.GNDriftSource.resolve_gn_to_id", f"GN not found: {gn}"
                )
            out[gn] = found[gn]
        return out

    def _refresh_binding(
        self,
        db: str,
        gns: list[str],
        stream: Any,
        explicit_ids: set[int],
        state: _BindingState,
    ) -> None:
        target = self._resolve_gn_to_id(db, gns)
        with state.lock:
            current = dict(state.binding.gn_to_id)
        plan = plan_gn_rebind(current, target)
        add_ids = filter_implicit_ids(plan.add_ids, explicit_ids)
        remove_ids = filter_implicit_ids(plan.remove_ids, explicit_ids)
        if not add_ids and not remove_ids and not plan.changed_gns:
            return
        if add_ids:
            stream.add_ids(add_ids)
        next_binding = build_gn_binding(target)
        with state.lock:
            state.binding = next_binding
        if remove_ids:
            stream.remove_ids(remove_ids)


def _emit_bound_event(
    emit: Emit | None, event: Event, explicit_ids: set[int], state: _BindingState
) -> bool:
    if emit is None:
        return False
    if not event.is_data():
        return emit(event)
    with state.lock:
        mapped = expand_gn_event(event, state.binding.id_to_gns)
    if mapped:
        return all(emit(mapped_event) for mapped_event in mapped)
    if event.sample.id in explicit_ids:
        return emit(event)
    return True


def wait_id_stream(cancel: threading.Event, stream: Any) -> None:
    """Block until cancel is set or the stream ends; raise the stream's error."""
    if stream is None:
        raise unsupported("subscription.wait_id_stream", "ID stream is nil")
    while not cancel.is_set():
        if stream.wait(_POLL_SECONDS):
            if stream.err is not None:
                raise stream.err
            return


def filter_implicit_ids(ids: Iterable[int], explicit: set[int]) -> list[int]:
    """Return the IDs that were not requested explicitly."""
    return [point_id for point_id in ids if point_id not in explicit]


def unique_gns(gns: Iterable[str]) -> list[str]:
    """Return the GNs without duplicates, first occurrence first."""
    return list(dict.fromkeys(gns))


def unique_point_ids(ids: Iterable[int]) -> list[int]:
    """Return the IDs without duplicates, first occurrence first."""
    return list(dict.fromkeys(ids))


def merge_point_ids(left: Iterable[int], right: Iterable[int]) -> list[int]:
    """Return left then right, without duplicates."""
    return list(dict.fromkeys([*left, *right]))