"""Bindings between global point names and point IDs."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Mapping

from .subscription import Event, EventKind


@dataclass
class GNBinding:
    """GN to ID mapping with its reverse index and the distinct bound IDs."""

    gn_to_id: dict[str, int] = field(default_factory=dict)
    id_to_gns: dict[int, list[str]] = field(default_factory=dict)
    ids: list[int] = field(default_factory=list)


@dataclass
class RebindPlan:
    """The subscription changes needed to move from one binding to another."""

    add_ids: list[int] = field(default_factory=list)
    remove_ids: list[int] = field(default_factory=list)
    changed_gns: list[str] = field(default_factory=list)


def build_gn_binding(gn_to_id: Mapping[str, int]) -> GNBinding:
    """Index a GN to ID mapping; IDs that are not positive are not bound."""
    id_to_gns: dict[int, list[str]] = {}
    for gn, point_id in gn_to_id.items():
        if point_id > 0:
            id_to_gns.setdefault(point_id, []).append(gn)
    for gns in id_to_gns.values():
        gns.sort()
    return GNBinding(gn_to_id=dict(gn_to_id), id_to_gns=id_to_gns, ids=sorted(id_to_gns))


def plan_gn_rebind(current: Mapping[str, int], target: Mapping[str, int]) -> RebindPlan:
    """Work out which IDs to add and remove, and which GNs changed binding."""
    current_binding = build_gn_binding(current)
    target_binding = build_gn_binding(target)
    return RebindPlan(
        add_ids=diff_ids(target_binding.ids, current_binding.ids),
        remove_ids=diff_ids(current_binding.ids, target_binding.ids),
        changed_gns=changed_gns(current_binding.gn_to_id, target_binding.gn_to_id),
    )


def diff_ids(left: list[int], right: list[int]) -> list[int]:
    """Return the IDs of left that are not in right, in left's order."""
    right_set = set(right)
    return [point_id for point_id in left if point_id not in right_set]


def changed_gns(current: Mapping[str, int], target: Mapping[str, int]) -> list[str]:
    """Return, sorted, the GNs whose ID changed and the GNs that are new."""
    changed = {gn for gn, point_id in current.items() if gn in target and target[gn] != point_id}
    changed.update(gn for gn in target if gn not in current)
    return sorted(changed)


def expand_gn_event(event: Event, id_to_gns: Mapping[int, list[str]] | None) -> list[Event]:
    """Turn a data event into one event per GN bound to its ID.

    Non-data events pass through unchanged; data events for unbound IDs
    produce nothing.
    """
    if not event.is_data():
        return [event]
    gns = (id_to_gns or {}).get(event.sample.id) or []
    return [
        Event(kind=EventKind.DATA, sample=replace(event.sample, gn=gn))
        for gn in gns
    ]