from plantwire.mapping import (
    build_gn_binding,
    changed_gns,
    diff_ids,
    expand_gn_event,
    plan_gn_rebind,
)
from plantwire.model import Sample
from plantwire.subscription import Event, EventKind


class SubscriptionTestError(Exception):
    pass


def test_build_gn_binding_deduplicates_ids_and_keeps_aliases():
    binding = build_gn_binding(
        {"W3.N.P1": 1001, "W3.N.P1_ALIAS": 1001, "W3.N.P2": 1002}
    )
    assert binding.ids == [1001, 1002]
    assert binding.id_to_gns[1001] == ["W3.N.P1", "W3.N.P1_ALIAS"]


def test_build_gn_binding_skips_non_positive_ids():
    binding = build_gn_binding({"W3.N.P1": 0, "W3.N.P2": 5})
    assert binding.ids == [5]
    assert 0 not in binding.id_to_gns
    assert binding.gn_to_id == {"W3.N.P1": 0, "W3.N.P2": 5}


def test_plan_gn_rebind_detects_drift_and_new_gn():
    plan = plan_gn_rebind(
        {"W3.N.P1": 1001, "W3.N.P2": 1002},
        {"W3.N.P1": 2001, "W3.N.P2": 1002, "W3.N.P3": 3003},
    )
    assert plan.add_ids == [2001, 3003]
    assert plan.remove_ids == [1001]
    assert plan.changed_gns == ["W3.N.P1", "W3.N.P3"]


def test_plan_gn_rebind_does_not_remove_id_still_used_by_alias():
    plan = plan_gn_rebind(
        {"W3.N.P1": 1001, "W3.N.P1_ALIAS": 1001},
        {"W3.N.P1": 2001, "W3.N.P1_ALIAS": 1001},
    )
    assert plan.add_ids == [2001]
    assert plan.remove_ids == []
    assert plan.changed_gns == ["W3.N.P1"]


def test_diff_ids_keeps_left_order():
    assert diff_ids([5, 1, 3], [1]) == [5, 3]
    assert diff_ids([], [1]) == []


def test_changed_gns_ignores_removed_gns():
    assert changed_gns({"a": 1, "b": 2}, {"b": 2}) == []


def test_expand_gn_event_clones_sample_for_aliases():
    source = Event(kind=EventKind.DATA, sample=Sample(id=1001, value=12.5))
    events = expand_gn_event(source, {1001: ["W3.N.P1", "W3.N.P1_ALIAS"]})
    assert len(events) == 2
    assert [event.sample.gn for event in events] == ["W3.N.P1", "W3.N.P1_ALIAS"]
    assert [event.sample.id for event in events] == [1001, 1001]
    assert all(event.kind == EventKind.DATA for event in events)
    assert source.sample.gn == ""


def test_expand_gn_event_drops_unbound_ids():
    event = Event(kind=EventKind.DATA, sample=Sample(id=7))
    assert expand_gn_event(event, {1001: ["W3.N.P1"]}) == []


def test_expand_gn_event_forwards_errors():
    err = SubscriptionTestError("test subscription error")
    events = expand_gn_event(Event(kind=EventKind.ERROR, err=err), None)
    assert len(events) == 1
    assert events[0].kind == EventKind.ERROR
    assert events[0].err is err


def test_expand_gn_event_forwards_status_events():
    events = expand_gn_event(
        Event(kind=EventKind.RECONNECTED), {0: ["W3.N.SHOULD_NOT_APPLY"]}
    )
    assert len(events) == 1
    assert events[0].kind == EventKind.RECONNECTED