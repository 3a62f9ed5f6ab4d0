# plantwire

Building blocks for working with a plant historian database from Python:
subscription plumbing, tracking of point names whose IDs move, helpers for
native writes and table mutations, and the catalog of built-in system metrics
with the point templates and SQL that go with it.

## Modules

- `plantwire.errors`: `OpError` (with `kind`, `op`, `message`, `code`),
  the `ErrorKind` enum, and `is_kind(err, kind)`, which also looks through
  the `__cause__` chain.
- `plantwire.model`: `PointType`, `PointSource`, `AlarmCode`,
  `AlarmPriority`, `DeadbandType`, `PointCompression`, the dataclasses
  `AlarmLimits`, `TimeRange`, `Sample`, `Point`, `PointConfig`, and the
  validators `validate_database`, `validate_gn`, `validate_point_selector`,
  `validate_interval`, plus `gn_database`.
- `plantwire.sqltext`: `quote_identifier`, `literal_string`,
  `qualified_table`.
- `plantwire.subscription`: `Request` and `TableRequest` (each with
  `validate()`), `Event` and `TableEvent` with `EventKind`, and `Service`,
  which runs a source on a background thread and hands its events out through
  a `Stream` or `TableStream`. Streams have `get(timeout)`, `wait(timeout)`,
  `close()`, `err` and `done`; they can be iterated and used in a `with`
  block, which closes them on exit. `new_closed_service(err)` returns a
  service whose every subscription raises `err`.
- `plantwire.mapping`: `build_gn_binding`, `plan_gn_rebind`, `diff_ids`,
  `changed_gns`, `expand_gn_event`, with `GNBinding` and `RebindPlan`.
- `plantwire.gn_source`: `GNDriftSource`, which resolves GNs to IDs through a
  resolver, subscribes by ID through an ID source, re-resolves every
  `refresh_interval` seconds (60 by default) and adds or removes IDs when a
  name moves. Each data event is delivered once per GN bound to its ID, with
  that GN set on the sample; IDs requested explicitly are never removed.
- `plantwire.backoff`: `jitter_backoff`, `normalize_backoff`,
  `sleep_backoff` for reconnect delays (±20 % jitter).
- `plantwire.writes`: `ArchiveWriteBlock`, `archive_write_blocks`,
  `chunked`, `time_unix32`, `same_base_table`,
  `decode_native_write_echo`.
- `plantwire.rows`: `Indexes`, `unique_subscription_ids`,
  `table_subscription_indexes`, `clone_row`.
- `plantwire.mutation`: `TableMutation` with `validate()`, `Column`,
  `ColumnType`, `MutationAction`, `Filter`, `FilterOperator`,
  `FilterRelation`.
- `plantwire.system`: the `Metric` enum (`gn(db)`, `validate()`),
  `metrics()`, `default_trend_metrics()`, `catalog(db)`,
  `lookup_metric(metric, db)`, `metric_from_gn(gn)`, the `Query` and
  `HistoryQuery` requests, `build_read_sql`, `build_history_sql`,
  `time_literal`, `sample_from_row`, and a `Service` whose `read_sql` and
  `history_sql` run the built SQL through a queryer you supply.
- `plantwire.templates`: `PointTemplate` (with `point_config()`),
  `point_templates(db)`, `lookup_point_template(metric, db)`.
- `plantwire.admin`: `build_point_template_insert`,
  `build_point_template_replace`, `build_default_point_template_insert`,
  `point_template_columns`.

## Installation

```
pip install .
```

For running the tests:

```
pip install .[test]
pytest
```

## Examples

Look up the system metric catalog for a database:

```python
from plantwire.system import Metric, catalog, lookup_metric

info = lookup_metric(Metric.RATE, "W3")
print(info.formula)            # return op.rate("W3.SYS.EVENT", 5)
print(len(catalog("W3")))      # 23, one entry per metric
```

Build the mutation that creates all system metric points under node 1:

```python
from plantwire.admin import build_default_point_template_insert

mutation = build_default_point_template_insert("W3", 1)
print(mutation.table, mutation.action.value, len(mutation.rows))   # Point insert 23
```

Plan a rebind after a point name moved to a new ID:

```python
from plantwire.mapping import plan_gn_rebind

plan = plan_gn_rebind({"W3.N.P1": 1001}, {"W3.N.P1": 2001})
print(plan.add_ids, plan.remove_ids, plan.changed_gns)
# [2001] [1001] ['W3.N.P1']
```

Run a subscription over a source of your own. A source is any object with
`subscribe(cancel, req, emit)`; `cancel` is a `threading.Event`, and `emit`
returns `False` once the consumer has gone away:

```python
from plantwire.model import Sample
from plantwire.subscription import Event, EventKind, Request, Service


class CountingSource:
    def subscribe(self, cancel, req, emit):
        for value in range(3):
            event = Event(kind=EventKind.DATA, sample=Sample(id=1001, value=float(value)))
            if not emit(event):
                return


service = Service(CountingSource(), event_buffer=4)
with service.subscribe(Request(db="W3", ids=[1001])) as stream:
    for event in stream:
        print(event.sample.id, event.sample.value)
```

If the source raises, the stream's `err` holds the exception and an
`EventKind.ERROR` event is delivered when there is room for it.

Errors are raised as `plantwire.errors.OpError`; use
`is_kind(err, ErrorKind.VALIDATION)` and similar checks to tell validation,
unsupported-feature and closed-resource errors apart.

## What it does not do

plantwire does not open connections to a server and does not encode or decode
the server's wire protocol. There is no client object, no connection pool and
no command-line tool. Subscription sources, ID sources and point resolvers
for `GNDriftSource`, and the SQL queryer for `plantwire.system.Service`, are
objects you provide. The write helpers and `TableMutation` prepare and check
what would be sent; sending it is up to the caller.