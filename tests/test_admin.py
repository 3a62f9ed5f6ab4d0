from dataclasses import replace

import pytest

from plantwire.admin import (
    build_default_point_template_insert,
    build_point_template_insert,
    build_point_template_replace,
    point_template_columns,
)
from plantwire.errors import ErrorKind, OpError
from plantwire.model import AlarmCode, PointSource, PointType
from plantwire.mutation import ColumnType, MutationAction
from plantwire.system import Metric, metrics
from plantwire.templates import lookup_point_template


def _column_type(columns, name):
    for column in columns:
        if column.name == name:
            return column.type
    return ColumnType.NULL


def test_build_point_template_insert():
    template = lookup_point_template(Metric.LOAD, "W3")
    req = build_point_template_insert("W3", 12, [template])
    assert req.db == "W3"
    assert req.table == "Point"
    assert req.action is MutationAction.INSERT
    assert len(req.columns) > 0
    assert len(req.rows) == 1
    row = req.rows[0]
    assert row["PN"] == "LOAD"
    assert row["ND"] == 12
    assert row["PT"] == int(PointSource.CALC)
    assert row["RT"] == int(PointType.AX)
    assert row["LC"] == int(AlarmCode.LIMIT_MASK)
    assert row["EX"] == "return op.load()"
    assert _column_type(req.columns, "BV") is ColumnType.FLOAT32
    assert _column_type(req.columns, "FK") is ColumnType.FLOAT32


def test_build_default_point_template_insert():
    req = build_default_point_template_insert("W3", 1)
    assert len(req.rows) == len(metrics())
    req.validate()
    assert {row["PN"] for row in req.rows} == {metric.value for metric in metrics()}


def test_build_point_template_replace_action():
    template = lookup_point_template(Metric.SESSION, "W3")
    req = build_point_template_replace("W3", 3, [template])
    assert req.action is MutationAction.REPLACE
    assert req.rows[0]["PN"] == "SESSION"


def test_empty_gn_defaults_to_metric_gn():
    template = replace(lookup_point_template(Metric.LOAD, "W3"), gn="")
    req = build_point_template_insert("W3", 1, [template])
    assert req.rows[0]["PN"] == "LOAD"
    assert template.gn == ""


@pytest.mark.parametrize(
    "node_id, gns",
    [
        (-1, ["W3.SYS.LOAD"]),
        (1, []),
        (1, ["OTHER.SYS.LOAD"]),
        (1, ["W3.SYS.LOAD", "W3.SYS.LOAD"]),
    ],
)
def test_build_point_template_mutation_rejects_unsafe_input(node_id, gns):
    template = lookup_point_template(Metric.LOAD, "W3")
    templates = [replace(template, gn=gn) for gn in gns]
    with pytest.raises(OpError) as excinfo:
        build_point_template_insert("W3", node_id, templates)
    assert excinfo.value.kind is ErrorKind.VALIDATION


def test_point_template_columns_cover_row_keys():
    template = lookup_point_template(Metric.LOAD, "W3")
    row = build_point_template_insert("W3", 1, [template]).rows[0]
    names = [column.name for column in point_template_columns()]
    assert len(names) == 28
    assert set(names) == set(row)
    assert names[0] == "PN"
    assert names[-1] == "EX"