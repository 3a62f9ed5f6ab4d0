import pytest

from plantwire.errors import ErrorKind, OpError
from plantwire.model import AlarmCode, PointSource, PointType
from plantwire.system import Metric, metrics
from plantwire.templates import lookup_point_template, point_templates


def test_point_templates_mirror_system_catalog():
    templates = point_templates("W3")
    assert len(templates) == len(metrics())
    first = templates[0]
    assert first.source is PointSource.CALC
    assert first.type is PointType.AX
    assert first.gn == "W3.SYS.CACHEQ"
    assert first.expression == 'return op.cacheq("W3")'


def test_lookup_point_template_load_alarm_limits():
    template = lookup_point_template(Metric.LOAD, "W3")
    assert template is not None
    assert template.alarm_code == AlarmCode.LIMIT_MASK
    assert template.limits.ll == 50
    assert template.limits.h4 == 90
    assert template.unit == "%"
    cfg = template.point_config()
    assert cfg.gn == "W3.SYS.LOAD"
    assert cfg.expression == "return op.load()"
    assert cfg.source is PointSource.CALC


def test_lookup_point_template_rejects_bad_input():
    assert lookup_point_template("NOPE", "W3") is None
    assert lookup_point_template(Metric.LOAD, "bad db") is None
    with pytest.raises(OpError) as excinfo:
        point_templates("bad db")
    assert excinfo.value.kind is ErrorKind.VALIDATION


def test_special_cases_of_database_load_and_rate():
    dbload = lookup_point_template(Metric.DATABASE_LOAD, "W3")
    assert dbload.alarm_code == AlarmCode.LL | AlarmCode.HL | AlarmCode.ZH
    assert (dbload.limits.ll, dbload.limits.hl, dbload.limits.zh) == (30, 40, 50)
    assert lookup_point_template(Metric.RATE, "W3").calc_type == 0
    session = lookup_point_template(Metric.SESSION, "W3")
    assert session.calc_type == 1
    assert session.name == "SESSION"
    assert session.archived is True
    assert session.deadband == 0.2
    assert session.range_upper == 100.0