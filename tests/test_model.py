from datetime import datetime, timedelta, timezone

import pytest

from plantwire.errors import ErrorKind, OpError, is_kind
from plantwire.model import (
    AlarmLimits,
    PointConfig,
    Sample,
    TimeRange,
    gn_database,
    validate_database,
    validate_gn,
    validate_interval,
    validate_point_selector,
)


def test_validate_database_accepts_plain_name():
    assert validate_database("W3") == "W3"


@pytest.mark.parametrize("db", ["bad db", "", "W3.SYS", "a'b"])
def test_validate_database_rejects_bad_names(db):
    with pytest.raises(OpError) as info:
        validate_database(db)
    assert is_kind(info.value, ErrorKind.VALIDATION)


def test_validate_gn_and_database_part():
    assert validate_gn("W3.SYS.LOAD") == "W3.SYS.LOAD"
    assert gn_database("W3.SYS.LOAD") == "W3"
    assert gn_database("OTHER.SYS.LOAD") == "OTHER"


@pytest.mark.parametrize("gn", ["", "W3", "W3..P1", "bad db.N.P1", "W3.N.P 1"])
def test_validate_gn_rejects_bad_names(gn):
    with pytest.raises(OpError) as info:
        validate_gn(gn)
    assert is_kind(info.value, ErrorKind.VALIDATION)


def test_point_selector_requires_something():
    with pytest.raises(OpError) as info:
        validate_point_selector([], [])
    assert is_kind(info.value, ErrorKind.VALIDATION)


def test_point_selector_rejects_non_positive_ids():
    with pytest.raises(OpError):
        validate_point_selector([1001, 0], [])


def test_point_selector_rejects_bad_gn():
    with pytest.raises(OpError):
        validate_point_selector([1001], ["bad db"])


def test_validate_interval():
    assert validate_interval("2s") == "2s"
    for bad in ["", "0s", "2", "s2"]:
        with pytest.raises(OpError):
            validate_interval(bad)


def test_time_range_requires_ordered_ends():
    begin = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    with pytest.raises(OpError):
        TimeRange(begin=begin, end=begin - timedelta(seconds=1)).validate()
    with pytest.raises(OpError):
        TimeRange(begin=begin).validate()
    with pytest.raises(OpError):
        TimeRange().validate()


def test_point_config_limits_are_not_shared():
    first = PointConfig()
    second = PointConfig()
    first.limits.ll = 50
    assert second.limits == AlarmLimits()
    assert first.limits.ll == 50


def test_sample_defaults_and_copy():
    sample = Sample(id=1001, value=12.5)
    assert sample.gn == ""
    assert sample.status == 0
    assert sample.id == 1001