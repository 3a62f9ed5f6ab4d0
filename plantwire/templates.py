"""Point templates for creating the system metric points of a database."""

from __future__ import annotations

from dataclasses import dataclass, field

from .model import (
    AlarmCode,
    AlarmLimits,
    AlarmPriority,
    DeadbandType,
    PointCompression,
    PointConfig,
    PointSource,
    PointType,
    validate_database,
)
from .system import Metric, MetricInfo, catalog, lookup_metric


@dataclass
class PointTemplate:
    """The configuration of one system metric point."""

    metric: Metric
    gn: str = ""
    name: str = ""
    description: str = ""
    source: PointSource = PointSource.DAS
    type: PointType = PointType.AX
    unit: str = ""
    format: int = 0
    archived: bool = False
    alarm_code: AlarmCode = AlarmCode.NONE
    alarm_level: AlarmPriority = AlarmPriority.UNSET
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

    def point_config(self) -> PointConfig:
        """Return the template as a point configuration."""
        return PointConfig(
            gn=self.gn,
            source=self.source,
            type=self.type,
            name=self.name,
            description=self.description,
            alarm_code=self.alarm_code,
            alarm_level=self.alarm_level,
            archived=self.archived,
            unit=self.unit,
            format=self.format,
            range_lower=self.range_lower,
            range_upper=self.range_upper,
            limits=AlarmLimits(**vars(self.limits)),
            deadband=self.deadband,
            deadband_type=self.deadband_type,
            compression=self.compression,
            calc_type=self.calc_type,
            calc_order=self.calc_order,
            scale_factor=self.scale_factor,
            offset=self.offset,
            expression=self.expression,
        )


def _template(info: MetricInfo, db: str) -> PointTemplate:
    template = PointTemplate(
        metric=info.metric,
        gn=info.metric.gn(db),
        name=info.metric.value,
        description=info.description,
        source=PointSource.CALC,
        type=PointType.AX,
        unit=info.unit,
        archived=True,
        range_lower=0.0,
        range_upper=100.0,
        deadband=0.2,
        deadband_type=DeadbandType.PCT,
        compression=PointCompression.DEADBAND,
        calc_type=1,
        calc_order=1,
        scale_factor=1.0,
        expression=info.formula,
    )
    if info.metric is Metric.DATABASE_LOAD:
        template.alarm_code = AlarmCode.LL | AlarmCode.HL | AlarmCode.ZH
        template.unit = "%"
        template.limits = AlarmLimits(ll=30, hl=40, zh=50)
    elif info.metric is Metric.LOAD:
        template.alarm_code = AlarmCode.LIMIT_MASK
        template.unit = "%"
        template.limits = AlarmLimits(ll=50, hl=60, zl=40, zh=70, l3=30, h3=80, l4=20, h4=90)
    elif info.metric is Metric.RATE:
        template.calc_type = 0
    return template


def point_templates(db: str) -> list[PointTemplate]:
    """Return a template for every catalog metric of db, in catalog order."""
    validate_database(db)
    return [_template(info, db) for info in catalog(db)]


def lookup_point_template(metric: Metric | str, db: str) -> PointTemplate | None:
    """Return the template of metric in db, or None if either is invalid."""
    info = lookup_metric(metric, db)
    if info is None:
        return None
    return _template(info, db)