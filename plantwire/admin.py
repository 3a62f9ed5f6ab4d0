"""Table mutations that create the system metric points of a database."""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Iterable

from .errors import validation
from .model import gn_database, validate_database, validate_gn
from .mutation import Column, ColumnType, MutationAction, TableMutation
from .templates import PointTemplate, point_templates

_OP = "system.build_point_template_mutation"


def build_point_template_insert(
    db: str, node_id: int, templates: Iterable[PointTemplate]
) -> TableMutation:
    """Return an insert of the templates into db's Point table under node_id."""
    return _build_mutation(db, node_id, MutationAction.INSERT, templates)


def build_point_template_replace(
    db: str, node_id: int, templates: Iterable[PointTemplate]
) -> TableMutation:
    """Return a replace of the templates in db's Point table under node_id."""
    return _build_mutation(db, node_id, MutationAction.REPLACE, templates)


def build_default_point_template_insert(db: str, node_id: int) -> TableMutation:
    """Return an insert of every catalog metric point of db."""
    return build_point_template_insert(db, node_id, point_templates(db))


def point_template_columns() -> list[Column]:
    """Return the Point table columns written for a template."""
    string, int8, int16, int32 = (
        ColumnType.STRING, ColumnType.INT8, ColumnType.INT16, ColumnType.INT32
    )
    float32 = ColumnType.FLOAT32
    spec = [
        ("PN", string), ("ND", int32), ("PT", int8), ("RT", int8), ("ED", string),
        ("LC", int16), ("AP", int8), ("AR", ColumnType.BOOL), ("EU", string),
        ("FM", int16), ("BV", float32), ("TV", float32), ("LL", float32),
        ("HL", float32), ("ZL", float32), ("ZH", float32), ("L3", float32),
        ("H3", float32), ("L4", float32), ("H4", float32), ("DB", float32),
        ("DT", int8), ("KZ", int8), ("KT", int8), ("KO", int8), ("FK", float32),
        ("FB", float32), ("EX", string),
    ]
    return [Column(name=name, type=column_type) for name, column_type in spec]


def _template_row(node_id: int, template: PointTemplate) -> dict[str, Any]:
    limits = template.limits
    return {
        "PN": template.name,
        "ND": int(node_id),
        "PT": int(template.source),
        "RT": int(template.type),
        "ED": template.description,
        "LC": int(template.alarm_code),
        "AP": int(template.alarm_level),
        "AR": template.archived,
        "EU": template.unit,
        "FM": template.format,
        "BV": template.range_lower,
        "TV": template.range_upper,
        "LL": limits.ll,
        "HL": limits.hl,
        "ZL": limits.zl,
        "ZH": limits.zh,
        "L3": limits.l3,
        "H3": limits.h3,
        "L4": limits.l4,
        "H4": limits.h4,
        "DB": template.deadband,
        "DT": int(template.deadband_type),
        "KZ": int(template.compression),
        "KT": template.calc_type,
        "KO": template.calc_order,
        "FK": template.scale_factor,
        "FB": template.offset,
        "EX": template.expression,
    }


def _build_mutation(
    db: str, node_id: int, action: MutationAction, templates: Iterable[PointTemplate]
) -> TableMutation:
    validate_database(db)
    if node_id < 0:
        raise validation(_OP, "node ID cannot be negative")
    templates = list(templates or ())
    if not templates:
        raise validation(_OP, "at least one point template is required")
    if action not in (MutationAction.INSERT, MutationAction.REPLACE):
        raise validation(_OP, "system point templates support insert or replace mutations only")
    rows = []
    seen: set[str] = set()
    for template in templates:
        if not template.gn:
            template = replace(template, gn=template.metric.gn(db))
        validate_gn(template.gn)
        if gn_database(template.gn) != db:
            raise validation(
                _OP, f"template GN {template.gn} does not belong to database {db}"
            )
        if template.gn in seen:
            raise validation(_OP, f"duplicate point template GN: {template.gn}")
        seen.add(template.gn)
        rows.append(_template_row(node_id, template))
    mutation = TableMutation(
        db=db,
        table="Point",
        action=action,
        columns=point_template_columns(),
        rows=rows,
    )
    mutation.validate()
    return mutation