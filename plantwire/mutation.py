"""Structured table mutations: insert, update, replace and delete of rows."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any

from .errors import OpError, validation
from .model import validate_database
from .rows import Indexes
from .sqltext import quote_identifier

_OP = "admin.TableMutation.validate"


class MutationAction(str, Enum):
    """What a mutation does to the selected rows."""

    INSERT = "insert"
    UPDATE = "update"
    REPLACE = "replace"
    DELETE = "delete"


class ColumnType(IntEnum):
    """Wire type of a mutation column."""

    NULL = 0
    BOOL = 1
    INT8 = 2
    INT16 = 3
    INT32 = 4
    INT64 = 5
    FLOAT32 = 6
    FLOAT64 = 7
    DATETIME = 8
    STRING = 9
    BINARY = 10
    OBJECT = 11
    MAP = 12
    STRUCTURE = 13
    SLICE = 14


class FilterOperator(IntEnum):
    """Comparison of a mutation filter."""

    EQ = 0
    GE = 1
    LE = 2
    IN = 3


class FilterRelation(IntEnum):
    """How a filter combines with the previous one."""

    AND = 0
    OR = 1


@dataclass
class Column:
    """A column written by a mutation."""

    name: str
    type: ColumnType
    length: int = 0


@dataclass
class Filter:
    """A condition selecting the rows a mutation applies to."""

    left: str
    operator: FilterOperator = FilterOperator.EQ
    right: Any = None
    relation: FilterRelation = FilterRelation.AND


def _plain_identifier(name: str) -> bool:
    try:
        quote_identifier(name)
    except OpError:
        return False
    return name != "*" and "." not in name


@dataclass
class TableMutation:
    """A change to the rows of one table."""

    db: str = ""
    table: str = ""
    action: MutationAction = MutationAction.INSERT
    key: str = ""
    indexes: Indexes | None = None
    filters: list[Filter] = field(default_factory=list)
    columns: list[Column] = field(default_factory=list)
    rows: list[dict[str, Any]] = field(default_factory=list)

    def validate(self) -> None:
        """Raise a validation error unless the mutation is complete and safe."""
        validate_database(self.db)
        if not _plain_identifier(self.table):
            raise validation(_OP, "table name is invalid")
        try:
            action = MutationAction(self.action)
        except ValueError:
            raise validation(_OP, f"unsupported mutation action: {self.action!r}") from None
        if self.key and not _plain_identifier(self.key):
            raise validation(_OP, "key column is invalid")
        names = self._validate_columns()
        for row in self.rows:
            unknown = sorted(set(row) - names)
            if unknown:
                raise validation(_OP, f"row has undeclared columns: {', '.join(unknown)}")
        self._validate_indexes()
        for item in self.filters:
            if not _plain_identifier(item.left):
                raise validation(_OP, f"filter column is invalid: {item.left}")
        selected = self.indexes is not None or bool(self.filters)
        if action in (MutationAction.INSERT, MutationAction.REPLACE, MutationAction.UPDATE):
            if not self.columns:
                raise validation(_OP, f"{action.value} mutation requires columns")
            if not self.rows:
                raise validation(_OP, f"{action.value} mutation requires at least one row")
        if action in (MutationAction.UPDATE, MutationAction.DELETE) and not selected:
            raise validation(_OP, f"{action.value} mutation requires indexes or filters")
        if action is MutationAction.DELETE and self.rows:
            raise validation(_OP, "delete mutation cannot carry rows")

    def _validate_columns(self) -> set[str]:
        names: set[str] = set()
        for column in self.columns:
            if not _plain_identifier(column.name):
                raise validation(_OP, f"column name is invalid: {column.name}")
            if column.name in names:
                raise validation(_OP, f"duplicate column: {column.name}")
            try:
                ColumnType(column.type)
            except ValueError:
                raise validation(_OP, f"unsupported column type: {column.type!r}") from None
            if column.length < 0:
                raise validation(_OP, f"column length cannot be negative: {column.name}")
            names.add(column.name)
        return names

    def _validate_indexes(self) -> None:
        if self.indexes is None:
            return
        if not _plain_identifier(self.indexes.key):
            raise validation(_OP, "index key column is invalid")
        kinds = sum(
            1
            for values in (self.indexes.int32, self.indexes.int64, self.indexes.strings)
            if values
        )
        if kinds != 1:
            raise validation(
                _OP, f"mutation indexes require exactly one index value type, got {kinds}"
            )