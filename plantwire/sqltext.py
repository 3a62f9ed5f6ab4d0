"""Safe construction of SQL identifiers and literals."""

from __future__ import annotations

import re

from .errors import ErrorKind, OpError

_IDENT_PART = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


def _unsafe(op: str, message: str) -> OpError:
    return OpError(ErrorKind.UNSAFE_SQL, op, message)


def quote_identifier(name: str) -> str:
    """Return name as a double-quoted identifier; dotted parts are quoted one by one."""
    if name == "*":
        return "*"
    if not isinstance(name, str) or not name:
        raise _unsafe("sql.quote_identifier", "identifier is empty")
    parts = name.split(".")
    if not all(_IDENT_PART.fullmatch(part) for part in parts):
        raise _unsafe("sql.quote_identifier", f"unsafe identifier: {name!r}")
    return ".".join(f'"{part}"' for part in parts)


def literal_string(value: str) -> str:
    """Return value as a single-quoted SQL string literal."""
    return "'" + value.replace("'", "''") + "'"


def qualified_table(db: str, table: str) -> str:
    """Return the database-qualified table name, as in 'W3.Realtime'."""
    for label, part in (("database", db), ("table", table)):
        if not isinstance(part, str) or not _IDENT_PART.fullmatch(part):
            raise _unsafe("sql.qualified_table", f"unsafe {label} name: {part!r}")
    return f"{db}.{table}"