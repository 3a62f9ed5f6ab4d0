"""Error types shared by the whole package."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Broad category of a failure."""

    UNKNOWN = "unknown"
    NETWORK = "network"
    TIMEOUT = "timeout"
    CANCELED = "canceled"
    SERVER = "server"
    PROTOCOL = "protocol"
    DECODE = "decode"
    VALIDATION = "validation"
    UNSAFE_SQL = "unsafe_sql"
    READ_ONLY = "read_only"
    CLOSED = "closed"
    UNSUPPORTED = "unsupported"


class OpError(Exception):
    """An error raised by an operation, tagged with its kind and origin."""

    def __init__(
        self,
        kind: ErrorKind,
        op: str,
        message: str,
        *,
        code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.op = op
        self.message = message
        self.code = code

    def __str__(self) -> str:
        text = f"{self.op}: {self.kind.value}: {self.message}"
        if self.code is not None:
            text += f" (code {self.code})"
        return text

    def __repr__(self) -> str:
        return (
            f"OpError(kind={self.kind!r}, op={self.op!r}, "
            f"message={self.message!r}, code={self.code!r})"
        )


def is_kind(err: BaseException | None, kind: ErrorKind) -> bool:
    """Report whether err, or any error it was raised from, has the given kind."""
    seen: set[int] = set()
    while err is not None and id(err) not in seen:
        seen.add(id(err))
        if isinstance(err, OpError) and err.kind == kind:
            return True
        err = err.__cause__
    return False


def validation(op: str, message: str) -> OpError:
    """Build a validation error."""
    return OpError(ErrorKind.VALIDATION, op, message)


def unsupported(op: str, message: str) -> OpError:
    """Build an error for an operation that is not available."""
    return OpError(ErrorKind.UNSUPPORTED, op, message)


def closed_error(op: str) -> OpError:
    """Build the error raised when a closed resource is used."""
    return OpError(ErrorKind.CLOSED, op, "resource is closed")