"""
Application error type shared by services and the HTTP layer.

Every failure the API reports on purpose is an ``AppError`` whose ``kind``
selects the HTTP status and the machine-readable code of the error envelope:

    {"error": {"code", "message", "details", "timestamp", "path"}}
"""
from enum import Enum
from typing import Any, Optional


class ErrorKind(Enum):
    """Closed set of error kinds: (HTTP status, machine code)."""
    VALIDATION = (400, "VALIDATION_ERROR")
    UNAUTHORIZED = (401, "UNAUTHORIZED")
    FORBIDDEN = (403, "FORBIDDEN")
    NOT_FOUND = (404, "NOT_FOUND")
    CONFLICT = (409, "CONFLICT")
    INTERNAL = (500, "INTERNAL_SERVER_ERROR")

    @property
    def status_code(self) -> int:
        return self.value[0]

    @property
    def code(self) -> str:
        return self.value[1]

    @classmethod
    def from_status(cls, status_code: int) -> "ErrorKind":
        for kind in cls:
            if kind.status_code == status_code:
                return kind
        return cls.VALIDATION if 400 <= status_code < 500 else cls.INTERNAL


class AppError(Exception):
    """An expected failure tagged with its ``ErrorKind``."""

    def __init__(self, kind: ErrorKind, message: str, details: Any = None):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.details = details

    @property
    def status_code(self) -> int:
        return self.kind.status_code

    @property
    def code(self) -> str:
        return self.kind.code

    def __repr__(self) -> str:
        return f"AppError({self.kind.name}, {self.message!r})"

    @classmethod
    def validation(cls, message: str, details: Any = None) -> "AppError":
        return cls(ErrorKind.VALIDATION, message, details)

    @classmethod
    def not_found(cls, resource: str, resource_id: Optional[Any] = None) -> "AppError":
        message = f"{resource} not found"
        if resource_id is not None:
            message = f"{message}: {resource_id}"
        return cls(ErrorKind.NOT_FOUND, message)

    @classmethod
    def unauthorized(cls, message: str = "Authentication required") -> "AppError":
        return cls(ErrorKind.UNAUTHORIZED, message)

    @classmethod
    def forbidden(cls, message: str = "Access denied") -> "AppError":
        return cls(ErrorKind.FORBIDDEN, message)

    @classmethod
    def conflict(cls, message: str, details: Any = None) -> "AppError":
        return cls(ErrorKind.CONFLICT, message, details)

    @classmethod
    def internal(cls, message: str = "Internal server error", details: Any = None) -> "AppError":
        return cls(ErrorKind.INTERNAL, message, details)
