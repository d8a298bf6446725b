# ris/core/result.py
"""
Service result type.

Services return a ServiceResult for outcomes the caller is expected to branch
on (not found, failed precondition, identifier conflict). Unexpected faults are
raised and converted to INTERNAL at the API boundary.
"""
import enum
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class ErrorKind(str, enum.Enum):
    VALIDATION = "VALIDATION"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    PRECONDITION_FAILED = "PRECONDITION_FAILED"
    INTERNAL = "INTERNAL"


@dataclass(frozen=True)
class ServiceError:
    kind: ErrorKind
    message: str
    field: Optional[str] = None


@dataclass(frozen=True)
class ServiceResult(Generic[T]):
    data: Optional[T] = None
    error: Optional[ServiceError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, data: T) -> "ServiceResult[T]":
        return cls(data=data)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str, field: Optional[str] = None) -> "ServiceResult[T]":
        return cls(error=ServiceError(kind=kind, message=message, field=field))

    def __repr__(self) -> str:
        if self.ok:
            return f"<ServiceResult(ok, data={self.data!r})>"
        return f"<ServiceResult({self.error.kind.value}, message='{self.error.message}')>"
