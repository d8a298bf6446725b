# ris/api/errors.py
"""Converts ServiceResult failures into HTTP errors."""
from typing import TypeVar

from fastapi import HTTPException, status

from ris.core.result import ErrorKind, ServiceResult

T = TypeVar("T")

STATUS_BY_KIND = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.PRECONDITION_FAILED: status.HTTP_412_PRECONDITION_FAILED,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def raise_for_result(result: ServiceResult[T]) -> T:
    """Return the result's data, or raise the HTTPException matching its error kind."""
    if result.ok:
        return result.data
    error = result.error
    raise HTTPException(
        status_code=STATUS_BY_KIND[error.kind],
        detail={"kind": error.kind.value, "message": error.message, "field": error.field},
    )
