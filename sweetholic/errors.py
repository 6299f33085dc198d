"""
Error taxonomy shared by the core and the routers.

Each error is an HTTPException carrying its status code, so core functions
raise them exactly like route handlers raise HTTPException. main.py renders
all of them as {"success": false, "message": ...}.
"""
from typing import Optional

from fastapi import HTTPException, status


class AppError(HTTPException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(status_code=status_code or self.status_code, detail=message)

    @property
    def message(self) -> str:
        return self.detail


class ValidationError(AppError):
    """Malformed, missing or out-of-range input."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND


class OwnershipError(AppError):
    """Caller lacks rights over the target entity."""

    status_code = status.HTTP_403_FORBIDDEN


class ConflictError(AppError):
    """Duplicate membership, reaction or follow edge."""

    status_code = status.HTTP_400_BAD_REQUEST


class TransactionError(AppError):
    """A multi-row write failed and was rolled back."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class AuthenticationError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
