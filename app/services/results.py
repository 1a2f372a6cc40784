"""
Operation results returned by the public booking engine surface.

Public operations never raise past their boundary: they return an
OperationResult holding either the payload or an ErrorInfo.
"""

import logging
from dataclasses import dataclass
from functools import wraps
from typing import Generic, Optional, TypeVar

from sqlalchemy.exc import SQLAlchemyError

from .errors import BookingEngineError, ErrorInfo, StoreUnavailable

logger = logging.getLogger(__name__)

T = TypeVar('T')


@dataclass
class OperationResult(Generic[T]):
    success: bool
    data: Optional[T] = None
    error: Optional[ErrorInfo] = None

    @classmethod
    def ok(cls, data: Optional[T] = None) -> "OperationResult[T]":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: ErrorInfo) -> "OperationResult[T]":
        return cls(success=False, error=error)

    def unwrap(self) -> T:
        """Return the payload or raise the error as an exception"""
        if not self.success:
            raise RuntimeError(f"{self.error.code}: {self.error.message}")
        return self.data


def operation_boundary(operation: str):
    """
    Wrap a service method so that it returns an OperationResult.

    The wrapped object must expose its SQLAlchemy session as `self.db`;
    any open transaction is rolled back before a failure is returned.
    """
    def decorator(func):
        @wraps(func)
        def wrapper(self, *args, **kwargs):
            try:
                return OperationResult.ok(func(self, *args, **kwargs))
            except BookingEngineError as e:
                self.db.rollback()
                logger.info(f"{operation} failed: {e.code} - {e.message}")
                return OperationResult.fail(e.to_info())
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error(f"{operation} store error: {e}", exc_info=True)
                return OperationResult.fail(StoreUnavailable().to_info())
        return wrapper
    return decorator
