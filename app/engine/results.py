"""Operation results returned by the reservation engine"""

import functools
from dataclasses import dataclass, field
from typing import Any, Dict

from sqlalchemy.exc import SQLAlchemyError
import structlog

logger = structlog.get_logger()

OPERATION_FAILED = "Operation failed."


@dataclass
class OperationResult:
    """
    Outcome of one user-facing operation.

    Validation and business-rule rejections are ordinary failed results with a
    message that can be shown to the user as-is.
    """

    success: bool
    message: str
    data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, message: str = "OK", **data: Any) -> "OperationResult":
        return cls(success=True, message=message, data=data)

    @classmethod
    def fail(cls, message: str, **data: Any) -> "OperationResult":
        return cls(success=False, message=message, data=data)

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)


def guarded(operation):
    """
    Turn a data-access failure inside a service method into a failed result.

    The session is rolled back so the caller's next operation starts clean.
    """

    @functools.wraps(operation)
    async def wrapper(self, *args, **kwargs) -> OperationResult:
        try:
            return await operation(self, *args, **kwargs)
        except SQLAlchemyError as e:
            logger.error(
                "Data access failed",
                operation=operation.__qualname__,
                error=str(e),
            )
            await self.ctx.repo.rollback()
            return OperationResult.fail(OPERATION_FAILED)

    return wrapper
