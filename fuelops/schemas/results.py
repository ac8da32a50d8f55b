"""Discriminated operation results shared by the services."""

from pydantic import BaseModel

from fuelops.core.errors import ErrorCode


class OperationResult(BaseModel):
    """Outcome of a mutating operation. ``error_code`` is set iff it failed."""

    success: bool
    error: str | None = None
    error_code: ErrorCode | None = None

    @classmethod
    def ok(cls, **payload):
        return cls(success=True, **payload)

    @classmethod
    def fail(cls, code: ErrorCode, message: str, **payload):
        return cls(success=False, error=message, error_code=code, **payload)
