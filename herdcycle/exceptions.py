"""
Domain exceptions.

Every error carries a human readable ``detail`` and a stable ``error_code``
so callers (scripts, the dashboard) can report them consistently.
"""
from typing import Optional


class HerdcycleError(Exception):
    """Base exception with consistent structure."""

    def __init__(self, detail: str, error_code: Optional[str] = None):
        super().__init__(detail)
        self.detail = detail
        self.error_code = error_code


class NotFoundError(HerdcycleError):
    """Resource not found."""

    def __init__(self, resource: str, identifier):
        super().__init__(
            detail=f"{resource} not found: {identifier}",
            error_code="NOT_FOUND"
        )
        self.resource = resource
        self.identifier = identifier


class ValidationError(HerdcycleError):
    """Validation error."""

    def __init__(self, detail: str, field: Optional[str] = None):
        error_code = f"VALIDATION_ERROR_{field.upper()}" if field else "VALIDATION_ERROR"
        super().__init__(detail=detail, error_code=error_code)
        self.field = field


class UnknownCattleTypeError(ValidationError):
    """Cattle type outside Bull/Cow/Steer/Heifer."""

    def __init__(self, cattle_type: str):
        super().__init__(f"Unknown cattle type: {cattle_type}", field="type")
        self.cattle_type = cattle_type


class PreconditionError(HerdcycleError):
    """Operation not applicable to this record (wrong species/type, missing link)."""

    def __init__(self, detail: str):
        super().__init__(detail=detail, error_code="PRECONDITION_FAILED")


class ConflictError(HerdcycleError):
    """Resource conflict (e.g., duplicate entry)."""

    def __init__(self, detail: str):
        super().__init__(detail=detail, error_code="CONFLICT")
