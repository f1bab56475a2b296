"""
API error types.

Services raise their own domain exceptions (ExperimentNotFound, InquiryPending,
...); routers translate them into one of these. Every APIException renders as

    {"detail": "...", "error_code": "...", "field": "..."}

with `field` present only for validation errors.
"""
from fastapi import HTTPException, status
from typing import Any, Dict, Optional


class APIException(HTTPException):
    """HTTPException with a machine-readable error code."""

    error_code = "API_ERROR"

    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: Optional[str] = None,
        headers: Optional[Dict[str, Any]] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        if error_code:
            self.error_code = error_code

    def to_body(self) -> Dict[str, Any]:
        return {"detail": self.detail, "error_code": self.error_code}


class NotFoundError(APIException):
    """Missing, or owned by someone else. The two are not distinguished."""

    error_code = "NOT_FOUND"

    def __init__(self, resource: str, identifier: str):
        super().__init__(status.HTTP_404_NOT_FOUND, f"{resource} not found: {identifier}")


class ValidationError(APIException):
    """A request that parsed but breaks a domain rule (rating outside its scale, unknown node)."""

    error_code = "VALIDATION_ERROR"

    def __init__(self, detail: str, field: Optional[str] = None):
        super().__init__(status.HTTP_422_UNPROCESSABLE_ENTITY, detail)
        self.field = field
        if field:
            self.error_code = f"VALIDATION_ERROR_{field.upper()}"

    def to_body(self) -> Dict[str, Any]:
        body = super().to_body()
        if self.field:
            body["field"] = self.field
        return body


class UnauthorizedError(APIException):
    """Missing or unverifiable bearer token."""

    error_code = "UNAUTHORIZED"

    def __init__(self, detail: str = "Authentication required"):
        super().__init__(
            status.HTTP_401_UNAUTHORIZED,
            detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class ConflictError(APIException):
    """The change does not fit current state: a second active experiment, a closed one, a pending inquiry."""

    error_code = "CONFLICT"

    def __init__(self, detail: str):
        super().__init__(status.HTTP_409_CONFLICT, detail)
