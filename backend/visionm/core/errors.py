"""
Workflow error taxonomy.

Services raise these; routers turn them into the JSON envelope their endpoint
uses. `error` is the human readable string the client shows in a toast,
`code` is the machine-distinguishable kind.
"""
from typing import Any, Optional

from fastapi.responses import JSONResponse


class WorkflowError(Exception):
    status_code = 400
    code = "WORKFLOW_ERROR"

    def __init__(self, error: str, details: Optional[Any] = None, status_code: Optional[int] = None):
        super().__init__(error)
        self.error = error
        self.details = details
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict:
        body = {"error": self.error, "code": self.code}
        if self.details is not None:
            body["details"] = self.details
        return body


class NotFound(WorkflowError):
    status_code = 404
    code = "NOT_FOUND"


class AlreadyTerminal(WorkflowError):
    code = "ALREADY_TERMINAL"


class AlreadyAccepted(AlreadyTerminal):
    code = "ALREADY_ACCEPTED"


class Revoked(AlreadyTerminal):
    code = "REVOKED"


class Expired(WorkflowError):
    code = "EXPIRED"


class EmailMismatch(WorkflowError):
    code = "EMAIL_MISMATCH"


class ValidationFailed(WorkflowError):
    code = "VALIDATION_ERROR"


class Forbidden(WorkflowError):
    status_code = 403
    code = "FORBIDDEN"


class Conflict(WorkflowError):
    code = "CONFLICT"


class UpstreamFailure(WorkflowError):
    status_code = 500
    code = "UPSTREAM_FAILURE"


class PartialFailure(WorkflowError):
    status_code = 500
    code = "PARTIAL_FAILURE"


def upstream_details(exc: Exception) -> dict:
    """Provider message/code for operator diagnosis."""
    details = {"message": str(exc)}
    code = getattr(exc, "code", None) or getattr(exc, "status_code", None)
    if code is not None:
        details["code"] = code if isinstance(code, (int, str)) else str(code)
    return details


def error_response(exc: WorkflowError, flag: str = "success") -> JSONResponse:
    """`flag` is the endpoint's boolean key: ``success`` or ``ok``."""
    return JSONResponse(status_code=exc.status_code, content={flag: False, **exc.to_dict()})
