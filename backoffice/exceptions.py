"""Domain error taxonomy.

Services raise these; ``backoffice.api.errors`` turns them into RFC 7807
problem responses. Each class carries the HTTP status it maps to.
"""

from typing import Any, Dict, List, Optional


class BackofficeError(Exception):
    """Base class for all errors surfaced to API callers"""

    status_code: int = 500
    title: str = "Internal Server Error"
    error_type: str = "internal_server_error"

    def __init__(self, detail: str, errors: Optional[List[Dict[str, str]]] = None):
        super().__init__(detail)
        self.detail = detail
        self.errors = errors

    def extra(self) -> Dict[str, Any]:
        """Additional members added to the problem document"""
        return {}


class ValidationError(BackofficeError):
    """Missing or out-of-range input"""

    status_code = 400
    title = "Validation Error"
    error_type = "validation_error"


class InvalidTransition(BackofficeError):
    """Requested project status move is not in the transition table"""

    status_code = 400
    title = "Invalid Status Transition"
    error_type = "invalid_transition"

    def __init__(self, from_status: str, to_status: str):
        super().__init__(f"Invalid status transition from {from_status} to {to_status}")
        self.from_status = from_status
        self.to_status = to_status

    def extra(self) -> Dict[str, Any]:
        return {"from_status": self.from_status, "to_status": self.to_status}


class PreconditionFailed(BackofficeError):
    """Operation not allowed in the entity's current state"""

    status_code = 400
    title = "Precondition Failed"
    error_type = "precondition_failed"


class Unauthorized(BackofficeError):
    status_code = 401
    title = "Unauthorized"
    error_type = "unauthorized"


class Forbidden(BackofficeError):
    status_code = 403
    title = "Forbidden"
    error_type = "forbidden"


class NotFound(BackofficeError):
    status_code = 404
    title = "Not Found"
    error_type = "not_found"


class ConcurrentModification(BackofficeError):
    """The row changed between read and compare-and-swap write"""

    status_code = 409
    title = "Conflict"
    error_type = "conflict"


class DuplicateAttendance(BackofficeError):
    status_code = 409
    title = "Conflict"
    error_type = "duplicate_attendance"


class UpstreamFailure(BackofficeError):
    """Object storage, rendering or another external collaborator failed"""

    status_code = 502
    title = "Bad Gateway"
    error_type = "bad_gateway"
