"""Application error taxonomy.

Services raise these; the handlers registered in ``main.create_app`` turn
them into ``{"success": false, "message": ...}`` responses.
"""

from typing import Any, Dict, Optional


class AppError(Exception):
    status_code = 500
    default_message = "Server error"

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"success": False, "message": self.message}
        if self.details:
            body["details"] = self.details
        return body


class Unauthorized(AppError):
    status_code = 401
    default_message = "Not authorized"


class Forbidden(AppError):
    status_code = 403
    default_message = "Access denied"


class NotFound(AppError):
    status_code = 404
    default_message = "Not found"


class Conflict(AppError):
    status_code = 409
    default_message = "Already exists"


class InvalidOperation(AppError):
    status_code = 400
    default_message = "Invalid operation"


class ValidationFailed(AppError):
    status_code = 400
    default_message = "Invalid request"


class IntegrationError(AppError):
    """A third-party API (AI, calendar, billing) failed."""

    status_code = 502
    default_message = "External service error"


class DependencyUnavailable(AppError):
    """Database or external API is not configured or not reachable."""

    status_code = 503
    default_message = "Service not configured"


class InternalError(AppError):
    status_code = 500
    default_message = "Server error"
