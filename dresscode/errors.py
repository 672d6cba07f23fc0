# Overview: Error taxonomy shared by services and routes.

"""
Service errors carry an HTTP status classification and a human-readable
message. Routes render them as {"error": ..., "details": ...}; anything that
is not a ServiceError is logged and surfaced as a generic 500.
"""


class ServiceError(Exception):
    """Base class for expected, user-visible failures."""
    status_code = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        body = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class BadRequest(ServiceError):
    """Validation or business-rule violation."""
    status_code = 400


class InsufficientStock(BadRequest):
    """Requested quantity exceeds what is on hand."""

    def __init__(self, message: str = "Insufficient stock", details: dict | None = None):
        super().__init__(message, details)


class Unauthorized(ServiceError):
    status_code = 401


class Forbidden(ServiceError):
    status_code = 403


class NotFound(ServiceError):
    status_code = 404


class Conflict(ServiceError):
    status_code = 409


class InternalError(ServiceError):
    """Unexpected datastore or provider failure."""
    status_code = 500
