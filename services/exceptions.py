# services/exceptions.py
"""Errors raised by the service layer and mapped to HTTP responses by the routes."""


class ServiceError(Exception):
    kind = "internal"
    status = 500

    def __init__(self, message: str = "Server error"):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.kind, "message": self.message}


class BadRequest(ServiceError):
    kind = "bad_request"
    status = 400


class Conflict(ServiceError):
    kind = "conflict"
    status = 400


class NotFound(ServiceError):
    kind = "not_found"
    status = 404


class InvalidCredential(ServiceError):
    kind = "invalid_credential"
    status = 400


class Expired(ServiceError):
    kind = "expired"
    status = 400


class InvalidOrExpired(ServiceError):
    """Unknown and expired reset tokens are reported identically."""
    kind = "invalid_or_expired"
    status = 400


class Forbidden(ServiceError):
    kind = "forbidden"
    status = 403


class Unauthorized(ServiceError):
    kind = "unauthorized"
    status = 401


class DeliveryError(ServiceError):
    kind = "delivery_error"
    status = 500


class Internal(ServiceError):
    kind = "internal"
    status = 500
