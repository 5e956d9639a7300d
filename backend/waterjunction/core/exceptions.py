"""
Service-layer exceptions

Services raise these instead of HTTPException so they stay usable outside
a request. main.py registers a handler that turns them into
{"detail": message} responses with the matching status code.
"""


class ServiceError(Exception):
    """Base exception for business rule failures."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BadRequestError(ServiceError):
    """Request is well-formed but violates a business rule."""

    status_code = 400


class AuthenticationError(ServiceError):
    """Credentials are missing, wrong or expired."""

    status_code = 401


class PermissionDeniedError(ServiceError):
    """Authenticated user may not perform this action."""

    status_code = 403


class NotFoundError(ServiceError):
    """Requested record does not exist or is not visible."""

    status_code = 404


class ConfigurationError(ServiceError):
    """A required external integration is not configured."""

    status_code = 500


class ExternalServiceError(ServiceError):
    """An external provider rejected the request or was unreachable."""

    status_code = 502
