# app/utils/errors.py
"""
Service-layer errors.

Services raise these instead of HTTPException so they stay usable outside a
request; utils.controller.handle_service_error maps them to HTTP statuses.
"""


class ServiceError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ServiceError):
    status_code = 400


class ConflictError(ServiceError):
    """Duplicate report, already-ended session and similar"""
    status_code = 400


class PermissionDeniedError(ServiceError):
    status_code = 403


class NotFoundError(ServiceError):
    status_code = 404


class ExternalServiceError(ServiceError):
    """A third-party provider failed or timed out"""
    status_code = 502
