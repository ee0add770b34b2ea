"""Module: errors.

Domain exceptions raised by the rules module and services. Each carries the
HTTP status and machine-readable code that ``main.py`` renders.
"""


class VetClinicError(Exception):
    status_code = 500
    code = "internal_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(VetClinicError):
    status_code = 400
    code = "validation_error"


class AuthenticationError(VetClinicError):
    status_code = 401
    code = "authentication_failed"


class PermissionDeniedError(VetClinicError):
    status_code = 403
    code = "permission_denied"


class NotFoundError(VetClinicError):
    status_code = 404
    code = "not_found"


class InvalidTransitionError(VetClinicError):
    status_code = 409
    code = "invalid_transition"

    def __init__(self, current: str, target: str | None = None, message: str | None = None):
        if message is None:
            if target:
                message = f"Cannot move appointment from '{current}' to '{target}'"
            else:
                message = f"Appointment in '{current}' status cannot be changed"
        super().__init__(message)
        self.current = current
        self.target = target


class SlotUnavailableError(VetClinicError):
    status_code = 409
    code = "slot_unavailable"


class DailyLimitReachedError(VetClinicError):
    status_code = 409
    code = "daily_limit_reached"


class BackendError(VetClinicError):
    status_code = 503
    code = "backend_error"
