# socialnet/services/errors.py
"""
Error taxonomy shared by every service.

Services raise these; the gateway turns them into HTTP responses with a
single exception handler (see socialnet/main.py).
"""


class ServiceError(Exception):
    code = "internal"
    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class InvalidArgument(ServiceError):
    code = "invalid_argument"
    status_code = 400


class Unauthenticated(ServiceError):
    code = "unauthenticated"
    status_code = 401


class PermissionDenied(ServiceError):
    code = "permission_denied"
    status_code = 403


class NotFound(ServiceError):
    code = "not_found"
    status_code = 404


class AlreadyExists(ServiceError):
    code = "already_exists"
    status_code = 409


class BadGateway(ServiceError):
    code = "bad_gateway"
    status_code = 502


class Internal(ServiceError):
    pass
