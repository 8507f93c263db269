"""Error taxonomy shared by the repository, the policy and the HTTP layer.

Each error carries a short message that is safe to show to the user. The
HTTP layer maps the class to a status code; nothing else about the failure
leaves the process.
"""


class PortalError(Exception):
    """Base class for expected, user-facing failures."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(PortalError):
    """A lookup by id found nothing."""

    status_code = 404


class ValidationFailure(PortalError):
    """A write carried a missing or malformed field."""

    status_code = 422


class AuthorizationDenied(PortalError):
    """The acting user may not perform the operation."""

    status_code = 403


class AuthenticationFailure(PortalError):
    """Bad credentials, or a missing or expired session token."""

    status_code = 401


class ConstraintViolation(PortalError):
    """The store rejected a write (duplicate email, dangling reference)."""

    status_code = 409
