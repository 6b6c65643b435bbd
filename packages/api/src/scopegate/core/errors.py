# This project was developed with assistance from AI tools.
"""Error taxonomy for authentication, authorization and lifecycle checks.

Every failure here comes from a policy or state check, never from transient
infrastructure trouble, so none of them is retryable. Each class carries the
HTTP status the API surfaces. Scope failures are kept distinct internally
but share 404 on the wire so out-of-scope resources are indistinguishable
from missing ones.
"""


class ScopeGateError(Exception):
    """Base class for all domain errors."""

    status_code: int = 500
    default_detail: str = "Request failed"

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


# -- 401 ---------------------------------------------------------------------


class Unauthenticated(ScopeGateError):
    status_code = 401
    default_detail = "Authentication required"


class TokenExpired(Unauthenticated):
    default_detail = "Token has expired"


class TokenMalformed(Unauthenticated):
    default_detail = "Invalid token"


class InvalidCredentials(Unauthenticated):
    default_detail = "Invalid credentials"


class SessionRevoked(Unauthenticated):
    default_detail = "Session has been revoked"


# -- 403 ---------------------------------------------------------------------


class Forbidden(ScopeGateError):
    status_code = 403
    default_detail = "Insufficient permissions"


class NoSuchRule(Forbidden):
    default_detail = "No access rule permits this action"


class RoleMismatch(Forbidden):
    default_detail = "Route role does not match the authenticated role"


class AlreadyDeleted(Forbidden):
    default_detail = "Resource has already been deleted"


# -- 404 ---------------------------------------------------------------------


class NotFound(ScopeGateError):
    status_code = 404
    default_detail = "Resource not found"


class ScopeMismatch(NotFound):
    """Requested scope is not reachable from the principal's scope path."""


class ScopeViolation(NotFound):
    """Resource lies outside the principal's scope path."""


# -- 409 / 422 ---------------------------------------------------------------


class Conflict(ScopeGateError):
    status_code = 409
    default_detail = "Conflict"


class DuplicateCredential(Conflict):
    default_detail = "An account with this role and email already exists"


class VersionConflict(Conflict):
    default_detail = "Resource was modified concurrently"


class InvalidQuery(ScopeGateError):
    status_code = 422
    default_detail = "Invalid query"


class InvalidRequest(ScopeGateError):
    status_code = 422
    default_detail = "Invalid request"


# -- startup -----------------------------------------------------------------


class PolicyError(ScopeGateError):
    """Policy document is inconsistent. Raised at load time, never per request."""

    default_detail = "Invalid policy document"
