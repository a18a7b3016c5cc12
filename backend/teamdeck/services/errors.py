class ServiceError(Exception):
    """Base error for resource service operations."""


class NotAuthenticated(ServiceError):
    """Raised when no registered user is attached to the request."""


class NotAuthorized(ServiceError):
    """Raised when the caller's permission level is insufficient."""


class NotFound(ServiceError):
    """Raised when a referenced resource does not exist."""


class DuplicateAssignment(ServiceError):
    """Raised when the assignee is already assigned to the resource."""


class DuplicateMembership(ServiceError):
    """Raised when the user already has a membership row on the team."""


class InvariantViolation(ServiceError):
    """Raised when a change would break a structural rule of the data."""
