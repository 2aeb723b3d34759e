"""Domain error taxonomy shared by the store, the engines, and the services.

Every error carries a machine-readable ``code`` that the HTTP layer maps to a
status code in one place (see ``campusboard.main``).
"""


class CommunityError(Exception):
    """Base community error."""

    def __init__(self, message: str, code: str = "community_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class NotFoundError(CommunityError):
    """Requested resource does not exist or is not active."""

    def __init__(self, message: str = "Resource not found", code: str = "not_found"):
        super().__init__(message, code)


class PostNotFoundError(NotFoundError):
    """Post not found or deleted."""

    def __init__(self, message: str = "Post not found"):
        super().__init__(message, "post_not_found")


class CommentNotFoundError(NotFoundError):
    """Comment not found or deleted."""

    def __init__(self, message: str = "Comment not found"):
        super().__init__(message, "comment_not_found")


class UserNotFoundError(NotFoundError):
    """Acting user is unknown to the user directory."""

    def __init__(self, message: str = "User not found"):
        super().__init__(message, "user_not_found")


class ForbiddenError(CommunityError):
    """Actor may not perform the operation."""

    def __init__(self, message: str = "Permission denied", code: str = "forbidden"):
        super().__init__(message, code)


class DepartmentNotVerifiedError(ForbiddenError):
    """Actor has not verified their department yet."""

    def __init__(self, message: str = "Department verification required"):
        super().__init__(message, "department_not_verified")


class InvalidRequestError(CommunityError):
    """Request is well-formed but violates a domain rule."""

    def __init__(self, message: str = "Invalid request"):
        super().__init__(message, "invalid_request")


class ConflictError(CommunityError):
    """A compare-and-set write lost a race.

    Raised by the entity store when the stored reaction state no longer
    matches the state a transition was planned from. The reaction engine
    re-reads and retries; callers never see it.
    """

    def __init__(self, message: str = "Concurrent modification"):
        super().__init__(message, "conflict")


class RetryExhaustedError(CommunityError):
    """A contended write kept conflicting past the retry budget."""

    def __init__(self, message: str = "Too much contention, try again"):
        super().__init__(message, "retry_exhausted")
