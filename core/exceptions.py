from typing import Optional


class DomainError(Exception):
    """Base exception for business rule violations.

    Carries a machine-readable ``code`` next to the human message and the
    HTTP status the API reports it with.
    """

    status_code = 400
    code = "DOMAIN_ERROR"

    def __init__(self, message: str, code: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code


class NotFoundError(DomainError):
    """Raised when a referenced branch or key does not exist."""

    status_code = 404
    code = "NOT_FOUND"


class UnauthorizedError(DomainError):
    """Raised when the acting identity may not touch a branch."""

    status_code = 401
    code = "UNAUTHORIZED"


class InvalidOperationError(DomainError):
    """Raised for operations the branch graph rejects, such as self-links."""

    status_code = 400
    code = "INVALID_OPERATION"
