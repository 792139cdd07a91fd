from typing import Optional, Dict, Any


class FinanceAPIException(Exception):
    """Base exception for the finance API."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class InvalidDateRangeError(FinanceAPIException):
    """Raised when a fromDate/toDate query parameter cannot be parsed."""

    pass


class ResourceNotFoundError(FinanceAPIException):
    """Raised when a requested resource is not found."""

    pass


class PermissionDeniedError(FinanceAPIException):
    """Raised when user doesn't have permission for an action."""

    pass


class DuplicateResourceError(FinanceAPIException):
    """Raised when a unique name is already taken for the user."""

    pass
