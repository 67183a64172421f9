"""
Browser operation exception hierarchy.

Executors raise these internally and convert them to error results at
their boundary, so callers always receive a well-formed tool result.

Exception Hierarchy:
    BrowserOperationError (base)
    ├── NoActivePageError
    ├── ElementNotFoundError
    ├── ElementNotInteractableError
    ├── AmbiguousMatchError
    └── NavigationTimeoutError
"""

from typing import Any, Dict, Optional


class BrowserOperationError(Exception):
    """Base exception for browser operations.

    Attributes:
        code: Stable machine-readable error code.
        details: Additional context dictionary.
    """

    code = "browser_error"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for structured logging."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.code,
            "message": str(self.args[0]) if self.args else "",
            "details": self.details,
        }


class NoActivePageError(BrowserOperationError):
    """No tab is available for the operation to target."""

    code = "no_active_page"


class ElementNotFoundError(BrowserOperationError):
    """A selector matched nothing within its wait bound."""

    code = "element_not_found"


class ElementNotInteractableError(BrowserOperationError):
    """A matched element was not visible or not enabled."""

    code = "element_not_interactable"


class AmbiguousMatchError(BrowserOperationError):
    """Several elements matched and none could be chosen."""

    code = "ambiguous_match"


class NavigationTimeoutError(BrowserOperationError):
    """An automation call exceeded its time bound."""

    code = "navigation_timeout"
