"""Base exceptions for neo-access.

All exceptions inherit from AccessControlError and carry an error code and
structured details so callers can report them without parsing messages.
"""

from typing import Any, Dict, Optional


class AccessControlError(Exception):
    """Base exception for all neo-access errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        *args,
        **kwargs
    ):
        super().__init__(message, *args, **kwargs)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Create standardized error payload from exception."""
        return {
            "error": {
                "code": self.error_code,
                "message": self.message,
                "details": self.details,
                "type": self.__class__.__name__,
            }
        }
