"""
Verification Errors
===================

Structured error taxonomy for the verification engine.

Only ``FormatError`` and ``ServiceError`` are ever raised. ``MissingColumnError``
is built as a value and reported alongside results, because a dataset without
an identifier column is skipped rather than treated as a failure.
"""

from typing import Any, Dict, Optional


class VerificationError(Exception):
    """
    Base exception for verification errors.
    
    Provides structured error information with error codes for programmatic handling.
    """
    
    def __init__(self, message: str, error_code: str = "VERIFICATION_ERROR", context: Optional[Dict[str, Any]] = None):
        self.message = message
        self.error_code = error_code
        self.context = context or {}
        super().__init__(self.message)
    
    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON serialization."""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "context": self.context,
        }


class FormatError(VerificationError):
    """Raised when dataset text does not have the preamble + header layout."""
    
    def __init__(self, reason: str, filename: Optional[str] = None, line_count: Optional[int] = None):
        super().__init__(
            message=f"Invalid CSV format: {reason}",
            error_code="FORMAT_ERROR",
            context={"filename": filename, "line_count": line_count},
        )
        self.reason = reason
        self.filename = filename
        self.line_count = line_count


class MissingColumnError(VerificationError):
    """Describes a dataset that has no resolvable identifier column."""
    
    def __init__(self, filename: str, headers: Optional[list] = None):
        super().__init__(
            message=f"No identifier column found in '{filename}'",
            error_code="MISSING_COLUMN",
            context={"filename": filename, "headers": list(headers or [])},
        )
        self.filename = filename


class ServiceError(VerificationError):
    """Raised when a recognition service fails. The message is kept verbatim."""
    
    def __init__(self, message: str, provider: str = "unknown", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code="SERVICE_ERROR",
            context={"provider": provider, "details": details or {}},
        )
        self.provider = provider
        self.details = details or {}
    
    def __str__(self) -> str:
        return f"[{self.provider}] {self.message}"
