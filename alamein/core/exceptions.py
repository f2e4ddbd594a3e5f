"""
Custom exceptions for the Alamein platform.
"""

from typing import Optional, Any, Dict


class UniversityError(Exception):
    """Base exception for all platform errors."""

    def __init__(self, message: str, error_code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}


class ValidationError(UniversityError):
    """Raised when data validation fails."""
    pass


class EnrollmentError(UniversityError):
    """Raised when an operation needs an enrollment that does not exist."""
    pass


class AuthenticationError(UniversityError):
    """Raised when credentials or a session are missing or invalid."""
    pass


class AuthorizationError(UniversityError):
    """Raised when access is denied."""
    pass


class ResourceNotFoundError(UniversityError):
    """Raised when a requested resource is not found."""
    pass


class DuplicateEntityError(UniversityError):
    """Raised when attempting to create a duplicate entity."""
    pass


class PersistenceError(UniversityError):
    """Raised when persistence operations fail."""
    pass


class ConfigurationError(UniversityError):
    """Raised when configuration is invalid."""
    pass
