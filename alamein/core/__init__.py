"""
Core module containing the academic object model and base classes.
"""

from .entities import *
from .interfaces import *
from .exceptions import *
from .enums import *
from .permissions import ROLE_CAPABILITIES, has_capability, capabilities_for, is_admin

__all__ = [
    # Entities
    "AbstractEntity",
    "Grade",
    "Course",
    "Student",
    "Faculty",
    "User",

    # Interfaces
    "CollectionStore",
    "Repository",

    # Enums
    "UserRole",
    "StudentStatus",
    "CourseStatus",
    "Capability",

    # Permissions
    "ROLE_CAPABILITIES",
    "has_capability",
    "capabilities_for",
    "is_admin",

    # Exceptions
    "UniversityError",
    "ValidationError",
    "EnrollmentError",
    "AuthenticationError",
    "AuthorizationError",
    "ResourceNotFoundError",
    "DuplicateEntityError",
    "PersistenceError",
    "ConfigurationError",
]
