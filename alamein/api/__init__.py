"""
API module for the REST implementation.
"""

from .rest_api import UniversityRestAPI

__all__ = [
    "UniversityRestAPI",
]
