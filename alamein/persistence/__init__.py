"""
Persistence module: SQLite access, collection stores and repositories.
"""

from .database import DatabaseManager, SQLiteDatabase, DatabaseFactory, UNIVERSITY_SCHEMA
from .stores import JsonFileStore, SQLiteStore, StoreFactory
from .repositories import (
    BaseRepository, UserRepository, StudentRepository,
    FacultyRepository, CourseRepository, create_repositories
)

__all__ = [
    "DatabaseManager",
    "SQLiteDatabase",
    "DatabaseFactory",
    "UNIVERSITY_SCHEMA",
    "JsonFileStore",
    "SQLiteStore",
    "StoreFactory",
    "BaseRepository",
    "UserRepository",
    "StudentRepository",
    "FacultyRepository",
    "CourseRepository",
    "create_repositories",
]
