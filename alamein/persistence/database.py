"""
SQLite access for the relational collection store.
"""

import sqlite3
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Dict, List, Optional, Tuple

from ..core.exceptions import PersistenceError, ConfigurationError


UNIVERSITY_SCHEMA: Dict[str, str] = {
    "users": """
        CREATE TABLE IF NOT EXISTS users (
            username TEXT PRIMARY KEY,
            password TEXT NOT NULL,
            role TEXT NOT NULL,
            full_name TEXT NOT NULL,
            created_at TEXT,
            updated_at TEXT,
            last_login TEXT,
            is_active BOOLEAN DEFAULT 1,
            version INTEGER DEFAULT 1
        )
    """,
    "students": """
        CREATE TABLE IF NOT EXISTS students (
            student_id TEXT PRIMARY KEY,
            full_name TEXT NOT NULL,
            email TEXT NOT NULL,
            major TEXT NOT NULL,
            enrollment_year INTEGER NOT NULL,
            status TEXT DEFAULT 'ACTIVE',
            gpa REAL DEFAULT 0.0,
            created_at TEXT,
            updated_at TEXT,
            version INTEGER DEFAULT 1
        )
    """,
    "faculty": """
        CREATE TABLE IF NOT EXISTS faculty (
            faculty_id TEXT PRIMARY KEY,
            full_name TEXT NOT NULL,
            email TEXT NOT NULL,
            department TEXT NOT NULL,
            position TEXT NOT NULL,
            office_location TEXT,
            phone_number TEXT,
            created_at TEXT,
            updated_at TEXT,
            version INTEGER DEFAULT 1
        )
    """,
    "faculty_courses": """
        CREATE TABLE IF NOT EXISTS faculty_courses (
            faculty_id TEXT,
            course_id TEXT,
            position INTEGER NOT NULL,
            PRIMARY KEY (faculty_id, course_id)
        )
    """,
    "courses": """
        CREATE TABLE IF NOT EXISTS courses (
            course_id TEXT PRIMARY KEY,
            course_name TEXT NOT NULL,
            description TEXT,
            credit_hours INTEGER NOT NULL,
            instructor_id TEXT,
            max_students INTEGER DEFAULT 30,
            status TEXT DEFAULT 'OPEN',
            schedule TEXT,
            classroom TEXT,
            semester TEXT,
            year INTEGER,
            created_at TEXT,
            updated_at TEXT,
            version INTEGER DEFAULT 1
        )
    """,
    "course_enrollments": """
        CREATE TABLE IF NOT EXISTS course_enrollments (
            course_id TEXT,
            student_id TEXT,
            position INTEGER NOT NULL,
            PRIMARY KEY (course_id, student_id)
        )
    """,
    "course_prerequisites": """
        CREATE TABLE IF NOT EXISTS course_prerequisites (
            course_id TEXT,
            prerequisite_id TEXT,
            position INTEGER NOT NULL,
            PRIMARY KEY (course_id, prerequisite_id)
        )
    """,
    "student_enrollments": """
        CREATE TABLE IF NOT EXISTS student_enrollments (
            student_id TEXT,
            course_id TEXT,
            position INTEGER NOT NULL,
            PRIMARY KEY (student_id, course_id)
        )
    """,
    "student_grades": """
        CREATE TABLE IF NOT EXISTS student_grades (
            student_id TEXT,
            course_id TEXT,
            letter_grade TEXT,
            points REAL,
            percentage REAL,
            semester TEXT,
            PRIMARY KEY (student_id, course_id)
        )
    """,
    # Declared for completeness; no service reads or writes it.
    "departments": """
        CREATE TABLE IF NOT EXISTS departments (
            department_id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            location TEXT,
            head_of_department TEXT
        )
    """,
}


class DatabaseManager(ABC):
    """Relational backend used by the SQLite collection store."""

    @abstractmethod
    def execute_query(self, query: str, params: Optional[tuple] = None) -> List[Dict[str, Any]]:
        """Run a SELECT and return rows as dicts."""

    @abstractmethod
    def execute_transaction(self, queries: List[Tuple[str, Optional[tuple]]]) -> bool:
        """Run ``(query, params)`` pairs atomically."""

    @abstractmethod
    def create_tables(self, schema: Dict[str, str]) -> None:
        """Create every table of ``schema`` that does not exist yet."""

    @abstractmethod
    def table_exists(self, table_name: str) -> bool:
        pass


class SQLiteDatabase(DatabaseManager):
    """SQLite file database holding the university schema."""

    def __init__(self, database_path: str = "university.db"):
        self._database_path = database_path
        self._lock = threading.RLock()
        self.create_tables(UNIVERSITY_SCHEMA)

    @property
    def database_path(self) -> str:
        return self._database_path

    @contextmanager
    def _get_connection(self):
        """Open a connection for one call and always close it."""
        try:
            conn = sqlite3.connect(self._database_path, check_same_thread=False)
        except sqlite3.Error as e:
            raise PersistenceError(f"Cannot open database {self._database_path}: {str(e)}")
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    def execute_query(self, query: str, params: Optional[tuple] = None) -> List[Dict[str, Any]]:
        with self._lock, self._get_connection() as conn:
            try:
                rows = conn.execute(query, params or ()).fetchall()
            except sqlite3.Error as e:
                raise PersistenceError(f"Query failed: {str(e)}")
            return [dict(row) for row in rows]

    def execute_transaction(self, queries: List[Tuple[str, Optional[tuple]]]) -> bool:
        with self._lock, self._get_connection() as conn:
            try:
                for query, params in queries:
                    conn.execute(query, params or ())
                conn.commit()
                return True
            except sqlite3.Error as e:
                conn.rollback()
                raise PersistenceError(f"Transaction failed: {str(e)}")

    def create_tables(self, schema: Dict[str, str]) -> None:
        self.execute_transaction([(table_schema, None) for table_schema in schema.values()])

    def table_exists(self, table_name: str) -> bool:
        query = "SELECT name FROM sqlite_master WHERE type='table' AND name=?"
        return bool(self.execute_query(query, (table_name,)))


class DatabaseFactory:
    """Factory for creating database instances."""

    @staticmethod
    def create_database(database_type: str, **kwargs) -> DatabaseManager:
        """Create a database by type; only ``sqlite`` is supported."""
        if database_type.lower() == "sqlite":
            return SQLiteDatabase(**kwargs)
        raise ConfigurationError(f"Unsupported database type: {database_type}")
