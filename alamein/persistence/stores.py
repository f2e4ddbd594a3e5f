"""
Collection stores: where each service's whole collection is written.

Exactly one store backs a running platform. ``JsonFileStore`` keeps one JSON
document per collection; ``SQLiteStore`` maps the same records onto the
relational university schema.
"""

import json
import os
import tempfile
import threading
from collections import defaultdict
from typing import Any, Dict, List

from ..core.exceptions import ConfigurationError, PersistenceError
from ..core.interfaces import CollectionStore, Record
from .database import DatabaseFactory, DatabaseManager


class JsonFileStore(CollectionStore):
    """File-based store writing ``<base_path>/<collection>.json``."""

    def __init__(self, base_path: str = "data"):
        self._base_path = base_path
        self._lock = threading.RLock()
        self._ensure_directory_exists()

    def _ensure_directory_exists(self) -> None:
        os.makedirs(self._base_path, exist_ok=True)

    def _get_collection_path(self, name: str) -> str:
        return os.path.join(self._base_path, f"{name}.json")

    def load_collection(self, name: str) -> List[Record]:
        with self._lock:
            path = self._get_collection_path(name)
            if not os.path.exists(path) or os.path.getsize(path) == 0:
                return []
            try:
                with open(path, "r", encoding="utf-8") as f:
                    document = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                raise PersistenceError(f"Failed to read collection '{name}': {str(e)}")

            records = document.get("records") if isinstance(document, dict) else None
            if not isinstance(records, list):
                raise PersistenceError(f"Collection file for '{name}' is malformed")
            return records

    def save_collection(self, name: str, records: List[Record]) -> None:
        """Write the collection to a temp file, then rename it over the old one."""
        with self._lock:
            path = self._get_collection_path(name)
            tmp_path = None
            try:
                self._ensure_directory_exists()
                fd, tmp_path = tempfile.mkstemp(prefix=f".{name}.", suffix=".tmp", dir=self._base_path)
                try:
                    f = os.fdopen(fd, "w", encoding="utf-8")
                except BaseException:
                    os.close(fd)
                    raise
                with f:
                    json.dump({"collection": name, "records": records}, f, indent=2)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_path, path)
                tmp_path = None
            except (OSError, TypeError, ValueError) as e:
                raise PersistenceError(f"Failed to save collection '{name}': {str(e)}")
            finally:
                if tmp_path and os.path.exists(tmp_path):
                    os.remove(tmp_path)

    def is_empty(self, name: str) -> bool:
        return not self.load_collection(name)

    def describe(self) -> str:
        return f"file:{os.path.abspath(self._base_path)}"


class SQLiteStore(CollectionStore):
    """Relational store over the university schema."""

    _MAIN_TABLES = {
        "users": "users",
        "students": "students",
        "faculty": "faculty",
        "courses": "courses",
    }

    def __init__(self, database: DatabaseManager):
        self._database = database
        self._lock = threading.RLock()

    def _main_table(self, name: str) -> str:
        try:
            return self._MAIN_TABLES[name]
        except KeyError:
            raise PersistenceError(f"Unknown collection: {name}")

    def load_collection(self, name: str) -> List[Record]:
        self._main_table(name)
        with self._lock:
            return getattr(self, f"_load_{name}")()

    def save_collection(self, name: str, records: List[Record]) -> None:
        self._main_table(name)
        with self._lock:
            try:
                queries = getattr(self, f"_save_{name}_queries")(records)
            except (KeyError, TypeError) as e:
                raise PersistenceError(f"Malformed {name} record: {str(e)}")
            self._database.execute_transaction(queries)

    def is_empty(self, name: str) -> bool:
        table = self._main_table(name)
        results = self._database.execute_query(f"SELECT COUNT(*) AS count FROM {table}")
        return not results or results[0]["count"] == 0

    def describe(self) -> str:
        path = getattr(self._database, "database_path", "?")
        return f"sqlite:{os.path.abspath(path) if path != '?' else path}"

    def _children(self, query: str, key: str, value: str) -> Dict[str, List[Dict[str, Any]]]:
        grouped: Dict[str, List[Dict[str, Any]]] = defaultdict(list)
        for row in self._database.execute_query(query):
            grouped[row[key]].append(row)
        return grouped

    # Users

    def _save_users_queries(self, records: List[Record]) -> List[tuple]:
        queries: List[tuple] = [("DELETE FROM users", None)]
        for r in records:
            queries.append((
                """
                INSERT OR REPLACE INTO users
                    (username, password, role, full_name, created_at, updated_at, last_login, is_active, version)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (r["username"], r["password_hash"], r["role"], r["full_name"], r.get("created_at"),
                 r.get("updated_at"), r.get("last_login"), 1 if r.get("is_active", True) else 0,
                 r.get("version", 1)),
            ))
        return queries

    def _load_users(self) -> List[Record]:
        rows = self._database.execute_query("SELECT * FROM users ORDER BY username")
        return [
            {
                "id": row["username"],
                "username": row["username"],
                "password_hash": row["password"],
                "role": row["role"],
                "full_name": row["full_name"],
                "created_at": row["created_at"],
                "updated_at": row["updated_at"],
                "last_login": row["last_login"],
                "is_active": bool(row["is_active"]),
                "version": row["version"],
            }
            for row in rows
        ]

    # Students

    def _save_students_queries(self, records: List[Record]) -> List[tuple]:
        queries: List[tuple] = [
            ("DELETE FROM student_grades", None),
            ("DELETE FROM student_enrollments", None),
            ("DELETE FROM students", None),
        ]
        for r in records:
            student_id = r["student_id"]
            queries.append((
                """
                INSERT OR REPLACE INTO students
                    (student_id, full_name, email, major, enrollment_year, status, gpa,
                     created_at, updated_at, version)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (student_id, r["full_name"], r["email"], r["major"], r["enrollment_year"], r["status"],
                 r.get("gpa", 0.0), r.get("created_at"), r.get("updated_at"), r.get("version", 1)),
            ))
            for position, course_id in enumerate(r.get("enrolled_courses", [])):
                queries.append((
                    "INSERT OR REPLACE INTO student_enrollments (student_id, course_id, position) VALUES (?, ?, ?)",
                    (student_id, course_id, position),
                ))
            for course_id, grade in r.get("grades", {}).items():
                queries.append((
                    """
                    INSERT OR REPLACE INTO student_grades
                        (student_id, course_id, letter_grade, points, percentage, semester)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (student_id, course_id, grade["letter_grade"], grade["grade_points"],
                     grade["percentage"], grade.get("semester")),
                ))
        return queries

    def _load_students(self) -> List[Record]:
        enrollments = self._children(
            "SELECT * FROM student_enrollments ORDER BY student_id, position", "student_id", "course_id")
        grades = self._children("SELECT * FROM student_grades ORDER BY student_id", "student_id", "course_id")
        records = []
        for row in self._database.execute_query("SELECT * FROM students ORDER BY student_id"):
            student_id = row["student_id"]
            records.append({
                "id": student_id,
                "student_id": student_id,
                "full_name": row["full_name"],
                "email": row["email"],
                "major": row["major"],
                "enrollment_year": row["enrollment_year"],
                "status": row["status"],
                "gpa": row["gpa"],
                "created_at": row["created_at"],
                "updated_at": row["updated_at"],
                "version": row["version"],
                "enrolled_courses": [e["course_id"] for e in enrollments.get(student_id, [])],
                "grades": {
                    g["course_id"]: {
                        "letter_grade": g["letter_grade"],
                        "grade_points": g["points"],
                        "percentage": g["percentage"],
                    }
                    for g in grades.get(student_id, [])
                },
            })
        return records

    # Faculty

    def _save_faculty_queries(self, records: List[Record]) -> List[tuple]:
        queries: List[tuple] = [
            ("DELETE FROM faculty_courses", None),
            ("DELETE FROM faculty", None),
        ]
        for r in records:
            faculty_id = r["faculty_id"]
            queries.append((
                """
                INSERT OR REPLACE INTO faculty
                    (faculty_id, full_name, email, department, position, office_location, phone_number,
                     created_at, updated_at, version)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (faculty_id, r["full_name"], r["email"], r["department"], r["position"],
                 r.get("office_location"), r.get("phone_number"), r.get("created_at"),
                 r.get("updated_at"), r.get("version", 1)),
            ))
            for position, course_id in enumerate(r.get("courses_taught", [])):
                queries.append((
                    "INSERT OR REPLACE INTO faculty_courses (faculty_id, course_id, position) VALUES (?, ?, ?)",
                    (faculty_id, course_id, position),
                ))
        return queries

    def _load_faculty(self) -> List[Record]:
        taught = self._children(
            "SELECT * FROM faculty_courses ORDER BY faculty_id, position", "faculty_id", "course_id")
        records = []
        for row in self._database.execute_query("SELECT * FROM faculty ORDER BY faculty_id"):
            faculty_id = row["faculty_id"]
            records.append({
                "id": faculty_id,
                "faculty_id": faculty_id,
                "full_name": row["full_name"],
                "email": row["email"],
                "department": row["department"],
                "position": row["position"],
                "office_location": row["office_location"],
                "phone_number": row["phone_number"],
                "created_at": row["created_at"],
                "updated_at": row["updated_at"],
                "version": row["version"],
                "courses_taught": [t["course_id"] for t in taught.get(faculty_id, [])],
            })
        return records

    # Courses

    def _save_courses_queries(self, records: List[Record]) -> List[tuple]:
        queries: List[tuple] = [
            ("DELETE FROM course_prerequisites", None),
            ("DELETE FROM course_enrollments", None),
            ("DELETE FROM courses", None),
        ]
        for r in records:
            course_id = r["course_id"]
            queries.append((
                """
                INSERT OR REPLACE INTO courses
                    (course_id, course_name, description, credit_hours, instructor_id, max_students, status,
                     schedule, classroom, semester, year, created_at, updated_at, version)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (course_id, r["course_name"], r.get("description"), r["credit_hours"], r.get("instructor_id"),
                 r["max_capacity"], r["status"], r.get("schedule"), r.get("classroom"), r.get("semester"),
                 r.get("year"), r.get("created_at"), r.get("updated_at"), r.get("version", 1)),
            ))
            for position, student_id in enumerate(r.get("enrolled_students", [])):
                queries.append((
                    "INSERT OR REPLACE INTO course_enrollments (course_id, student_id, position) VALUES (?, ?, ?)",
                    (course_id, student_id, position),
                ))
            for position, prerequisite_id in enumerate(r.get("prerequisites", [])):
                queries.append((
                    "INSERT OR REPLACE INTO course_prerequisites (course_id, prerequisite_id, position) "
                    "VALUES (?, ?, ?)",
                    (course_id, prerequisite_id, position),
                ))
        return queries

    def _load_courses(self) -> List[Record]:
        roster = self._children(
            "SELECT * FROM course_enrollments ORDER BY course_id, position", "course_id", "student_id")
        prerequisites = self._children(
            "SELECT * FROM course_prerequisites ORDER BY course_id, position", "course_id", "prerequisite_id")
        records = []
        for row in self._database.execute_query("SELECT * FROM courses ORDER BY course_id"):
            course_id = row["course_id"]
            records.append({
                "id": course_id,
                "course_id": course_id,
                "course_name": row["course_name"],
                "description": row["description"],
                "credit_hours": row["credit_hours"],
                "instructor_id": row["instructor_id"],
                "max_capacity": row["max_students"],
                "status": row["status"],
                "schedule": row["schedule"],
                "classroom": row["classroom"],
                "semester": row["semester"],
                "year": row["year"],
                "created_at": row["created_at"],
                "updated_at": row["updated_at"],
                "version": row["version"],
                "enrolled_students": [e["student_id"] for e in roster.get(course_id, [])],
                "prerequisites": [p["prerequisite_id"] for p in prerequisites.get(course_id, [])],
            })
        return records


class StoreFactory:
    """Factory for creating collection store instances."""

    @staticmethod
    def create_store(store_type: str, **kwargs) -> CollectionStore:
        """Create a store based on type (``file`` or ``sqlite``)."""
        if store_type.lower() == "file":
            return JsonFileStore(**kwargs)
        elif store_type.lower() == "sqlite":
            database_path = kwargs.get("database_path", "university.db")
            parent = os.path.dirname(database_path)
            if parent:
                os.makedirs(parent, exist_ok=True)
            return SQLiteStore(DatabaseFactory.create_database("sqlite", database_path=database_path))
        else:
            raise ConfigurationError(f"Unsupported storage type: {store_type}")
