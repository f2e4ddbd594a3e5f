"""
Repository pattern implementations for data access.
"""

import threading
from datetime import datetime
from typing import Any, Dict, Generic, List, TypeVar

import structlog

from ..core.entities import AbstractEntity, Course, Faculty, Grade, Student, User
from ..core.enums import CourseStatus, StudentStatus
from ..core.exceptions import PersistenceError, UniversityError
from ..core.interfaces import CollectionStore, Repository

logger = structlog.get_logger(__name__)

T = TypeVar('T', bound=AbstractEntity)


def _parse_timestamp(value: Any):
    if isinstance(value, datetime):
        return value
    if not value:
        return None
    return datetime.fromisoformat(value)


class BaseRepository(Repository[T], Generic[T]):
    """Base repository implementation with common functionality."""

    def __init__(self, store: CollectionStore, collection: str):
        self._store = store
        self._collection = collection
        self._lock = threading.RLock()

    @property
    def collection(self) -> str:
        return self._collection

    def load_all(self) -> Dict[str, T]:
        """Load every entity of the collection, skipping malformed records."""
        with self._lock:
            entities: Dict[str, T] = {}
            for data in self._store.load_collection(self._collection):
                try:
                    entity = self._entity_from_dict(data)
                except (KeyError, TypeError, ValueError, UniversityError) as e:
                    logger.warning("Skipping malformed record", collection=self._collection,
                                   record_id=data.get("id") if isinstance(data, dict) else None,
                                   error=str(e))
                    continue
                entities[entity.id] = entity
            return entities

    def save_all(self, entities: Dict[str, T]) -> None:
        with self._lock:
            try:
                records = [entity.to_dict() for entity in entities.values()]
                self._store.save_collection(self._collection, records)
            except PersistenceError:
                raise
            except Exception as e:
                raise PersistenceError(f"Failed to save {self._collection}: {str(e)}")

    def is_empty(self) -> bool:
        return self._store.is_empty(self._collection)

    def count(self) -> int:
        return len(self._store.load_collection(self._collection))

    def _entity_from_dict(self, data: Dict[str, Any]) -> T:
        """Convert dictionary to entity instance."""
        raise NotImplementedError

    @staticmethod
    def _restore_metadata(entity: AbstractEntity, data: Dict[str, Any]) -> None:
        created_at = _parse_timestamp(data.get("created_at"))
        updated_at = _parse_timestamp(data.get("updated_at"))
        if created_at:
            entity._created_at = created_at
        if updated_at:
            entity._updated_at = updated_at
        entity._version = data.get("version") or 1


class UserRepository(BaseRepository[User]):
    """Repository for login accounts."""

    def __init__(self, store: CollectionStore):
        super().__init__(store, "users")

    def _entity_from_dict(self, data: Dict[str, Any]) -> User:
        user = User.from_password_hash(
            username=data["username"],
            password_hash=data["password_hash"],
            role=data["role"],
            full_name=data["full_name"],
        )
        user._last_login = _parse_timestamp(data.get("last_login"))
        user._is_active = bool(data.get("is_active", True))
        self._restore_metadata(user, data)
        return user


class StudentRepository(BaseRepository[Student]):
    """Repository for Student entities."""

    def __init__(self, store: CollectionStore):
        super().__init__(store, "students")

    def _entity_from_dict(self, data: Dict[str, Any]) -> Student:
        student = Student(
            student_id=data["student_id"],
            full_name=data["full_name"],
            email=data["email"],
            major=data["major"],
            enrollment_year=data["enrollment_year"],
        )
        student._status = StudentStatus(data.get("status") or StudentStatus.ACTIVE.value)

        grades = {
            course_id: Grade.from_record(grade["percentage"], grade["letter_grade"])
            for course_id, grade in (data.get("grades") or {}).items()
        }
        student._grades = grades
        student._enrolled_courses = [c for c in data.get("enrolled_courses", []) if c not in grades]
        # Stored GPA is informational; the grade map is authoritative.
        student._calculate_gpa()
        self._restore_metadata(student, data)
        return student


class FacultyRepository(BaseRepository[Faculty]):
    """Repository for Faculty entities."""

    def __init__(self, store: CollectionStore):
        super().__init__(store, "faculty")

    def _entity_from_dict(self, data: Dict[str, Any]) -> Faculty:
        faculty = Faculty(
            faculty_id=data["faculty_id"],
            full_name=data["full_name"],
            email=data["email"],
            department=data["department"],
            position=data["position"],
        )
        faculty._courses_taught = list(dict.fromkeys(data.get("courses_taught", [])))
        faculty._office_location = data.get("office_location")
        faculty._phone_number = data.get("phone_number")
        self._restore_metadata(faculty, data)
        return faculty


class CourseRepository(BaseRepository[Course]):
    """Repository for Course entities."""

    def __init__(self, store: CollectionStore):
        super().__init__(store, "courses")

    def _entity_from_dict(self, data: Dict[str, Any]) -> Course:
        course = Course(
            course_id=data["course_id"],
            course_name=data["course_name"],
            description=data.get("description"),
            credit_hours=data["credit_hours"],
            instructor_id=data.get("instructor_id"),
        )
        course._enrolled_students = list(dict.fromkeys(data.get("enrolled_students", [])))
        course._prerequisites = list(dict.fromkeys(data.get("prerequisites", [])))
        course._max_capacity = data.get("max_capacity") or course.max_capacity
        course._status = CourseStatus(data.get("status") or CourseStatus.OPEN.value)
        course._schedule = data.get("schedule")
        course._classroom = data.get("classroom")
        course._semester = data.get("semester")
        if data.get("year") is not None:
            course._year = data["year"]
        self._restore_metadata(course, data)
        return course


def create_repositories(store: CollectionStore) -> Dict[str, BaseRepository]:
    """Build one repository per collection over a shared store."""
    repositories: List[BaseRepository] = [
        UserRepository(store),
        StudentRepository(store),
        FacultyRepository(store),
        CourseRepository(store),
    ]
    return {repository.collection: repository for repository in repositories}
