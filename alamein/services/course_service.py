"""
Course catalogue and roster management.
"""

from typing import Any, Dict, List, Optional, Union

from ..core.entities import Course
from ..core.enums import CourseStatus
from ..core.exceptions import ValidationError
from ..persistence.repositories import CourseRepository
from .base import EntityService


class CourseService(EntityService[Course]):
    """Service managing the course collection."""

    def __init__(self, repository: CourseRepository):
        super().__init__(repository)

    def add_course(self, course: Course) -> bool:
        return self._add(course)

    def update_course(self, course_id: str, updated_course: Course) -> bool:
        return self._replace(course_id, updated_course)

    def remove_course(self, course_id: str) -> bool:
        return self._remove(course_id)

    def get_course(self, course_id: str) -> Optional[Course]:
        with self._lock:
            return self._entities.get(course_id)

    def get_all_courses(self) -> List[Course]:
        with self._lock:
            return list(self._entities.values())

    def get_available_courses(self) -> List[Course]:
        """Courses currently accepting enrollments."""
        return self.get_courses_by_status(CourseStatus.OPEN)

    def get_courses_by_status(self, status: Union[CourseStatus, str]) -> List[Course]:
        status = CourseStatus(status)
        return self._filter(lambda c: c.status is status)

    def get_courses_by_instructor(self, instructor_id: str) -> List[Course]:
        return self._filter(lambda c: c.instructor_id == instructor_id)

    def get_courses_by_credit_hours(self, credit_hours: int) -> List[Course]:
        return self._filter(lambda c: c.credit_hours == credit_hours)

    def search_courses_by_name(self, name: str) -> List[Course]:
        matches = self._name_matcher(name)
        if matches is None:
            return []
        return self._filter(lambda c: matches(c.course_name))

    def enroll_student(self, course_id: str, student_id: str) -> bool:
        return self._mutate(course_id, lambda c: c.enroll_student(student_id))

    def drop_student(self, course_id: str, student_id: str) -> bool:
        return self._mutate(course_id, lambda c: c.drop_student(student_id))

    def set_max_capacity(self, course_id: str, max_capacity: int) -> bool:
        """Change a course's capacity. Raises ValidationError below 1."""
        if max_capacity < 1:
            raise ValidationError("Max capacity must be at least 1")

        def change(course: Course) -> bool:
            course.set_max_capacity(max_capacity)
            return True

        return self._mutate(course_id, change)

    def set_course_status(self, course_id: str, status: Union[CourseStatus, str]) -> bool:
        def change(course: Course) -> bool:
            course.set_status(status)
            return True

        return self._mutate(course_id, change)

    def get_course_statistics(self) -> Dict[str, Any]:
        with self._lock:
            total_enrollments = sum(c.enrollment_count for c in self._entities.values())
            total_courses = len(self._entities)
            return {
                "total_courses": total_courses,
                "active_courses": len(self.get_courses_by_status(CourseStatus.IN_PROGRESS)),
                "available_courses": len(self.get_courses_by_status(CourseStatus.OPEN)),
                "full_courses": len(self.get_courses_by_status(CourseStatus.FULL)),
                "total_enrollments": total_enrollments,
                "average_enrollment": total_enrollments / total_courses if total_courses else 0.0,
            }

    @property
    def course_count(self) -> int:
        return len(self._entities)
