"""
Student records: registration, enrollment bookkeeping, grades and queries.
"""

from typing import List, Optional, Union

import structlog

from ..core.entities import Grade, Student
from ..core.enums import StudentStatus
from ..core.exceptions import EnrollmentError
from ..persistence.repositories import StudentRepository
from .base import EntityService

logger = structlog.get_logger(__name__)

PROBATION_GPA_RANGE = (0.0, 2.0)


class StudentService(EntityService[Student]):
    """Service managing the student collection."""

    def __init__(self, repository: StudentRepository):
        super().__init__(repository)

    def add_student(self, student: Student) -> bool:
        """Register a student. False if the ID is already taken."""
        return self._add(student)

    def update_student(self, student_id: str, updated_student: Student) -> bool:
        return self._replace(student_id, updated_student)

    def remove_student(self, student_id: str) -> bool:
        return self._remove(student_id)

    def get_student(self, student_id: str) -> Optional[Student]:
        with self._lock:
            return self._entities.get(student_id)

    def get_all_students(self) -> List[Student]:
        with self._lock:
            return list(self._entities.values())

    def enroll_student_in_course(self, student_id: str, course_id: str) -> bool:
        return self._mutate(student_id, lambda s: s.enroll_in_course(course_id))

    def drop_student_from_course(self, student_id: str, course_id: str) -> bool:
        return self._mutate(student_id, lambda s: s.drop_course(course_id))

    def add_grade(self, student_id: str, course_id: str, grade: Grade) -> bool:
        """Record a grade; False if the student is unknown or not enrolled."""
        def record(student: Student) -> bool:
            try:
                student.add_grade(course_id, grade)
            except EnrollmentError as e:
                logger.warning("Grade rejected", student_id=student_id, course_id=course_id, error=e.message)
                return False
            return True

        return self._mutate(student_id, record)

    def update_student_status(self, student_id: str, status: Union[StudentStatus, str]) -> bool:
        def change(student: Student) -> bool:
            student.set_status(status)
            return True

        return self._mutate(student_id, change)

    def get_students_by_major(self, major: str) -> List[Student]:
        return self._filter(lambda s: (s.major or "").lower() == (major or "").lower())

    def get_students_by_enrollment_year(self, year: int) -> List[Student]:
        return self._filter(lambda s: s.enrollment_year == year)

    def get_students_by_status(self, status: Union[StudentStatus, str]) -> List[Student]:
        status = StudentStatus(status)
        return self._filter(lambda s: s.status is status)

    def get_students_in_course(self, course_id: str) -> List[Student]:
        return self._filter(lambda s: course_id in s.enrolled_courses)

    def get_students_with_gpa_above(self, gpa_threshold: float) -> List[Student]:
        return self._filter(lambda s: s.gpa >= gpa_threshold)

    def get_students_with_gpa_between(self, min_gpa: float, max_gpa: float) -> List[Student]:
        return self._filter(lambda s: min_gpa <= s.gpa <= max_gpa)

    def get_students_on_probation(self) -> List[Student]:
        # Includes students with no grades yet (GPA 0.0).
        return self.get_students_with_gpa_between(*PROBATION_GPA_RANGE)

    def search_students_by_name(self, name: str) -> List[Student]:
        matches = self._name_matcher(name)
        if matches is None:
            return []
        return self._filter(lambda s: matches(s.full_name))

    @property
    def student_count(self) -> int:
        return len(self._entities)

    @property
    def active_student_count(self) -> int:
        return len(self.get_students_by_status(StudentStatus.ACTIVE))

    def get_average_gpa(self) -> float:
        with self._lock:
            if not self._entities:
                return 0.0
            return sum(s.gpa for s in self._entities.values()) / len(self._entities)
