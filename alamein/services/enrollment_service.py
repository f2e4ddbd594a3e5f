"""
Enrollment coordination between course rosters and student records.
"""

import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict

import structlog

from ..core.entities import Grade
from .course_service import CourseService
from .student_service import StudentService

logger = structlog.get_logger(__name__)


class EnrollmentStatus(Enum):
    """Outcome of an enrollment operation."""
    CONFIRMED = "confirmed"
    DROPPED = "dropped"
    GRADED = "graded"
    REJECTED = "rejected"


@dataclass
class EnrollmentResult:
    """Result of an enrollment operation."""
    success: bool
    status: EnrollmentStatus
    message: str
    metadata: Dict[str, Any] = field(default_factory=dict)


class EnrollmentService:
    """
    Keeps a course roster and the matching student record in step.

    A course holds who is enrolled, the student holds what they are enrolled
    in. Both sides are updated together, and a roster change is undone if
    the student side refuses it.
    """

    def __init__(self, student_service: StudentService, course_service: CourseService):
        self._student_service = student_service
        self._course_service = course_service
        self._lock = threading.RLock()

    def _rejected(self, message: str, **metadata) -> EnrollmentResult:
        logger.info("Enrollment rejected", reason=message, **metadata)
        return EnrollmentResult(False, EnrollmentStatus.REJECTED, message, metadata)

    def enroll(self, student_id: str, course_id: str) -> EnrollmentResult:
        with self._lock:
            student = self._student_service.get_student(student_id)
            if student is None:
                return self._rejected("Student not found", student_id=student_id)
            course = self._course_service.get_course(course_id)
            if course is None:
                return self._rejected("Course not found", course_id=course_id)
            if not student.status.can_enroll():
                return self._rejected(f"Student status {student.status.value} does not allow enrollment",
                                      student_id=student_id)
            if course_id in student.enrolled_courses or course_id in student.grades:
                return self._rejected("Student already enrolled in or completed course",
                                      student_id=student_id, course_id=course_id)

            if not self._course_service.enroll_student(course_id, student_id):
                return self._rejected(f"Course is not accepting enrollments ({course.status.value})",
                                      course_id=course_id)
            if not self._student_service.enroll_student_in_course(student_id, course_id):
                self._course_service.drop_student(course_id, student_id)
                return self._rejected("Student record refused the enrollment",
                                      student_id=student_id, course_id=course_id)

            logger.info("Student enrolled", student_id=student_id, course_id=course_id)
            return EnrollmentResult(True, EnrollmentStatus.CONFIRMED, "Enrollment successful",
                                    {"student_id": student_id, "course_id": course_id})

    def drop(self, student_id: str, course_id: str) -> EnrollmentResult:
        with self._lock:
            dropped_student = self._student_service.drop_student_from_course(student_id, course_id)
            dropped_course = self._course_service.drop_student(course_id, student_id)
            if not (dropped_student or dropped_course):
                return self._rejected("Student is not enrolled in course",
                                      student_id=student_id, course_id=course_id)

            logger.info("Student dropped", student_id=student_id, course_id=course_id)
            return EnrollmentResult(True, EnrollmentStatus.DROPPED, "Drop successful",
                                    {"student_id": student_id, "course_id": course_id})

    def submit_grade(self, student_id: str, course_id: str, grade: Grade) -> EnrollmentResult:
        """Grade an enrolled student. The course roster is left as it is."""
        with self._lock:
            if not self._student_service.add_grade(student_id, course_id, grade):
                return self._rejected("Student is not enrolled in course",
                                      student_id=student_id, course_id=course_id)

            logger.info("Grade recorded", student_id=student_id, course_id=course_id,
                        letter_grade=grade.letter_grade)
            return EnrollmentResult(True, EnrollmentStatus.GRADED, "Grade recorded",
                                    {"student_id": student_id, "course_id": course_id,
                                     "grade": grade.to_dict()})
