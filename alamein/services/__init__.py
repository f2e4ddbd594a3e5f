"""
Services module: the university's business operations.
"""

from .auth_service import AuthenticationService, Session
from .student_service import StudentService
from .faculty_service import FacultyService
from .course_service import CourseService
from .enrollment_service import EnrollmentService, EnrollmentResult, EnrollmentStatus
from .admin_service import AdminService

__all__ = [
    "AuthenticationService",
    "Session",
    "StudentService",
    "FacultyService",
    "CourseService",
    "EnrollmentService",
    "EnrollmentResult",
    "EnrollmentStatus",
    "AdminService",
]
