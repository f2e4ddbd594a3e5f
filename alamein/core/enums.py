"""
Enumerations and constants for the Alamein university platform.
"""

from enum import Enum


class UserRole(Enum):
    """Roles a user account can hold."""
    STUDENT = "STUDENT"
    FACULTY = "FACULTY"
    ADMIN_STAFF = "ADMIN_STAFF"
    SYSTEM_ADMIN = "SYSTEM_ADMIN"

    @property
    def display_name(self) -> str:
        return _ROLE_TEXT[self][0]

    @property
    def description(self) -> str:
        return _ROLE_TEXT[self][1]

    def __str__(self) -> str:
        return self.display_name


_ROLE_TEXT = {
    UserRole.STUDENT: ("Student", "Can view courses, grades, and manage enrollment"),
    UserRole.FACULTY: ("Faculty", "Can manage courses, grades, and view student information"),
    UserRole.ADMIN_STAFF: ("Administrative Staff", "Can manage students, courses, and generate reports"),
    UserRole.SYSTEM_ADMIN: ("System Administrator", "Full system access and user management"),
}


class StudentStatus(Enum):
    """Standing of a student with the university."""
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    GRADUATED = "GRADUATED"
    SUSPENDED = "SUSPENDED"
    EXPELLED = "EXPELLED"
    ON_LEAVE = "ON_LEAVE"

    @property
    def display_name(self) -> str:
        return self.value.replace("_", " ").title()

    def can_enroll(self) -> bool:
        """Only active students may take new courses."""
        return self is StudentStatus.ACTIVE


class CourseStatus(Enum):
    """Lifecycle status of a course offering."""
    OPEN = "OPEN"
    FULL = "FULL"
    CLOSED = "CLOSED"
    CANCELLED = "CANCELLED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"

    @property
    def display_name(self) -> str:
        return self.value.replace("_", " ").title()

    def allows_enrollment(self) -> bool:
        return self is CourseStatus.OPEN

    def is_active(self) -> bool:
        """Students are attending (or about to attend) the course."""
        return self in (CourseStatus.IN_PROGRESS, CourseStatus.OPEN, CourseStatus.FULL)


class Capability(Enum):
    """Named actions checked against the role permission table."""
    VIEW_COURSES = "view_courses"
    ENROLL_SELF = "enroll_self"
    VIEW_OWN_RECORD = "view_own_record"
    MANAGE_COURSES = "manage_courses"
    SUBMIT_GRADES = "submit_grades"
    VIEW_STUDENTS = "view_students"
    MANAGE_STUDENTS = "manage_students"
    MANAGE_FACULTY = "manage_faculty"
    VIEW_REPORTS = "view_reports"
    VIEW_ANY_USER = "view_any_user"
    MANAGE_USERS = "manage_users"
