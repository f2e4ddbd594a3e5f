"""
Administrative reports over every collection.
"""

from datetime import datetime, timezone
from typing import Any, Dict

from ..core.exceptions import ResourceNotFoundError
from .auth_service import AuthenticationService
from .course_service import CourseService
from .faculty_service import FacultyService
from .student_service import StudentService


class AdminService:
    """Builds structured system, student and faculty reports."""

    def __init__(self, auth_service: AuthenticationService, student_service: StudentService,
                 faculty_service: FacultyService, course_service: CourseService):
        self._auth_service = auth_service
        self._student_service = student_service
        self._faculty_service = faculty_service
        self._course_service = course_service

    @staticmethod
    def _generated_at() -> str:
        return datetime.now(timezone.utc).isoformat()

    def generate_system_report(self) -> Dict[str, Any]:
        students = self._student_service
        faculty = self._faculty_service
        courses = self._course_service

        students_by_major: Dict[str, int] = {}
        for student in students.get_all_students():
            students_by_major[student.major] = students_by_major.get(student.major, 0) + 1

        return {
            "generated_at": self._generated_at(),
            "users": {
                "total": self._auth_service.user_count,
                "active": self._auth_service.active_user_count,
                "by_role": self._auth_service.users_by_role(),
            },
            "students": {
                "total": students.student_count,
                "active": students.active_student_count,
                "average_gpa": round(students.get_average_gpa(), 2),
                "on_probation": len(students.get_students_on_probation()),
                "by_major": students_by_major,
            },
            "faculty": {
                "total": faculty.faculty_count,
                "average_course_load": round(faculty.get_average_course_load(), 1),
                "total_courses_assigned": faculty.get_total_courses_assigned(),
                "by_department": faculty.get_faculty_stats_by_department(),
            },
            "courses": dict(
                courses.get_course_statistics(),
                with_available_spots=[
                    {"course_id": c.course_id, "course_name": c.course_name, "available_spots": c.available_spots}
                    for c in courses.get_available_courses()
                ],
            ),
        }

    def generate_student_report(self, student_id: str) -> Dict[str, Any]:
        student = self._student_service.get_student(student_id)
        if student is None:
            raise ResourceNotFoundError(f"Student not found: {student_id}")

        current = []
        for course_id in student.enrolled_courses:
            course = self._course_service.get_course(course_id)
            if course is not None:
                current.append({"course_id": course_id, "course_name": course.course_name,
                                "credit_hours": course.credit_hours})

        completed = []
        total_credits = 0
        for course_id, grade in student.grades.items():
            course = self._course_service.get_course(course_id)
            if course is None:
                continue
            total_credits += course.credit_hours
            completed.append(dict(grade.to_dict(), course_id=course_id, course_name=course.course_name,
                                  credit_hours=course.credit_hours))

        return {
            "generated_at": self._generated_at(),
            "student": {
                "student_id": student.student_id,
                "full_name": student.full_name,
                "email": student.email,
                "major": student.major,
                "enrollment_year": student.enrollment_year,
                "status": student.status.value,
                "gpa": round(student.gpa, 2),
                "academic_standing": student.academic_standing,
            },
            "current_enrollments": current,
            "completed_courses": completed,
            "total_completed_credits": total_credits,
        }

    def generate_faculty_report(self, faculty_id: str) -> Dict[str, Any]:
        member = self._faculty_service.get_faculty(faculty_id)
        if member is None:
            raise ResourceNotFoundError(f"Faculty member not found: {faculty_id}")

        taught = []
        for course_id in member.courses_taught:
            course = self._course_service.get_course(course_id)
            if course is not None:
                taught.append({"course_id": course_id, "course_name": course.course_name,
                               "enrolled": course.enrollment_count})

        return {
            "generated_at": self._generated_at(),
            "faculty": {
                "faculty_id": member.faculty_id,
                "full_name": member.full_name,
                "email": member.email,
                "department": member.department,
                "position": member.position,
                "course_load": member.course_load,
            },
            "courses_taught": taught,
        }
