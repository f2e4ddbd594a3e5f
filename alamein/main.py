"""
Main entry point for the Alamein platform.
"""

import copy
import json
import threading
import time
from typing import Any, Dict, Optional

import structlog

from .core.entities import Course, Faculty, Grade, Student, User
from .core.enums import UserRole
from .persistence import StoreFactory, create_repositories
from .services import (
    AdminService, AuthenticationService, CourseService, EnrollmentService,
    FacultyService, StudentService
)
from .api.rest_api import UniversityRestAPI

logger = structlog.get_logger(__name__)

DEFAULT_CONFIG: Dict[str, Any] = {
    "storage_type": "file",
    "storage_config": {"base_path": "data"},
    "seed_sample_data": True,
    "rest_host": "0.0.0.0",
    "rest_port": 8000,
}


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Merge a JSON configuration file over the defaults."""
    config = copy.deepcopy(DEFAULT_CONFIG)
    if path:
        with open(path, 'r') as f:
            config.update(json.load(f))
    return config


class UniversityPlatform:
    """Main platform class that wires the store, services and API together."""

    def __init__(self, config: Optional[dict] = None):
        self._config = copy.deepcopy(DEFAULT_CONFIG)
        self._config.update(config or {})
        self._store = None
        self._auth_service = None
        self._student_service = None
        self._faculty_service = None
        self._course_service = None
        self._enrollment_service = None
        self._admin_service = None
        self._rest_api = None
        self._rest_thread = None
        self._running = False

        # Initialize platform
        self._initialize_platform()

    def _initialize_platform(self):
        """Initialize the platform with all services."""
        print("Initializing Alamein platform...")

        storage_type = self._config.get('storage_type', 'file')
        storage_config = self._config.get('storage_config', {})
        self._store = StoreFactory.create_store(storage_type, **storage_config)
        print(f"✓ Storage initialized: {self._store.describe()}")

        repositories = create_repositories(self._store)
        print("✓ Repositories initialized")

        self._auth_service = AuthenticationService(repositories['users'])
        self._student_service = StudentService(repositories['students'])
        self._faculty_service = FacultyService(repositories['faculty'])
        self._course_service = CourseService(repositories['courses'])
        self._enrollment_service = EnrollmentService(self._student_service, self._course_service)
        self._admin_service = AdminService(
            self._auth_service,
            self._student_service,
            self._faculty_service,
            self._course_service
        )
        print("✓ Services initialized")

        if self._config.get('seed_sample_data', True) and self._auth_service.user_count == 0:
            self.create_sample_data()

        self._rest_api = UniversityRestAPI(
            self._auth_service,
            self._student_service,
            self._faculty_service,
            self._course_service,
            self._enrollment_service,
            self._admin_service
        )
        print("✓ REST API initialized")

        print("✓ Alamein platform initialized successfully!")

    @property
    def config(self) -> Dict[str, Any]:
        return dict(self._config)

    @property
    def app(self):
        """The FastAPI application."""
        return self._rest_api.app

    @property
    def auth_service(self) -> AuthenticationService:
        return self._auth_service

    @property
    def student_service(self) -> StudentService:
        return self._student_service

    @property
    def faculty_service(self) -> FacultyService:
        return self._faculty_service

    @property
    def course_service(self) -> CourseService:
        return self._course_service

    @property
    def enrollment_service(self) -> EnrollmentService:
        return self._enrollment_service

    @property
    def admin_service(self) -> AdminService:
        return self._admin_service

    def start_rest_server(self, host: str = "0.0.0.0", port: int = 8000):
        """Start the REST server."""
        if self._rest_api is None:
            print("REST app not initialized")
            return

        import uvicorn

        def run_server():
            uvicorn.run(
                self._rest_api.app,
                host=host,
                port=port,
                log_level="info"
            )

        # Start server in a separate thread
        self._rest_thread = threading.Thread(target=run_server, daemon=True)
        self._rest_thread.start()

        print(f"✓ REST server started on {host}:{port}")

    def start_platform(self, host: Optional[str] = None, rest_port: Optional[int] = None):
        """Start the entire platform."""
        if self._running:
            print("Platform already running")
            return

        host = host or self._config.get('rest_host', "0.0.0.0")
        rest_port = rest_port or self._config.get('rest_port', 8000)

        print("Starting Alamein platform...")
        self.start_rest_server(host=host, port=rest_port)

        self._running = True
        print("✓ Alamein platform started successfully!")
        print(f"  - REST API: http://localhost:{rest_port}")
        print(f"  - API Docs: http://localhost:{rest_port}/docs")

    def stop_platform(self):
        """Stop the platform."""
        if not self._running:
            print("Platform not running")
            return

        print("Stopping Alamein platform...")
        self._running = False
        print("✓ Alamein platform stopped")

    def create_sample_data(self):
        """Seed accounts, students, faculty, courses, enrollments and grades."""
        print("Creating sample data...")

        users = [
            User("admin", "admin123", UserRole.ADMIN_STAFF, "Admin User"),
            User("sysadmin", "sysadmin123", UserRole.SYSTEM_ADMIN, "System Administrator"),
            User("F2024001", "faculty123", UserRole.FACULTY, "Dr. John Smith"),
            User("F2024002", "faculty123", UserRole.FACULTY, "Prof. Jane Doe"),
            User("S2023001", "student123", UserRole.STUDENT, "Alice Johnson"),
            User("S2023002", "student123", UserRole.STUDENT, "Bob Wilson"),
            User("S2023003", "student123", UserRole.STUDENT, "Carol Brown"),
        ]
        for user in users:
            self._auth_service.register_user(user)

        students = [
            Student("S2023001", "Alice Johnson", "alice@university.edu", "Computer Science", 2023),
            Student("S2023002", "Bob Wilson", "bob@university.edu", "Engineering", 2023),
            Student("S2023003", "Carol Brown", "carol@university.edu", "Mathematics", 2023),
        ]
        for student in students:
            self._student_service.add_student(student)

        faculty = [
            Faculty("F2024001", "Dr. John Smith", "john.smith@university.edu",
                    "Computer Science", "Associate Professor"),
            Faculty("F2024002", "Prof. Jane Doe", "jane.doe@university.edu", "Engineering", "Professor"),
        ]
        for member in faculty:
            self._faculty_service.add_faculty(member)

        courses = [
            Course("CS101", "Introduction to Programming", "Learn basic programming concepts", 3, "F2024001"),
            Course("CS201", "Data Structures", "Advanced data structures and algorithms", 3, "F2024001"),
            Course("ENG101", "Engineering Fundamentals", "Basic engineering principles", 4, "F2024002"),
        ]
        for course in courses:
            self._course_service.add_course(course)
            self._faculty_service.assign_course(course.instructor_id, course.course_id)

        for student_id, course_id in [
            ("S2023001", "CS101"),
            ("S2023001", "CS201"),
            ("S2023002", "CS101"),
            ("S2023002", "ENG101"),
            ("S2023003", "CS101"),
        ]:
            self._enrollment_service.enroll(student_id, course_id)

        self._enrollment_service.submit_grade("S2023001", "CS101", Grade(85.5))
        self._enrollment_service.submit_grade("S2023002", "CS101", Grade("B+"))
        self._enrollment_service.submit_grade("S2023001", "CS201", Grade(92.0))

        logger.info("Sample data created", users=len(users), students=len(students),
                    faculty=len(faculty), courses=len(courses))
        print("✓ Sample data created")

    def run_demo(self):
        """Run a demonstration of the platform."""
        print("Running Alamein platform demonstration...")

        if self._auth_service.user_count == 0:
            self.create_sample_data()

        statistics = self._course_service.get_course_statistics()
        print("\n=== Course Statistics ===")
        for key, value in statistics.items():
            print(f"{key}: {value}")

        print("\n=== Students ===")
        for student in self._student_service.get_all_students():
            print(f"{student.student_id} {student.full_name}: GPA {student.gpa:.2f} "
                  f"({student.academic_standing}), enrolled in {student.enrolled_courses}")

        print("\n=== Enrollment Demo ===")
        result = self._enrollment_service.enroll("S2023003", "ENG101")
        print(f"Enrolling S2023003 in ENG101: {result.message}")

        print("\n✓ Demo completed")


def main():
    """Main entry point."""
    import argparse

    parser = argparse.ArgumentParser(description="Alamein University Management System")
    parser.add_argument("--host", type=str, default=None, help="REST server host")
    parser.add_argument("--rest-port", type=int, default=None, help="REST server port")
    parser.add_argument("--demo", action="store_true", help="Run demo mode")
    parser.add_argument("--config", type=str, help="Configuration file path")

    args = parser.parse_args()

    config = load_config(args.config)

    # Create and start platform
    platform = UniversityPlatform(config)

    try:
        if args.demo:
            platform.run_demo()
        else:
            platform.start_platform(args.host, args.rest_port)

            # Keep running
            print("\nPlatform is running. Press Ctrl+C to stop.")
            while True:
                time.sleep(1)

    except KeyboardInterrupt:
        print("\nShutting down...")
        platform.stop_platform()


if __name__ == "__main__":
    main()
