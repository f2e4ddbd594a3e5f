"""
Alamein - Test Configuration and Fixtures
"""
import pytest
from fastapi.testclient import TestClient

from alamein.core.entities import Course, Faculty, Student, User
from alamein.core.enums import UserRole
from alamein.core.security import PasswordHasher
from alamein.main import UniversityPlatform
from alamein.persistence import StoreFactory, create_repositories
from alamein.services import (
    AdminService, AuthenticationService, CourseService, EnrollmentService,
    FacultyService, StudentService
)


@pytest.fixture(autouse=True)
def fast_password_hashing(monkeypatch):
    """Use the cheapest bcrypt work factor so tests stay quick"""
    monkeypatch.setattr(PasswordHasher, "rounds", 4)


@pytest.fixture
def file_store(tmp_path):
    return StoreFactory.create_store("file", base_path=str(tmp_path / "data"))


@pytest.fixture
def sqlite_store(tmp_path):
    return StoreFactory.create_store("sqlite", database_path=str(tmp_path / "university.db"))


@pytest.fixture(params=["file", "sqlite"])
def store(request, tmp_path):
    """Each backend in turn"""
    if request.param == "file":
        return StoreFactory.create_store("file", base_path=str(tmp_path / "data"))
    return StoreFactory.create_store("sqlite", database_path=str(tmp_path / "university.db"))


class Services:
    """All services over one store, rebuilt on demand to simulate a restart"""

    def __init__(self, store):
        self.store = store
        repositories = create_repositories(store)
        self.auth = AuthenticationService(repositories["users"])
        self.students = StudentService(repositories["students"])
        self.faculty = FacultyService(repositories["faculty"])
        self.courses = CourseService(repositories["courses"])
        self.enrollment = EnrollmentService(self.students, self.courses)
        self.admin = AdminService(self.auth, self.students, self.faculty, self.courses)

    def restart(self) -> "Services":
        return Services(self.store)


@pytest.fixture
def build_services():
    return Services


@pytest.fixture
def services(file_store):
    return Services(file_store)


@pytest.fixture
def populated(services):
    """A small catalogue: two students, one faculty member, two courses"""
    services.students.add_student(Student("S100", "Ada Lovelace", "ada@university.edu", "Mathematics", 2023))
    services.students.add_student(Student("S200", "Alan Turing", "alan@university.edu", "Computer Science", 2024))
    services.faculty.add_faculty(Faculty("F100", "Grace Hopper", "grace@university.edu",
                                         "Computer Science", "Professor"))
    services.courses.add_course(Course("CS101", "Intro to Programming", "Basics", 3, "F100"))
    services.courses.add_course(Course("MA101", "Calculus", "Limits and derivatives", 4))
    services.auth.register_user(User("sysadmin", "sysadmin123", UserRole.SYSTEM_ADMIN, "System Administrator"))
    services.auth.register_user(User("staff", "staff123", UserRole.ADMIN_STAFF, "Office Staff"))
    services.auth.register_user(User("S100", "student123", UserRole.STUDENT, "Ada Lovelace"))
    return services


@pytest.fixture
def platform(tmp_path):
    """Platform seeded with the sample data, on a temporary JSON store"""
    return UniversityPlatform({
        "storage_type": "file",
        "storage_config": {"base_path": str(tmp_path / "data")},
        "seed_sample_data": True,
    })


@pytest.fixture
def client(platform):
    return TestClient(platform.app)


@pytest.fixture
def login(client):
    """Log in and return headers carrying the session token"""
    def _login(username: str, password: str) -> dict:
        response = client.post("/auth/login", json={"username": username, "password": password})
        assert response.status_code == 200, response.text
        return {"X-Session-Token": response.json()["token"]}
    return _login
