import json
import os

import pytest

from alamein.core.entities import Course, Faculty, Grade, Student, User
from alamein.core.enums import CourseStatus, StudentStatus, UserRole
from alamein.core.exceptions import ConfigurationError, PersistenceError
from alamein.persistence import DatabaseFactory, JsonFileStore, StoreFactory, create_repositories
from alamein.services import StudentService


def test_students_round_trip(store, build_services):
    """Test grades, enrollment order and status survive a restart"""
    services = build_services(store)
    student = Student("S1", "Ada Lovelace", "ada@university.edu", "Mathematics", 2023)
    services.students.add_student(student)
    for course_id in ("MA201", "CS101", "PH101"):
        services.students.enroll_student_in_course("S1", course_id)
    services.students.add_grade("S1", "CS101", Grade(85.5))
    services.students.add_grade("S1", "PH101", Grade("A-"))
    services.students.update_student_status("S1", StudentStatus.ON_LEAVE)

    restored = services.restart().students.get_student("S1")

    assert restored.full_name == "Ada Lovelace"
    assert restored.enrolled_courses == ["MA201"]
    assert restored.grades["CS101"] == Grade(85.5)
    assert restored.grades["PH101"].letter_grade == "A-"
    assert restored.gpa == pytest.approx((3.0 + 3.7) / 2)
    assert restored.status is StudentStatus.ON_LEAVE


def test_courses_round_trip(store, build_services):
    services = build_services(store)
    course = Course("CS101", "Intro to Programming", "Basics", 3, "F100")
    course.set_max_capacity(2)
    course.add_prerequisite("MA100")
    services.courses.add_course(course)
    services.courses.enroll_student("CS101", "S2")
    services.courses.enroll_student("CS101", "S1")

    restored = services.restart().courses.get_course("CS101")

    assert restored.enrolled_students == ["S2", "S1"]
    assert restored.status is CourseStatus.FULL
    assert restored.max_capacity == 2
    assert restored.prerequisites == ["MA100"]
    assert restored.instructor_id == "F100"


def test_faculty_round_trip(store, build_services):
    services = build_services(store)
    services.faculty.add_faculty(Faculty("F1", "Grace Hopper", "grace@university.edu",
                                         "Computer Science", "Professor"))
    services.faculty.assign_course("F1", "CS201")
    services.faculty.assign_course("F1", "CS101")

    restored = services.restart().faculty.get_faculty("F1")

    assert restored.courses_taught == ["CS201", "CS101"]
    assert restored.position == "Professor"


def test_users_round_trip(store, build_services):
    """Test a reloaded account still verifies its password"""
    services = build_services(store)
    services.auth.register_user(User("alice", "secret123", UserRole.FACULTY, "Alice"))

    restarted = services.restart()
    session = restarted.auth.login("alice", "secret123")

    assert session is not None
    assert session.role is UserRole.FACULTY
    assert restarted.auth.login("alice", "wrong-pass") is None


def test_removed_records_are_gone_after_restart(store, build_services):
    services = build_services(store)
    services.students.add_student(Student("S1", "Ada", "ada@u.edu", "Math", 2023))
    services.students.add_student(Student("S2", "Alan", "alan@u.edu", "CS", 2023))
    services.students.remove_student("S1")

    restarted = services.restart()

    assert restarted.students.get_student("S1") is None
    assert restarted.students.student_count == 1


def test_file_layout(file_store, tmp_path, build_services):
    services = build_services(file_store)
    services.students.add_student(Student("S1", "Ada", "ada@u.edu", "Math", 2023))

    path = tmp_path / "data" / "students.json"
    document = json.loads(path.read_text(encoding="utf-8"))
    assert document["collection"] == "students"
    assert document["records"][0]["student_id"] == "S1"
    assert not [name for name in os.listdir(tmp_path / "data") if name.endswith(".tmp")]


def test_failed_rename_keeps_previous_file(file_store, tmp_path, monkeypatch):
    """Test an interrupted save leaves the old collection intact"""
    file_store.save_collection("students", [{"id": "old"}])

    def broken_replace(src, dst):
        raise OSError("disk full")

    with monkeypatch.context() as m:
        m.setattr(os, "replace", broken_replace)
        with pytest.raises(PersistenceError):
            file_store.save_collection("students", [{"id": "new"}])

    assert file_store.load_collection("students") == [{"id": "old"}]
    assert not [name for name in os.listdir(tmp_path / "data") if name.endswith(".tmp")]


def test_missing_and_empty_files_load_empty(file_store, tmp_path):
    assert file_store.load_collection("courses") == []

    (tmp_path / "data" / "courses.json").write_text("", encoding="utf-8")
    assert file_store.load_collection("courses") == []
    assert file_store.is_empty("courses")


def test_corrupt_file_starts_service_empty(file_store, tmp_path):
    (tmp_path / "data" / "students.json").write_text("{not json", encoding="utf-8")

    with pytest.raises(PersistenceError):
        file_store.load_collection("students")

    service = StudentService(create_repositories(file_store)["students"])
    assert service.student_count == 0


def test_malformed_record_is_skipped(file_store, tmp_path, build_services):
    services = build_services(file_store)
    services.students.add_student(Student("S1", "Ada", "ada@u.edu", "Math", 2023))

    path = tmp_path / "data" / "students.json"
    document = json.loads(path.read_text(encoding="utf-8"))
    document["records"].append({"id": "BROKEN", "full_name": "No Id"})
    path.write_text(json.dumps(document), encoding="utf-8")

    restarted = services.restart()
    assert [s.student_id for s in restarted.students.get_all_students()] == ["S1"]


class FailingStore(JsonFileStore):
    def save_collection(self, name, records):
        raise PersistenceError("store offline")


def test_save_failure_keeps_in_memory_change(tmp_path, build_services):
    """Test a mutation is still applied when the write fails"""
    services = build_services(FailingStore(base_path=str(tmp_path / "data")))

    assert services.students.add_student(Student("S1", "Ada", "ada@u.edu", "Math", 2023))
    assert services.students.get_student("S1") is not None
    assert services.restart().students.get_student("S1") is None


def test_save_closes_temp_file_when_open_fails(tmp_path, monkeypatch):
    """Test a failed open of the temp file closes its descriptor and removes it"""
    base = tmp_path / "data"
    file_store = JsonFileStore(base_path=str(base))
    closed = []
    real_close = os.close

    def failing_fdopen(fd, *args, **kwargs):
        raise OSError("too many open files")

    def recording_close(fd):
        closed.append(fd)
        real_close(fd)

    monkeypatch.setattr(os, "fdopen", failing_fdopen)
    monkeypatch.setattr(os, "close", recording_close)

    with pytest.raises(PersistenceError):
        file_store.save_collection("students", [{"id": "S1"}])

    assert closed
    assert list(base.iterdir()) == []


def test_sqlite_is_empty(sqlite_store, build_services):
    assert sqlite_store.is_empty("courses")

    build_services(sqlite_store).courses.add_course(Course("CS101", "Intro", "Basics", 3))
    assert not sqlite_store.is_empty("courses")


def test_sqlite_unknown_collection(sqlite_store):
    with pytest.raises(PersistenceError):
        sqlite_store.load_collection("rooms")


def test_describe(file_store, sqlite_store):
    assert file_store.describe().startswith("file:")
    assert sqlite_store.describe().startswith("sqlite:")


def test_unknown_store_type():
    with pytest.raises(ConfigurationError):
        StoreFactory.create_store("postgres")

    with pytest.raises(ConfigurationError):
        DatabaseFactory.create_database("oracle")


def test_sqlite_schema_created(tmp_path):
    database = DatabaseFactory.create_database("sqlite", database_path=str(tmp_path / "schema.db"))

    for table in ("users", "students", "student_grades", "course_enrollments", "departments"):
        assert database.table_exists(table)
    assert not database.table_exists("lecture_halls")
