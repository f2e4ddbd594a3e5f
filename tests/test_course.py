import pytest

from alamein.core.entities import Course
from alamein.core.enums import CourseStatus
from alamein.core.exceptions import ValidationError


def make_course(capacity=None, course_id="C1"):
    course = Course(course_id, "Capstone", "Final project", 3, "F100")
    if capacity is not None:
        course.set_max_capacity(capacity)
    return course


def test_course_defaults():
    course = make_course()

    assert course.status is CourseStatus.OPEN
    assert course.max_capacity == 30
    assert course.enrolled_students == []
    assert course.available_spots == 30
    assert course.has_available_spots()


@pytest.mark.parametrize("credit_hours", [0, 7, -1])
def test_credit_hours_bounds(credit_hours):
    with pytest.raises(ValidationError):
        Course("C1", "Capstone", "Final project", credit_hours)


@pytest.mark.parametrize("course_id", ["", "   ", None])
def test_course_id_required(course_id):
    with pytest.raises(ValidationError):
        Course(course_id, "Capstone", "Final project", 3)


def test_course_turns_full_on_last_seat():
    """Test FULL is reached exactly on the Nth enrollment"""
    course = make_course(capacity=3)

    assert course.enroll_student("S1")
    assert course.enroll_student("S2")
    assert course.status is CourseStatus.OPEN
    assert course.enroll_student("S3")
    assert course.status is CourseStatus.FULL
    assert course.available_spots == 0
    assert not course.has_available_spots()


def test_full_course_rejects_enrollment():
    course = make_course(capacity=1)
    course.enroll_student("S1")

    assert not course.enroll_student("S2")
    assert course.enrolled_students == ["S1"]
    assert course.status is CourseStatus.FULL


def test_drop_reopens_full_course():
    course = make_course(capacity=2)
    course.enroll_student("S1")
    course.enroll_student("S2")

    assert course.drop_student("S1")
    assert course.status is CourseStatus.OPEN
    assert course.enrolled_students == ["S2"]


def test_drop_unknown_student():
    course = make_course()

    assert not course.drop_student("S9")


def test_double_enrollment_is_noop():
    """Test enrolling the same student twice"""
    course = make_course()
    assert course.enroll_student("S1")

    assert not course.enroll_student("S1")
    assert course.enrollment_count == 1


@pytest.mark.parametrize("status", [
    CourseStatus.CLOSED, CourseStatus.CANCELLED, CourseStatus.IN_PROGRESS, CourseStatus.COMPLETED
])
def test_only_open_courses_accept_students(status):
    course = make_course()
    course.set_status(status)

    assert not course.enroll_student("S1")
    assert course.enrolled_students == []


def test_capacity_below_one_rejected():
    course = make_course()

    with pytest.raises(ValidationError):
        course.set_max_capacity(0)
    assert course.max_capacity == 30


def test_capacity_change_toggles_open_and_full():
    """Test shrinking fills a course and growing reopens it"""
    course = make_course(capacity=5)
    course.enroll_student("S1")
    course.enroll_student("S2")

    course.set_max_capacity(2)
    assert course.status is CourseStatus.FULL

    course.set_max_capacity(3)
    assert course.status is CourseStatus.OPEN


def test_capacity_change_leaves_explicit_status_alone():
    """Test CLOSED courses are never reopened or filled automatically"""
    course = make_course(capacity=5)
    course.enroll_student("S1")
    course.set_status(CourseStatus.CLOSED)

    course.set_max_capacity(1)
    assert course.status is CourseStatus.CLOSED

    course.set_max_capacity(10)
    assert course.status is CourseStatus.CLOSED

    course.drop_student("S1")
    assert course.status is CourseStatus.CLOSED


def test_set_status_accepts_value_string():
    course = make_course()
    course.set_status("IN_PROGRESS")

    assert course.status is CourseStatus.IN_PROGRESS
    assert course.status.is_active()


def test_prerequisites():
    course = make_course()
    course.add_prerequisite("CS101")
    course.add_prerequisite("CS101")
    course.add_prerequisite("MA101")

    assert course.prerequisites == ["CS101", "MA101"]
    assert course.remove_prerequisite("CS101")
    assert not course.remove_prerequisite("CS101")
    assert course.prerequisites == ["MA101"]


def test_enrollment_percentage():
    course = make_course(capacity=4)
    course.enroll_student("S1")

    assert course.enrollment_percentage == 25.0


def test_update_dispatches_to_setters():
    course = make_course()
    version = course.version

    course.update(course_name="Capstone II", classroom="B-12", credit_hours=4)

    assert course.course_name == "Capstone II"
    assert course.classroom == "B-12"
    assert course.credit_hours == 4
    assert course.version > version

    with pytest.raises(ValidationError):
        course.update(enrolled_students=["S1"])


def test_update_is_all_or_nothing():
    course = make_course()
    version = course.version

    with pytest.raises(ValidationError):
        course.update(course_name="Renamed", classroom="B-12", credit_hours=9)

    assert course.course_name == "Capstone"
    assert course.classroom != "B-12"
    assert course.credit_hours == 3
    assert course.version == version


def test_to_dict_stores_status_value():
    data = make_course(capacity=1).to_dict()

    assert data["course_id"] == "C1"
    assert data["status"] == "OPEN"
    assert data["max_capacity"] == 1
    assert data["instructor_id"] == "F100"
