import pytest

from alamein.core.entities import Faculty, Grade, Student
from alamein.core.enums import StudentStatus
from alamein.core.exceptions import EnrollmentError, ValidationError


@pytest.fixture
def student():
    return Student("S1", "Ada Lovelace", "ada@university.edu", "Mathematics", 2023)


def test_student_defaults(student):
    assert student.status is StudentStatus.ACTIVE
    assert student.gpa == 0.0
    assert student.enrolled_courses == []
    assert student.grades == {}
    assert student.academic_standing == "Academic Probation"


@pytest.mark.parametrize("email", ["ada.university.edu", "", None])
def test_email_must_contain_at(email):
    with pytest.raises(ValidationError):
        Student("S1", "Ada Lovelace", email, "Mathematics", 2023)


def test_set_email_validated(student):
    with pytest.raises(ValidationError):
        student.set_email("not-an-email")
    assert student.email == "ada@university.edu"


def test_enroll_and_drop(student):
    assert student.enroll_in_course("CS101")
    assert not student.enroll_in_course("CS101")
    assert student.enrolled_courses == ["CS101"]

    assert student.drop_course("CS101")
    assert not student.drop_course("CS101")
    assert student.enrolled_courses == []


@pytest.mark.parametrize("status", [
    StudentStatus.INACTIVE, StudentStatus.GRADUATED, StudentStatus.SUSPENDED,
    StudentStatus.EXPELLED, StudentStatus.ON_LEAVE,
])
def test_only_active_students_enroll(student, status):
    student.set_status(status)

    assert not student.enroll_in_course("CS101")
    assert student.enrolled_courses == []


def test_grade_requires_enrollment(student):
    """Test grading a course the student never took changes nothing"""
    student.enroll_in_course("CS101")
    student.add_grade("CS101", Grade("A"))
    before = student.to_dict()

    with pytest.raises(EnrollmentError) as excinfo:
        student.add_grade("MA101", Grade(88.0))

    assert excinfo.value.error_code == "NOT_ENROLLED"
    assert student.to_dict() == before


def test_grade_moves_course_out_of_enrollments(student):
    student.enroll_in_course("CS101")
    student.add_grade("CS101", Grade(95))

    assert student.enrolled_courses == []
    assert "CS101" in student.grades
    assert student.completed_courses == 1


def test_graded_course_cannot_be_retaken(student):
    student.enroll_in_course("CS101")
    student.add_grade("CS101", Grade("C"))

    assert not student.enroll_in_course("CS101")


def test_gpa_is_unweighted_mean(student):
    """Test GPA over {A, B+} then with an F added"""
    for course_id in ("CS101", "CS201", "CS301"):
        student.enroll_in_course(course_id)

    student.add_grade("CS101", Grade("A"))
    student.add_grade("CS201", Grade("B+"))
    assert student.gpa == pytest.approx(3.65)

    student.add_grade("CS301", Grade("F"))
    assert student.gpa == pytest.approx(7.3 / 3)


@pytest.mark.parametrize("gpa,standing", [
    (4.0, "Dean's List"),
    (3.5, "Dean's List"),
    (3.4999, "Good Standing"),
    (3.0, "Good Standing"),
    (2.5, "Satisfactory"),
    (2.0, "Academic Warning"),
    (1.99, "Academic Probation"),
    (0.0, "Academic Probation"),
])
def test_academic_standing(student, gpa, standing):
    student._gpa = gpa

    assert student.academic_standing == standing


def test_dean_list_from_grades(student):
    student.enroll_in_course("CS101")
    student.enroll_in_course("CS201")
    student.add_grade("CS101", Grade("A"))
    student.add_grade("CS201", Grade("B"))

    assert student.gpa == pytest.approx(3.5)
    assert student.academic_standing == "Dean's List"


def test_student_to_dict_nests_grades(student):
    student.enroll_in_course("CS101")
    student.add_grade("CS101", Grade(85.5))

    data = student.to_dict()
    assert data["grades"]["CS101"]["letter_grade"] == "B"
    assert data["status"] == "ACTIVE"
    assert data["gpa"] == 3.0


def test_faculty_course_assignments():
    faculty = Faculty("F1", "Grace Hopper", "grace@university.edu", "Computer Science", "Professor")

    assert faculty.assign_course("CS101")
    assert not faculty.assign_course("CS101")
    assert faculty.assign_course("CS201")
    assert faculty.course_load == 2
    assert faculty.remove_course_assignment("CS101")
    assert not faculty.remove_course_assignment("CS101")
    assert faculty.courses_taught == ["CS201"]
