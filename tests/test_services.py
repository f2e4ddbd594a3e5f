import pytest

from alamein.core.entities import Course, Faculty, Grade, Student
from alamein.core.enums import CourseStatus, StudentStatus
from alamein.core.exceptions import ResourceNotFoundError, ValidationError
from alamein.services import EnrollmentStatus


def test_add_student_rejects_duplicates(services):
    assert services.students.add_student(Student("S1", "Ada", "ada@u.edu", "Math", 2023))
    assert not services.students.add_student(Student("S1", "Other", "other@u.edu", "Art", 2024))
    assert not services.students.add_student(None)
    assert services.students.student_count == 1
    assert services.students.get_student("S1").full_name == "Ada"


def test_update_and_remove_student(services):
    services.students.add_student(Student("S1", "Ada", "ada@u.edu", "Math", 2023))

    assert services.students.update_student("S1", Student("S1", "Ada King", "ada@u.edu", "Math", 2023))
    assert not services.students.update_student("S2", Student("S2", "Nobody", "n@u.edu", "Math", 2023))
    assert services.students.get_student("S1").full_name == "Ada King"

    assert services.students.remove_student("S1")
    assert not services.students.remove_student("S1")
    assert services.students.get_student("S1") is None


def test_mutations_are_persisted(services):
    """Test every mutation survives a restart"""
    services.students.add_student(Student("S1", "Ada", "ada@u.edu", "Math", 2023))
    services.students.enroll_student_in_course("S1", "CS101")
    services.students.update_student_status("S1", StudentStatus.ON_LEAVE)

    restarted = services.restart()
    student = restarted.students.get_student("S1")
    assert student.enrolled_courses == ["CS101"]
    assert student.status is StudentStatus.ON_LEAVE


def test_student_add_grade_reports_not_enrolled(populated):
    assert not populated.students.add_grade("S100", "CS101", Grade("A"))
    assert not populated.students.add_grade("S999", "CS101", Grade("A"))

    populated.students.enroll_student_in_course("S100", "CS101")
    assert populated.students.add_grade("S100", "CS101", Grade("A"))
    assert populated.students.get_student("S100").gpa == 4.0


def test_student_queries(populated):
    students = populated.students
    students.enroll_student_in_course("S100", "CS101")
    students.add_grade("S100", "CS101", Grade("B"))
    students.enroll_student_in_course("S200", "MA101")

    assert [s.student_id for s in students.get_students_by_major("computer science")] == ["S200"]
    assert [s.student_id for s in students.get_students_by_enrollment_year(2023)] == ["S100"]
    assert [s.student_id for s in students.get_students_in_course("MA101")] == ["S200"]
    assert [s.student_id for s in students.get_students_with_gpa_above(3.0)] == ["S100"]
    assert [s.student_id for s in students.get_students_with_gpa_between(2.5, 3.5)] == ["S100"]
    # No grades yet means a 0.0 GPA, which counts as probation.
    assert [s.student_id for s in students.get_students_on_probation()] == ["S200"]
    assert [s.student_id for s in students.search_students_by_name("  TURING ")] == ["S200"]
    assert students.search_students_by_name("   ") == []
    assert students.get_average_gpa() == pytest.approx(1.5)


def test_status_counts(populated):
    populated.students.update_student_status("S200", "SUSPENDED")

    assert populated.students.active_student_count == 1
    assert [s.student_id for s in populated.students.get_students_by_status(StudentStatus.SUSPENDED)] == ["S200"]
    assert not populated.students.update_student_status("S999", StudentStatus.ACTIVE)


def test_average_gpa_empty(services):
    assert services.students.get_average_gpa() == 0.0


def test_faculty_service(populated):
    faculty = populated.faculty
    faculty.add_faculty(Faculty("F200", "Edsger Dijkstra", "edsger@university.edu",
                                "Computer Science", "Professor"))
    faculty.add_faculty(Faculty("F300", "Emmy Noether", "emmy@university.edu", "Mathematics", "Professor"))

    assert faculty.assign_course("F100", "CS101")
    assert faculty.assign_course("F100", "CS201")
    assert not faculty.assign_course("F100", "CS101")
    assert faculty.assign_course("F300", "MA101")
    assert not faculty.assign_course("F999", "MA101")

    assert faculty.faculty_count == 3
    assert faculty.get_total_courses_assigned() == 3
    assert faculty.get_average_course_load() == pytest.approx(1.0)
    assert faculty.get_faculty_stats_by_department() == {"Computer Science": 2, "Mathematics": 1}
    assert [f.faculty_id for f in faculty.get_faculty_teaching_course("MA101")] == ["F300"]
    assert [f.faculty_id for f in faculty.get_faculty_by_department("mathematics")] == ["F300"]
    assert [f.faculty_id for f in faculty.search_faculty_by_name("grace")] == ["F100"]

    assert faculty.remove_course_assignment("F100", "CS201")
    assert not faculty.remove_course_assignment("F100", "CS201")
    assert faculty.remove_faculty("F200")
    assert faculty.get_faculty("F200") is None


def test_course_service_queries(populated):
    courses = populated.courses
    courses.add_course(Course("CS201", "Data Structures", "Trees and graphs", 3, "F100"))
    courses.set_course_status("MA101", CourseStatus.IN_PROGRESS)

    assert not courses.add_course(Course("CS101", "Duplicate", "", 3))
    assert [c.course_id for c in courses.get_available_courses()] == ["CS101", "CS201"]
    assert [c.course_id for c in courses.get_courses_by_instructor("F100")] == ["CS101", "CS201"]
    assert [c.course_id for c in courses.get_courses_by_credit_hours(4)] == ["MA101"]
    assert [c.course_id for c in courses.search_courses_by_name("data")] == ["CS201"]
    assert courses.course_count == 3


def test_course_capacity_through_service(populated):
    courses = populated.courses

    with pytest.raises(ValidationError):
        courses.set_max_capacity("CS101", 0)
    assert not courses.set_max_capacity("XX999", 5)

    assert courses.set_max_capacity("CS101", 1)
    assert courses.enroll_student("CS101", "S100")
    assert courses.get_course("CS101").status is CourseStatus.FULL
    assert not courses.enroll_student("CS101", "S200")
    assert courses.drop_student("CS101", "S100")
    assert courses.get_course("CS101").status is CourseStatus.OPEN


def test_course_statistics(populated):
    populated.courses.enroll_student("CS101", "S100")
    populated.courses.enroll_student("CS101", "S200")
    populated.courses.set_course_status("MA101", "IN_PROGRESS")

    stats = populated.courses.get_course_statistics()
    assert stats == {
        "total_courses": 2,
        "active_courses": 1,
        "available_courses": 1,
        "full_courses": 0,
        "total_enrollments": 2,
        "average_enrollment": 1.0,
    }


def test_enrollment_updates_both_sides(populated):
    result = populated.enrollment.enroll("S100", "CS101")

    assert result.success
    assert result.status is EnrollmentStatus.CONFIRMED
    assert populated.courses.get_course("CS101").enrolled_students == ["S100"]
    assert populated.students.get_student("S100").enrolled_courses == ["CS101"]

    result = populated.enrollment.drop("S100", "CS101")
    assert result.status is EnrollmentStatus.DROPPED
    assert populated.courses.get_course("CS101").enrolled_students == []
    assert populated.students.get_student("S100").enrolled_courses == []


@pytest.mark.parametrize("student_id,course_id", [("S999", "CS101"), ("S100", "XX999")])
def test_enrollment_unknown_ids(populated, student_id, course_id):
    result = populated.enrollment.enroll(student_id, course_id)

    assert not result.success
    assert result.status is EnrollmentStatus.REJECTED


def test_enrollment_rejects_inactive_student(populated):
    populated.students.update_student_status("S100", StudentStatus.SUSPENDED)

    result = populated.enrollment.enroll("S100", "CS101")
    assert not result.success
    assert populated.courses.get_course("CS101").enrolled_students == []


def test_enrollment_rolls_back_roster(populated, monkeypatch):
    """Test the roster seat is released when the student record refuses"""
    monkeypatch.setattr(populated.students, "enroll_student_in_course", lambda student_id, course_id: False)

    result = populated.enrollment.enroll("S100", "CS101")

    assert not result.success
    assert populated.courses.get_course("CS101").enrolled_students == []


def test_drop_when_not_enrolled(populated):
    result = populated.enrollment.drop("S100", "CS101")

    assert not result.success
    assert result.status is EnrollmentStatus.REJECTED


def test_submit_grade_keeps_roster(populated):
    populated.courses.set_max_capacity("CS101", 1)
    populated.enrollment.enroll("S100", "CS101")
    assert populated.courses.get_course("CS101").status is CourseStatus.FULL

    result = populated.enrollment.submit_grade("S100", "CS101", Grade(91.5))

    assert result.success
    assert result.status is EnrollmentStatus.GRADED
    assert result.metadata["grade"]["letter_grade"] == "A-"
    course = populated.courses.get_course("CS101")
    assert course.enrolled_students == ["S100"]
    assert course.status is CourseStatus.FULL
    student = populated.students.get_student("S100")
    assert student.enrolled_courses == []
    assert student.gpa == pytest.approx(3.7)


def test_capacity_one_scenario(services):
    """Test the single-seat walk-through: fill, bounce, drop, then grading fails"""
    services.students.add_student(Student("S1", "First", "s1@u.edu", "Physics", 2024))
    services.students.add_student(Student("S2", "Second", "s2@u.edu", "Physics", 2024))
    services.courses.add_course(Course("C1", "Seminar", "One seat", 2))
    services.courses.set_max_capacity("C1", 1)

    assert services.enrollment.enroll("S1", "C1").success
    assert services.courses.get_course("C1").status is CourseStatus.FULL

    assert not services.enrollment.enroll("S2", "C1").success
    assert services.courses.get_course("C1").status is CourseStatus.FULL

    assert services.enrollment.drop("S1", "C1").success
    assert services.courses.get_course("C1").status is CourseStatus.OPEN

    result = services.enrollment.submit_grade("S1", "C1", Grade(88.0))
    assert not result.success
    assert services.students.get_student("S1").grades == {}


def test_system_report(populated):
    populated.enrollment.enroll("S100", "CS101")
    populated.enrollment.submit_grade("S100", "CS101", Grade("B"))
    populated.faculty.assign_course("F100", "CS101")

    report = populated.admin.generate_system_report()

    assert report["users"]["total"] == 3
    assert report["users"]["by_role"] == {"System Administrator": 1, "Administrative Staff": 1, "Student": 1}
    assert report["students"]["total"] == 2
    assert report["students"]["by_major"] == {"Mathematics": 1, "Computer Science": 1}
    assert report["students"]["on_probation"] == 1
    assert report["faculty"]["total_courses_assigned"] == 1
    assert report["courses"]["total_courses"] == 2
    assert {c["course_id"] for c in report["courses"]["with_available_spots"]} == {"CS101", "MA101"}


def test_student_report(populated):
    populated.enrollment.enroll("S100", "CS101")
    populated.enrollment.enroll("S100", "MA101")
    populated.enrollment.submit_grade("S100", "MA101", Grade(85.5))

    report = populated.admin.generate_student_report("S100")

    assert report["student"]["academic_standing"] == "Good Standing"
    assert report["current_enrollments"] == [
        {"course_id": "CS101", "course_name": "Intro to Programming", "credit_hours": 3}
    ]
    assert report["completed_courses"][0]["letter_grade"] == "B"
    assert report["total_completed_credits"] == 4

    with pytest.raises(ResourceNotFoundError):
        populated.admin.generate_student_report("S999")


def test_faculty_report(populated):
    populated.faculty.assign_course("F100", "CS101")
    populated.enrollment.enroll("S200", "CS101")

    report = populated.admin.generate_faculty_report("F100")

    assert report["faculty"]["course_load"] == 1
    assert report["courses_taught"] == [{"course_id": "CS101", "course_name": "Intro to Programming", "enrolled": 1}]

    with pytest.raises(ResourceNotFoundError):
        populated.admin.generate_faculty_report("F999")


def test_reload_reads_store_again(services):
    other = services.restart()
    other.students.add_student(Student("S1", "Ada", "ada@u.edu", "Math", 2023))

    assert services.students.get_student("S1") is None
    services.students.reload()
    assert services.students.get_student("S1").full_name == "Ada"
