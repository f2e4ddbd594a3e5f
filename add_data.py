"""
Script to add sample data to the Alamein platform via REST API.
Make sure the server is running before executing this script.

Usage:
    python add_data.py
"""

import json
import os
import sys

import requests


def _console_supports_utf8() -> bool:
    enc = getattr(sys.stdout, "encoding", None)
    return enc is not None and "utf" in enc.lower()


_OK_CHAR = "✓" if _console_supports_utf8() else "[OK]"
_FAIL_CHAR = "✗" if _console_supports_utf8() else "[FAIL]"
_INFO_CHAR = "ℹ" if _console_supports_utf8() else "[INFO]"


def _detect_base_url() -> str:
    """ALAMEIN_BASE_URL if set, else the first local port answering /health."""
    if os.environ.get("ALAMEIN_BASE_URL"):
        return os.environ["ALAMEIN_BASE_URL"]

    candidates = [f"http://{host}:{port}" for host in ("127.0.0.1", "localhost") for port in (8000, 8888)]
    for candidate in candidates:
        try:
            if requests.get(f"{candidate}/health", timeout=0.5).status_code == 200:
                return candidate
        except requests.exceptions.RequestException:
            continue
    return candidates[0]


BASE_URL = _detect_base_url()
ADMIN_USERNAME = os.environ.get("ALAMEIN_USERNAME", "sysadmin")
ADMIN_PASSWORD = os.environ.get("ALAMEIN_PASSWORD", "sysadmin123")


def check_server():
    try:
        if requests.get(f"{BASE_URL}/health", timeout=2).status_code == 200:
            print(f"{_OK_CHAR} Alamein API reachable at {BASE_URL}")
            return True
    except requests.exceptions.RequestException:
        pass
    print(f"{_FAIL_CHAR} No Alamein API at {BASE_URL}. Start it with:")
    print("  python -m alamein.main --rest-port 8000")
    return False


def login(username, password):
    """Log in and return request headers carrying the session token."""
    response = requests.post(f"{BASE_URL}/auth/login", json={"username": username, "password": password})
    if response.status_code != 200:
        print(f"{_FAIL_CHAR} Login failed for {username}: {response.text}")
        return None
    print(f"{_OK_CHAR} Logged in as {username} ({response.json()['role']})")
    return {"X-Session-Token": response.json()["token"]}


def _post(headers, path, data, created_label):
    try:
        response = requests.post(f"{BASE_URL}{path}", json=data, headers=headers)
    except requests.exceptions.RequestException as e:
        print(f"{_FAIL_CHAR} Error calling {path}: {e}")
        return None
    if response.status_code in (200, 201):
        print(f"{_OK_CHAR} {created_label}")
        return response.json()
    print(f"{_FAIL_CHAR} {path} failed ({response.status_code}): {response.text}")
    return None


def create_user(headers, username, password, role, full_name):
    """Create a login account."""
    return _post(headers, "/users",
                 {"username": username, "password": password, "role": role, "full_name": full_name},
                 f"Created user: {username} ({role})")


def create_student(headers, student_id, full_name, email, major, enrollment_year):
    """Create a new student."""
    return _post(headers, "/students",
                 {"student_id": student_id, "full_name": full_name, "email": email,
                  "major": major, "enrollment_year": enrollment_year},
                 f"Created student: {full_name} ({student_id})")


def create_course(headers, course_id, course_name, description, credit_hours, instructor_id=None,
                  max_capacity=30, prerequisites=None):
    """Create a new course."""
    return _post(headers, "/courses",
                 {"course_id": course_id, "course_name": course_name, "description": description,
                  "credit_hours": credit_hours, "instructor_id": instructor_id,
                  "max_capacity": max_capacity, "prerequisites": prerequisites or []},
                 f"Created course: {course_id} - {course_name}")


def enroll_student(headers, student_id, course_id):
    """Enroll a student in a course."""
    try:
        response = requests.post(f"{BASE_URL}/enrollments",
                                 json={"student_id": student_id, "course_id": course_id}, headers=headers)
    except requests.exceptions.RequestException as e:
        print(f"{_FAIL_CHAR} Error enrolling student: {e}")
        return None
    if response.status_code != 200:
        print(f"{_FAIL_CHAR} Failed to enroll student: {response.text}")
        return None
    result = response.json()
    if result["success"]:
        print(f"{_OK_CHAR} Enrolled {student_id} in {course_id}")
    else:
        print(f"{_INFO_CHAR} {student_id} -> {course_id}: {result['message']}")
    return result


def submit_grade(headers, student_id, course_id, percentage=None, letter_grade=None):
    """Record a grade for an enrolled student."""
    data = {"student_id": student_id, "course_id": course_id}
    if percentage is not None:
        data["percentage"] = percentage
    else:
        data["letter_grade"] = letter_grade
    result = _post(headers, "/grades", data, f"Graded {student_id} in {course_id}")
    if result and not result["success"]:
        print(f"{_INFO_CHAR} {result['message']}")
    return result


def _get(headers, path):
    response = requests.get(f"{BASE_URL}{path}", headers=headers)
    if response.status_code != 200:
        print(f"{_FAIL_CHAR} GET {path} failed ({response.status_code}): {response.text}")
        return None
    return response.json()


def _banner(title, char="="):
    print(f"\n{char * 60}\n{title}\n{char * 60}")


def list_students(headers):
    students = _get(headers, "/students") or []
    _banner(f"Students ({len(students)})")
    for student in students:
        print(f"  {student['student_id']:9} | {student['full_name']:18} | GPA {student['gpa']:.2f} | "
              f"{student['academic_standing']}")
    return students


def list_courses(headers):
    courses = _get(headers, "/courses") or []
    _banner(f"Courses ({len(courses)})")
    for course in courses:
        prerequisites = ", ".join(course["prerequisites"]) or "-"
        print(f"  {course['course_id']:8} | {course['course_name']:30} | "
              f"{course['enrollment_count']}/{course['max_capacity']} {course['status']:6} | "
              f"requires {prerequisites}")
    return courses


def show_statistics(headers):
    stats = _get(headers, "/statistics")
    if stats is not None:
        _banner("Statistics")
        print(json.dumps(stats["statistics"], indent=2))
    return stats


def main():
    _banner("Alamein - add sample data over REST")

    if not check_server():
        sys.exit(1)

    headers = login(ADMIN_USERNAME, ADMIN_PASSWORD)
    if headers is None:
        sys.exit(1)

    print("\nStudents and their accounts...")
    new_students = [
        ("S2024001", "David Wilson", "david.wilson@university.edu", "Computer Science"),
        ("S2024002", "Emma Brown", "emma.brown@university.edu", "Mathematics"),
        ("S2024003", "Frank Miller", "frank.miller@university.edu", "Engineering"),
    ]
    for student_id, name, email, major in new_students:
        create_student(headers, student_id, name, email, major, 2024)
        create_user(headers, student_id, "student123", "STUDENT", name)

    print("\nCourses...")
    create_course(headers, "CS301", "Database Systems", "Relational databases and SQL", 3, "F2024001",
                  max_capacity=2, prerequisites=["CS201"])
    create_course(headers, "MATH101", "Calculus I", "Differential calculus", 4)

    print("\nEnrollments...")
    enroll_student(headers, "S2024001", "CS301")
    enroll_student(headers, "S2024002", "CS301")
    # CS301 is now full.
    enroll_student(headers, "S2024003", "CS301")
    enroll_student(headers, "S2024003", "MATH101")

    print("\nGrades...")
    submit_grade(headers, "S2024001", "CS301", percentage=91.0)
    submit_grade(headers, "S2024003", "MATH101", letter_grade="B-")

    list_students(headers)
    list_courses(headers)
    show_statistics(headers)

    _banner(f"{_OK_CHAR} Done. API docs: {BASE_URL}/docs")


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        print(f"\n{_FAIL_CHAR} Interrupted")
        sys.exit(1)
    except requests.exceptions.RequestException as e:
        print(f"\n{_FAIL_CHAR} Request failed: {e}")
        sys.exit(1)
