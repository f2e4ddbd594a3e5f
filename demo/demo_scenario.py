#!/usr/bin/env python3
"""
Demo scenario for the Alamein platform.
"""

import os
import shutil
import sys
import tempfile

# Add the project root to the Python path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from alamein.main import UniversityPlatform
from alamein.core.entities import Course, Grade, Student
from alamein.core.enums import Capability, StudentStatus


def run_demo(storage_type: str = "sqlite"):
    """Run a walk-through of the Alamein platform."""
    print("=" * 60)
    print("ALAMEIN UNIVERSITY MANAGEMENT SYSTEM - DEMO")
    print("=" * 60)

    workdir = tempfile.mkdtemp(prefix="alamein-demo-")
    if storage_type == "sqlite":
        storage_config = {'database_path': os.path.join(workdir, 'demo_university.db')}
    else:
        storage_config = {'base_path': os.path.join(workdir, 'data')}
    config = {
        'storage_type': storage_type,
        'storage_config': storage_config,
        'seed_sample_data': True,
    }

    platform = UniversityPlatform(config)

    try:
        print("\n1. Grade conversion...")
        demonstrate_grades()

        print("\n2. Course capacity and enrollment...")
        demonstrate_capacity(platform)

        print("\n3. Sessions and permissions...")
        demonstrate_sessions(platform)

        print("\n4. Persistence round trip...")
        demonstrate_reload(config)

        print("\n5. Platform statistics...")
        show_statistics(platform)

        print("\n" + "=" * 60)
        print("DEMO COMPLETED SUCCESSFULLY!")
        print("=" * 60)

    finally:
        platform.stop_platform()
        shutil.rmtree(workdir, ignore_errors=True)


def demonstrate_grades():
    for value in (95, 91.5, 59.9, "B+", "D-"):
        grade = Grade(value)
        print(f"    {value!r:>6} -> {grade.letter_grade:2} {grade.grade_points:.1f} pts "
              f"({grade.quality_level}, passing={grade.is_passing()})")


def demonstrate_capacity(platform):
    """Single-seat course: fill it, bounce a second student, drop, then grade."""
    students = platform.student_service
    courses = platform.course_service
    enrollment = platform.enrollment_service

    students.add_student(Student("S1", "Demo Student One", "s1@university.edu", "Physics", 2024))
    students.add_student(Student("S2", "Demo Student Two", "s2@university.edu", "Physics", 2024))
    seminar = Course("C1", "Capstone Seminar", "One-seat seminar", 2)
    courses.add_course(seminar)
    courses.set_max_capacity("C1", 1)

    result = enrollment.enroll("S1", "C1")
    print(f"    Enroll S1 in C1: {result.status.value}; C1 is {courses.get_course('C1').status.value}")

    result = enrollment.enroll("S2", "C1")
    print(f"    Enroll S2 in C1: {result.status.value} ({result.message})")

    result = enrollment.drop("S1", "C1")
    print(f"    Drop S1 from C1: {result.status.value}; C1 is {courses.get_course('C1').status.value}")

    result = enrollment.submit_grade("S1", "C1", Grade(88.0))
    print(f"    Grade S1 in C1 after dropping: {result.status.value} ({result.message})")

    students.update_student_status("S2", StudentStatus.SUSPENDED)
    result = enrollment.enroll("S2", "C1")
    print(f"    Enroll suspended S2 in C1: {result.status.value} ({result.message})")


def demonstrate_sessions(platform):
    auth = platform.auth_service
    for username, password in [("S2023001", "student123"), ("F2024001", "faculty123"),
                               ("sysadmin", "sysadmin123"), ("admin", "wrong-password")]:
        session = auth.login(username, password)
        if session is None:
            print(f"    {username}: login rejected")
            continue
        print(f"    {username} ({session.role.display_name}): "
              f"submit grades={session.can(Capability.SUBMIT_GRADES)}, "
              f"manage users={session.can(Capability.MANAGE_USERS)}")
        auth.logout(session)


def demonstrate_reload(config):
    reloaded = UniversityPlatform(dict(config, seed_sample_data=False))
    alice = reloaded.student_service.get_student("S2023001")
    print(f"    Reloaded {alice.full_name}: GPA {alice.gpa:.2f}, {alice.academic_standing}, "
          f"grades {sorted(alice.grades)}")


def show_statistics(platform):
    report = platform.admin_service.generate_system_report()
    for section in ("users", "students", "faculty", "courses"):
        print(f"    {section.title()}:")
        for key, value in report[section].items():
            print(f"      {key}: {value}")


if __name__ == "__main__":
    run_demo(sys.argv[1] if len(sys.argv) > 1 else "sqlite")
