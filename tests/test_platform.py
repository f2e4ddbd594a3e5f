import json

import pytest

from alamein.core.enums import CourseStatus
from alamein.core.exceptions import ConfigurationError
from alamein.main import DEFAULT_CONFIG, UniversityPlatform, load_config


def test_load_config_merges_file(tmp_path):
    path = tmp_path / "alamein.json"
    path.write_text(json.dumps({"storage_type": "sqlite", "rest_port": 9000}), encoding="utf-8")

    config = load_config(str(path))

    assert config["storage_type"] == "sqlite"
    assert config["rest_port"] == 9000
    assert config["seed_sample_data"] is True
    assert DEFAULT_CONFIG["storage_type"] == "file"


def test_load_config_defaults():
    assert load_config() == DEFAULT_CONFIG


def test_sample_data(platform):
    """Test the seeded catalogue after its enrollments and grades"""
    students = platform.student_service
    courses = platform.course_service

    assert platform.auth_service.user_count == 7
    assert students.get_student("S2023001").gpa == pytest.approx(3.35)
    assert students.get_student("S2023002").gpa == pytest.approx(3.3)
    assert students.get_student("S2023002").enrolled_courses == ["ENG101"]
    assert students.get_student("S2023003").gpa == 0.0
    assert courses.get_course("CS101").enrolled_students == ["S2023001", "S2023002", "S2023003"]
    assert courses.get_course("CS201").enrolled_students == ["S2023001"]
    assert platform.faculty_service.get_faculty("F2024001").courses_taught == ["CS101", "CS201"]


def test_sample_data_seeded_once(platform):
    config = platform.config
    restarted = UniversityPlatform(config)

    assert restarted.auth_service.user_count == 7
    assert restarted.student_service.student_count == 3


def test_sqlite_platform(tmp_path):
    platform = UniversityPlatform({
        "storage_type": "sqlite",
        "storage_config": {"database_path": str(tmp_path / "db" / "university.db")},
    })

    assert platform.course_service.get_course("ENG101").status is CourseStatus.OPEN
    assert platform.auth_service.login("sysadmin", "sysadmin123") is not None


def test_unknown_storage_type(tmp_path):
    with pytest.raises(ConfigurationError):
        UniversityPlatform({"storage_type": "mongodb", "storage_config": {}})
