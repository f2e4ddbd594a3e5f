"""
Core entities for the Alamein platform: grades, courses and the people
who take and teach them.
"""

import copy
import re
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from .enums import CourseStatus, StudentStatus, UserRole
from .exceptions import EnrollmentError, ValidationError
from .security import PasswordHasher


# (lower bound, letter) pairs, checked top to bottom.
PERCENTAGE_BANDS = (
    (97.0, "A+"),
    (93.0, "A"),
    (90.0, "A-"),
    (87.0, "B+"),
    (83.0, "B"),
    (80.0, "B-"),
    (77.0, "C+"),
    (73.0, "C"),
    (70.0, "C-"),
    (67.0, "D+"),
    (63.0, "D"),
    (60.0, "D-"),
)

GRADE_POINTS = {
    "A+": 4.0, "A": 4.0, "A-": 3.7,
    "B+": 3.3, "B": 3.0, "B-": 2.7,
    "C+": 2.3, "C": 2.0, "C-": 1.7,
    "D+": 1.3, "D": 1.0, "D-": 0.7,
    "F": 0.0,
}

# Representative percentage for a grade entered as a letter.
LETTER_MIDPOINTS = {
    "A+": 98.0, "A": 95.0, "A-": 91.5,
    "B+": 88.5, "B": 85.0, "B-": 81.5,
    "C+": 78.5, "C": 75.0, "C-": 71.5,
    "D+": 68.5, "D": 65.0, "D-": 61.5,
    "F": 50.0,
}

PASSING_POINTS = 0.7

# (minimum GPA, label), checked top to bottom.
ACADEMIC_STANDINGS = (
    (3.5, "Dean's List"),
    (3.0, "Good Standing"),
    (2.5, "Satisfactory"),
    (2.0, "Academic Warning"),
)
PROBATION = "Academic Probation"

DEFAULT_COURSE_CAPACITY = 30

_LETTER_PATTERN = re.compile(r"^[ABCDF][+-]?$")


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _require_text(value: Optional[str], message: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(message)
    return value


def _validate_email(email: Optional[str]) -> str:
    if email is None or "@" not in email:
        raise ValidationError("Invalid email address")
    return email


class Grade:
    """Immutable grade value: percentage, letter grade and grade points."""

    __slots__ = ("_percentage", "_letter_grade", "_grade_points")

    def __init__(self, value: Union[float, int, str]):
        if isinstance(value, str):
            letter = self._validate_letter(value)
            percentage = LETTER_MIDPOINTS[letter]
        elif isinstance(value, (int, float)) and not isinstance(value, bool):
            percentage = self._validate_percentage(value)
            letter = self.letter_for_percentage(percentage)
        else:
            raise ValidationError(f"Cannot build a grade from {value!r}")
        self._percentage = percentage
        self._letter_grade = letter
        self._grade_points = GRADE_POINTS[letter]

    @classmethod
    def from_percentage(cls, percentage: float) -> "Grade":
        if isinstance(percentage, str):
            raise ValidationError("Percentage must be a number")
        return cls(percentage)

    @classmethod
    def from_letter(cls, letter_grade: str) -> "Grade":
        if not isinstance(letter_grade, str):
            raise ValidationError("Invalid letter grade format")
        return cls(letter_grade)

    @classmethod
    def from_record(cls, percentage: float, letter_grade: str) -> "Grade":
        """Rebuild a stored grade, keeping both its percentage and letter."""
        grade = cls(letter_grade)
        grade._percentage = cls._validate_percentage(percentage)
        return grade

    @staticmethod
    def _validate_percentage(percentage: float) -> float:
        if percentage < 0 or percentage > 100:
            raise ValidationError("Percentage must be between 0 and 100")
        return float(percentage)

    @staticmethod
    def _validate_letter(letter_grade: str) -> str:
        if not _LETTER_PATTERN.match(letter_grade):
            raise ValidationError("Invalid letter grade format")
        return letter_grade

    @staticmethod
    def letter_for_percentage(percentage: float) -> str:
        for threshold, letter in PERCENTAGE_BANDS:
            if percentage >= threshold:
                return letter
        return "F"

    @property
    def percentage(self) -> float:
        return self._percentage

    @property
    def letter_grade(self) -> str:
        return self._letter_grade

    @property
    def grade_points(self) -> float:
        return self._grade_points

    def is_passing(self) -> bool:
        """D- or better."""
        return self._grade_points >= PASSING_POINTS

    @property
    def quality_level(self) -> str:
        if self._grade_points >= 3.7:
            return "Excellent"
        if self._grade_points >= 3.0:
            return "Good"
        if self._grade_points >= 2.0:
            return "Satisfactory"
        if self._grade_points >= 1.0:
            return "Below Average"
        return "Failing"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "percentage": self._percentage,
            "letter_grade": self._letter_grade,
            "grade_points": self._grade_points,
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Grade):
            return NotImplemented
        return self._percentage == other._percentage and self._letter_grade == other._letter_grade

    def __hash__(self) -> int:
        return hash(self._letter_grade)

    def __repr__(self) -> str:
        return f"Grade(letter={self._letter_grade!r}, percentage={self._percentage:.1f}, points={self._grade_points:.1f})"


class AbstractEntity(ABC):
    """Base entity with a natural identifier, timestamps and a version counter."""

    def __init__(self):
        self._created_at = _now()
        self._updated_at = self._created_at
        self._version = 1

    @property
    @abstractmethod
    def id(self) -> str:
        """Natural identifier of the entity."""

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def updated_at(self) -> datetime:
        return self._updated_at

    @property
    def version(self) -> int:
        return self._version

    def _touch(self) -> None:
        self._updated_at = _now()
        self._version += 1

    def update(self, **kwargs) -> None:
        """
        Apply several field changes through the matching ``set_<field>`` methods.

        All or nothing: if any field is rejected the entity is left as it was.
        """
        snapshot = copy.deepcopy(self.__dict__)
        try:
            for key, value in kwargs.items():
                setter = getattr(self, f"set_{key}", None)
                if setter is None:
                    raise ValidationError(f"{self.__class__.__name__} has no updatable field '{key}'")
                setter(value)
        except (ValidationError, ValueError):
            self.__dict__.clear()
            self.__dict__.update(snapshot)
            raise

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "created_at": self._created_at.isoformat(),
            "updated_at": self._updated_at.isoformat(),
            "version": self._version,
        }

    def __eq__(self, other: object) -> bool:
        if type(self) is not type(other):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash((self.__class__.__name__, self.id))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(id={self.id!r})"


class Course(AbstractEntity):
    """A course offering with a capacity-bounded roster."""

    def __init__(self, course_id: str, course_name: str, description: str,
                 credit_hours: int, instructor_id: Optional[str] = None):
        super().__init__()
        self._course_id = _require_text(course_id, "Course ID cannot be empty")
        self._course_name = course_name
        self._description = description
        self._credit_hours = self._validate_credit_hours(credit_hours)
        self._instructor_id = instructor_id
        self._enrolled_students: List[str] = []
        self._prerequisites: List[str] = []
        self._max_capacity = DEFAULT_COURSE_CAPACITY
        self._status = CourseStatus.OPEN
        self._schedule: Optional[str] = None
        self._classroom: Optional[str] = None
        self._semester: Optional[str] = None
        self._year = _now().year

    @staticmethod
    def _validate_credit_hours(credit_hours: int) -> int:
        if credit_hours < 1 or credit_hours > 6:
            raise ValidationError("Credit hours must be between 1 and 6")
        return credit_hours

    @property
    def id(self) -> str:
        return self._course_id

    @property
    def course_id(self) -> str:
        return self._course_id

    @property
    def course_name(self) -> str:
        return self._course_name

    @property
    def description(self) -> str:
        return self._description

    @property
    def credit_hours(self) -> int:
        return self._credit_hours

    @property
    def instructor_id(self) -> Optional[str]:
        return self._instructor_id

    @property
    def enrolled_students(self) -> List[str]:
        return list(self._enrolled_students)

    @property
    def prerequisites(self) -> List[str]:
        return list(self._prerequisites)

    @property
    def max_capacity(self) -> int:
        return self._max_capacity

    @property
    def status(self) -> CourseStatus:
        return self._status

    @property
    def schedule(self) -> Optional[str]:
        return self._schedule

    @property
    def classroom(self) -> Optional[str]:
        return self._classroom

    @property
    def semester(self) -> Optional[str]:
        return self._semester

    @property
    def year(self) -> int:
        return self._year

    @property
    def enrollment_count(self) -> int:
        return len(self._enrolled_students)

    @property
    def available_spots(self) -> int:
        return max(0, self._max_capacity - len(self._enrolled_students))

    @property
    def enrollment_percentage(self) -> float:
        return len(self._enrolled_students) / self._max_capacity * 100.0

    def has_available_spots(self) -> bool:
        return len(self._enrolled_students) < self._max_capacity and self._status is CourseStatus.OPEN

    def enroll_student(self, student_id: str) -> bool:
        """
        Add a student to the roster.

        Returns False when the course is not OPEN, already at capacity, or
        the student is already on the roster. The course turns FULL on the
        enrollment that reaches capacity.
        """
        if not self._status.allows_enrollment():
            return False
        if len(self._enrolled_students) >= self._max_capacity:
            return False
        if student_id in self._enrolled_students:
            return False

        self._enrolled_students.append(student_id)
        if len(self._enrolled_students) >= self._max_capacity:
            self._status = CourseStatus.FULL
        self._touch()
        return True

    def drop_student(self, student_id: str) -> bool:
        """Remove a student from the roster; a FULL course reopens."""
        if student_id not in self._enrolled_students:
            return False
        self._enrolled_students.remove(student_id)
        if self._status is CourseStatus.FULL:
            self._status = CourseStatus.OPEN
        self._touch()
        return True

    def set_max_capacity(self, max_capacity: int) -> None:
        """Change capacity, toggling between OPEN and FULL only."""
        if max_capacity < 1:
            raise ValidationError("Max capacity must be at least 1")
        self._max_capacity = max_capacity
        if self._status is CourseStatus.OPEN and len(self._enrolled_students) >= max_capacity:
            self._status = CourseStatus.FULL
        elif self._status is CourseStatus.FULL and len(self._enrolled_students) < max_capacity:
            self._status = CourseStatus.OPEN
        self._touch()

    def set_status(self, status: Union[CourseStatus, str]) -> None:
        self._status = CourseStatus(status)
        self._touch()

    def add_prerequisite(self, course_id: str) -> None:
        if course_id and course_id not in self._prerequisites:
            self._prerequisites.append(course_id)
            self._touch()

    def remove_prerequisite(self, course_id: str) -> bool:
        if course_id not in self._prerequisites:
            return False
        self._prerequisites.remove(course_id)
        self._touch()
        return True

    def set_course_name(self, course_name: str) -> None:
        self._course_name = course_name
        self._touch()

    def set_description(self, description: str) -> None:
        self._description = description
        self._touch()

    def set_credit_hours(self, credit_hours: int) -> None:
        self._credit_hours = self._validate_credit_hours(credit_hours)
        self._touch()

    def set_instructor_id(self, instructor_id: Optional[str]) -> None:
        self._instructor_id = instructor_id
        self._touch()

    def set_schedule(self, schedule: Optional[str]) -> None:
        self._schedule = schedule
        self._touch()

    def set_classroom(self, classroom: Optional[str]) -> None:
        self._classroom = classroom
        self._touch()

    def set_semester(self, semester: Optional[str]) -> None:
        self._semester = semester
        self._touch()

    def set_year(self, year: int) -> None:
        self._year = year
        self._touch()

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict.update({
            "course_id": self._course_id,
            "course_name": self._course_name,
            "description": self._description,
            "credit_hours": self._credit_hours,
            "instructor_id": self._instructor_id,
            "enrolled_students": list(self._enrolled_students),
            "prerequisites": list(self._prerequisites),
            "max_capacity": self._max_capacity,
            "status": self._status.value,
            "schedule": self._schedule,
            "classroom": self._classroom,
            "semester": self._semester,
            "year": self._year,
        })
        return base_dict

    def __repr__(self) -> str:
        return (f"Course(id={self._course_id!r}, name={self._course_name!r}, "
                f"enrolled={len(self._enrolled_students)}/{self._max_capacity}, status={self._status.value})")


class Student(AbstractEntity):
    """Student entity holding current enrollments and completed-course grades."""

    def __init__(self, student_id: str, full_name: str, email: str, major: str, enrollment_year: int):
        super().__init__()
        self._student_id = _require_text(student_id, "Student ID cannot be empty")
        self._full_name = full_name
        self._email = _validate_email(email)
        self._major = major
        self._enrollment_year = enrollment_year
        self._status = StudentStatus.ACTIVE
        self._enrolled_courses: List[str] = []
        self._grades: Dict[str, Grade] = {}
        self._gpa = 0.0

    @property
    def id(self) -> str:
        return self._student_id

    @property
    def student_id(self) -> str:
        return self._student_id

    @property
    def full_name(self) -> str:
        return self._full_name

    @property
    def email(self) -> str:
        return self._email

    @property
    def major(self) -> str:
        return self._major

    @property
    def enrollment_year(self) -> int:
        return self._enrollment_year

    @property
    def status(self) -> StudentStatus:
        return self._status

    @property
    def enrolled_courses(self) -> List[str]:
        return list(self._enrolled_courses)

    @property
    def grades(self) -> Dict[str, Grade]:
        return dict(self._grades)

    @property
    def gpa(self) -> float:
        return self._gpa

    @property
    def completed_courses(self) -> int:
        return len(self._grades)

    @property
    def academic_standing(self) -> str:
        for minimum, label in ACADEMIC_STANDINGS:
            if self._gpa >= minimum:
                return label
        return PROBATION

    def enroll_in_course(self, course_id: str) -> bool:
        """Record a new enrollment; only ACTIVE students may enroll."""
        if not course_id or not self._status.can_enroll():
            return False
        if course_id in self._enrolled_courses or course_id in self._grades:
            return False
        self._enrolled_courses.append(course_id)
        self._touch()
        return True

    def drop_course(self, course_id: str) -> bool:
        if course_id not in self._enrolled_courses:
            return False
        self._enrolled_courses.remove(course_id)
        self._touch()
        return True

    def add_grade(self, course_id: str, grade: Grade) -> None:
        """
        Complete an enrolled course with a grade.

        The course moves from the enrolled list to the grade map and the
        GPA is recomputed. Raises EnrollmentError, leaving the record
        untouched, when the student is not enrolled in the course.
        """
        if course_id not in self._enrolled_courses:
            raise EnrollmentError(
                f"Student is not enrolled in course: {course_id}",
                error_code="NOT_ENROLLED",
                details={"student_id": self._student_id, "course_id": course_id},
            )
        self._grades[course_id] = grade
        self._enrolled_courses.remove(course_id)
        self._calculate_gpa()
        self._touch()

    def _calculate_gpa(self) -> None:
        # Unweighted mean: credit hours do not factor in.
        if not self._grades:
            self._gpa = 0.0
            return
        self._gpa = sum(g.grade_points for g in self._grades.values()) / len(self._grades)

    def set_full_name(self, full_name: str) -> None:
        self._full_name = full_name
        self._touch()

    def set_email(self, email: str) -> None:
        self._email = _validate_email(email)
        self._touch()

    def set_major(self, major: str) -> None:
        self._major = major
        self._touch()

    def set_enrollment_year(self, enrollment_year: int) -> None:
        self._enrollment_year = enrollment_year
        self._touch()

    def set_status(self, status: Union[StudentStatus, str]) -> None:
        self._status = StudentStatus(status)
        self._touch()

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict.update({
            "student_id": self._student_id,
            "full_name": self._full_name,
            "email": self._email,
            "major": self._major,
            "enrollment_year": self._enrollment_year,
            "status": self._status.value,
            "enrolled_courses": list(self._enrolled_courses),
            "grades": {course_id: grade.to_dict() for course_id, grade in self._grades.items()},
            "gpa": self._gpa,
        })
        return base_dict

    def __repr__(self) -> str:
        return (f"Student(id={self._student_id!r}, name={self._full_name!r}, "
                f"status={self._status.value}, gpa={self._gpa:.2f})")


class Faculty(AbstractEntity):
    """Faculty member and the courses they teach."""

    def __init__(self, faculty_id: str, full_name: str, email: str, department: str, position: str):
        super().__init__()
        self._faculty_id = _require_text(faculty_id, "Faculty ID cannot be empty")
        self._full_name = full_name
        self._email = _validate_email(email)
        self._department = department
        self._position = position
        self._courses_taught: List[str] = []
        self._office_location: Optional[str] = None
        self._phone_number: Optional[str] = None

    @property
    def id(self) -> str:
        return self._faculty_id

    @property
    def faculty_id(self) -> str:
        return self._faculty_id

    @property
    def full_name(self) -> str:
        return self._full_name

    @property
    def email(self) -> str:
        return self._email

    @property
    def department(self) -> str:
        return self._department

    @property
    def position(self) -> str:
        return self._position

    @property
    def courses_taught(self) -> List[str]:
        return list(self._courses_taught)

    @property
    def office_location(self) -> Optional[str]:
        return self._office_location

    @property
    def phone_number(self) -> Optional[str]:
        return self._phone_number

    @property
    def course_load(self) -> int:
        return len(self._courses_taught)

    def assign_course(self, course_id: str) -> bool:
        if not course_id or course_id in self._courses_taught:
            return False
        self._courses_taught.append(course_id)
        self._touch()
        return True

    def remove_course_assignment(self, course_id: str) -> bool:
        if course_id not in self._courses_taught:
            return False
        self._courses_taught.remove(course_id)
        self._touch()
        return True

    def set_full_name(self, full_name: str) -> None:
        self._full_name = full_name
        self._touch()

    def set_email(self, email: str) -> None:
        self._email = _validate_email(email)
        self._touch()

    def set_department(self, department: str) -> None:
        self._department = department
        self._touch()

    def set_position(self, position: str) -> None:
        self._position = position
        self._touch()

    def set_office_location(self, office_location: Optional[str]) -> None:
        self._office_location = office_location
        self._touch()

    def set_phone_number(self, phone_number: Optional[str]) -> None:
        self._phone_number = phone_number
        self._touch()

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict.update({
            "faculty_id": self._faculty_id,
            "full_name": self._full_name,
            "email": self._email,
            "department": self._department,
            "position": self._position,
            "courses_taught": list(self._courses_taught),
            "office_location": self._office_location,
            "phone_number": self._phone_number,
        })
        return base_dict


class User(AbstractEntity):
    """Login account. Only a bcrypt hash of the password is kept."""

    def __init__(self, username: str, password: str, role: Union[UserRole, str], full_name: str):
        super().__init__()
        self._username = self._validate_username(username)
        self._password_hash = PasswordHasher.hash_password(self._validate_password(password))
        self._role = UserRole(role)
        self._full_name = full_name
        self._last_login: Optional[datetime] = None
        self._is_active = True

    @classmethod
    def from_password_hash(cls, username: str, password_hash: str, role: Union[UserRole, str],
                           full_name: str) -> "User":
        """Rebuild a stored account without re-hashing its password."""
        user = cls.__new__(cls)
        AbstractEntity.__init__(user)
        user._username = cls._validate_username(username)
        user._password_hash = password_hash
        user._role = UserRole(role)
        user._full_name = full_name
        user._last_login = None
        user._is_active = True
        return user

    @staticmethod
    def _validate_username(username: Optional[str]) -> str:
        if username is None or len(username.strip()) < 3:
            raise ValidationError("Username must be at least 3 characters long")
        return username

    @staticmethod
    def _validate_password(password: Optional[str]) -> str:
        if password is None or len(password) < 6:
            raise ValidationError("Password must be at least 6 characters long")
        return password

    @property
    def id(self) -> str:
        return self._username

    @property
    def username(self) -> str:
        return self._username

    @property
    def password_hash(self) -> str:
        return self._password_hash

    @property
    def role(self) -> UserRole:
        return self._role

    @property
    def full_name(self) -> str:
        return self._full_name

    @property
    def last_login(self) -> Optional[datetime]:
        return self._last_login

    @property
    def is_active(self) -> bool:
        return self._is_active

    def verify_password(self, password: str) -> bool:
        return PasswordHasher.verify_password(password, self._password_hash)

    def update_last_login(self) -> None:
        self._last_login = _now()
        self._touch()

    def change_password(self, old_password: str, new_password: str) -> bool:
        """Replace the password if the old one matches and the new one is valid."""
        if not self.verify_password(old_password):
            return False
        try:
            self.set_password(new_password)
        except ValidationError:
            return False
        return True

    def set_password(self, password: str) -> None:
        self._password_hash = PasswordHasher.hash_password(self._validate_password(password))
        self._touch()

    def set_role(self, role: Union[UserRole, str]) -> None:
        self._role = UserRole(role)
        self._touch()

    def set_full_name(self, full_name: str) -> None:
        self._full_name = full_name
        self._touch()

    def set_active(self, active: bool) -> None:
        self._is_active = bool(active)
        self._touch()

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict.update({
            "username": self._username,
            "password_hash": self._password_hash,
            "role": self._role.value,
            "full_name": self._full_name,
            "last_login": self._last_login.isoformat() if self._last_login else None,
            "is_active": self._is_active,
        })
        return base_dict

    def __repr__(self) -> str:
        return f"User(username={self._username!r}, role={self._role.value}, active={self._is_active})"
