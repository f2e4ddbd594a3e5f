"""
REST API implementation for the Alamein platform using FastAPI.
"""

import threading
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Type

import structlog
from fastapi import Depends, FastAPI, Header, Query, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ..core.entities import Course, Faculty, Grade, Student, User
from ..core.enums import Capability, CourseStatus, StudentStatus, UserRole
from ..core.exceptions import (
    AuthenticationError, AuthorizationError, DuplicateEntityError, EnrollmentError,
    ResourceNotFoundError, UniversityError, ValidationError
)
from ..services import (
    AdminService, AuthenticationService, CourseService, EnrollmentService,
    FacultyService, Session, StudentService
)

logger = structlog.get_logger(__name__)

API_VERSION = "1.0.0"

ERROR_STATUS: Dict[Type[UniversityError], int] = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    AuthenticationError: status.HTTP_401_UNAUTHORIZED,
    AuthorizationError: status.HTTP_403_FORBIDDEN,
    ResourceNotFoundError: status.HTTP_404_NOT_FOUND,
    DuplicateEntityError: status.HTTP_409_CONFLICT,
    EnrollmentError: status.HTTP_409_CONFLICT,
}


# Pydantic models for API
class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class LoginResponse(BaseModel):
    token: str
    username: str
    role: str
    full_name: str


class PasswordChange(BaseModel):
    old_password: str
    new_password: str


class PasswordReset(BaseModel):
    new_password: str


class UserCreate(BaseModel):
    username: str = Field(..., min_length=3, max_length=50)
    password: str = Field(..., min_length=6)
    role: str = Field(..., pattern=r'^(STUDENT|FACULTY|ADMIN_STAFF|SYSTEM_ADMIN)$')
    full_name: str = Field(..., min_length=1, max_length=200)


class UserResponse(BaseModel):
    username: str
    role: str
    role_display_name: str
    full_name: str
    is_active: bool
    last_login: Optional[datetime] = None
    created_at: datetime


class StudentCreate(BaseModel):
    student_id: str = Field(..., min_length=1, max_length=20)
    full_name: str = Field(..., min_length=1, max_length=200)
    email: str = Field(..., min_length=3)
    major: str = Field(..., min_length=1, max_length=100)
    enrollment_year: int = Field(..., ge=1900, le=2100)


class StudentUpdate(BaseModel):
    full_name: Optional[str] = Field(None, min_length=1, max_length=200)
    email: Optional[str] = None
    major: Optional[str] = Field(None, min_length=1, max_length=100)
    enrollment_year: Optional[int] = Field(None, ge=1900, le=2100)


class GradeResponse(BaseModel):
    percentage: float
    letter_grade: str
    grade_points: float


class StudentResponse(BaseModel):
    student_id: str
    full_name: str
    email: str
    major: str
    enrollment_year: int
    status: str
    gpa: float
    academic_standing: str
    enrolled_courses: List[str] = []
    grades: Dict[str, GradeResponse] = {}
    created_at: datetime
    updated_at: datetime
    version: int


class StatusUpdate(BaseModel):
    status: str = Field(..., min_length=1)


class FacultyCreate(BaseModel):
    faculty_id: str = Field(..., min_length=1, max_length=20)
    full_name: str = Field(..., min_length=1, max_length=200)
    email: str = Field(..., min_length=3)
    department: str = Field(..., min_length=1, max_length=100)
    position: str = Field(..., min_length=1, max_length=100)
    office_location: Optional[str] = None
    phone_number: Optional[str] = None


class FacultyUpdate(BaseModel):
    full_name: Optional[str] = Field(None, min_length=1, max_length=200)
    email: Optional[str] = None
    department: Optional[str] = Field(None, min_length=1, max_length=100)
    position: Optional[str] = Field(None, min_length=1, max_length=100)
    office_location: Optional[str] = None
    phone_number: Optional[str] = None


class FacultyResponse(BaseModel):
    faculty_id: str
    full_name: str
    email: str
    department: str
    position: str
    office_location: Optional[str] = None
    phone_number: Optional[str] = None
    courses_taught: List[str] = []
    course_load: int
    created_at: datetime
    updated_at: datetime
    version: int


class CourseCreate(BaseModel):
    course_id: str = Field(..., min_length=1, max_length=20)
    course_name: str = Field(..., min_length=1, max_length=200)
    description: str = Field("", max_length=1000)
    credit_hours: int = Field(..., ge=1, le=6)
    instructor_id: Optional[str] = None
    max_capacity: int = Field(30, ge=1)
    schedule: Optional[str] = None
    classroom: Optional[str] = None
    semester: Optional[str] = None
    year: Optional[int] = None
    prerequisites: List[str] = []


class CourseUpdate(BaseModel):
    course_name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    credit_hours: Optional[int] = Field(None, ge=1, le=6)
    instructor_id: Optional[str] = None
    schedule: Optional[str] = None
    classroom: Optional[str] = None
    semester: Optional[str] = None
    year: Optional[int] = None


class CourseResponse(BaseModel):
    course_id: str
    course_name: str
    description: Optional[str] = None
    credit_hours: int
    instructor_id: Optional[str] = None
    enrolled_students: List[str] = []
    prerequisites: List[str] = []
    max_capacity: int
    enrollment_count: int
    available_spots: int
    status: str
    schedule: Optional[str] = None
    classroom: Optional[str] = None
    semester: Optional[str] = None
    year: int
    created_at: datetime
    updated_at: datetime
    version: int


class CapacityUpdate(BaseModel):
    max_capacity: int = Field(..., ge=1)


class EnrollmentRequest(BaseModel):
    student_id: str = Field(..., min_length=1)
    course_id: str = Field(..., min_length=1)


class EnrollmentResponse(BaseModel):
    success: bool
    message: str
    status: str


class GradeSubmission(BaseModel):
    student_id: str = Field(..., min_length=1)
    course_id: str = Field(..., min_length=1)
    percentage: Optional[float] = Field(None, ge=0, le=100)
    letter_grade: Optional[str] = None


class GradeSubmissionResponse(BaseModel):
    success: bool
    message: str
    grade: Optional[GradeResponse] = None


class StatisticsResponse(BaseModel):
    success: bool
    message: str
    statistics: Dict[str, Any]


def _parse_enum(enum_type: Type[Enum], value: str) -> Enum:
    try:
        return enum_type(value.upper())
    except ValueError:
        raise ValidationError(f"Invalid {enum_type.__name__}: {value}")


class UniversityRestAPI:
    """REST API implementation for the Alamein platform."""

    def __init__(self, auth_service: AuthenticationService, student_service: StudentService,
                 faculty_service: FacultyService, course_service: CourseService,
                 enrollment_service: EnrollmentService, admin_service: AdminService):
        self._auth_service = auth_service
        self._student_service = student_service
        self._faculty_service = faculty_service
        self._course_service = course_service
        self._enrollment_service = enrollment_service
        self._admin_service = admin_service

        self._lock = threading.RLock()

        # Create FastAPI app
        self.app = FastAPI(
            title="Alamein University Management API",
            description="Students, faculty, courses and academic records",
            version=API_VERSION,
            docs_url="/docs",
            redoc_url="/redoc"
        )

        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

        self._setup_error_handlers()
        self._setup_routes()

    def _setup_error_handlers(self):
        @self.app.exception_handler(UniversityError)
        async def university_error_handler(request: Request, exc: UniversityError) -> JSONResponse:
            status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
            for error_type, code in ERROR_STATUS.items():
                if isinstance(exc, error_type):
                    status_code = code
                    break
            logger.warning("Request failed", path=request.url.path, method=request.method,
                           error=exc.message, error_code=exc.error_code, status_code=status_code)
            return JSONResponse(
                status_code=status_code,
                content={"detail": exc.message, "error_code": exc.error_code},
            )

    def _current_session(self, x_session_token: Optional[str] = Header(None)) -> Session:
        session = self._auth_service.get_session(x_session_token)
        if session is None:
            raise AuthenticationError("A valid X-Session-Token header is required")
        return session

    @staticmethod
    def _authorize(session: Session, capability: Capability, owner: Optional[str] = None,
                   own_capability: Optional[Capability] = None) -> None:
        """Allow the capability, or ``own_capability`` when acting on one's own record."""
        if session.can(capability):
            return
        if owner is not None and own_capability is not None and session.username == owner \
                and session.can(own_capability):
            return
        raise AuthorizationError(f"Role {session.role.value} may not perform this action",
                                 error_code="FORBIDDEN", details={"capability": capability.value})

    def _authorize_grading(self, session: Session, course: Course) -> None:
        """Faculty grade only the courses they teach; admins grade any course."""
        if session.is_admin or course.instructor_id == session.username:
            return
        member = self._faculty_service.get_faculty(session.username)
        if member is not None and course.course_id in member.courses_taught:
            return
        raise AuthorizationError(f"{session.username} does not teach {course.course_id}",
                                 error_code="FORBIDDEN", details={"course_id": course.course_id})

    def _get_student_or_404(self, student_id: str) -> Student:
        student = self._student_service.get_student(student_id)
        if student is None:
            raise ResourceNotFoundError(f"Student not found: {student_id}")
        return student

    def _get_faculty_or_404(self, faculty_id: str) -> Faculty:
        faculty = self._faculty_service.get_faculty(faculty_id)
        if faculty is None:
            raise ResourceNotFoundError(f"Faculty member not found: {faculty_id}")
        return faculty

    def _get_course_or_404(self, course_id: str) -> Course:
        course = self._course_service.get_course(course_id)
        if course is None:
            raise ResourceNotFoundError(f"Course not found: {course_id}")
        return course

    def _setup_routes(self):
        """Setup API routes."""
        current_session = self._current_session

        @self.app.get("/", response_model=Dict[str, str])
        async def root():
            """Root endpoint."""
            return {
                "message": "Alamein University Management API",
                "version": API_VERSION,
                "docs": "/docs"
            }

        @self.app.get("/health", response_model=Dict[str, str])
        async def health_check():
            """Health check endpoint."""
            return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}

        # Authentication endpoints
        @self.app.post("/auth/login", response_model=LoginResponse)
        async def login(credentials: LoginRequest):
            with self._lock:
                session = self._auth_service.login(credentials.username, credentials.password)
                if session is None:
                    raise AuthenticationError("Invalid username or password", error_code="LOGIN_FAILED")
                user = self._auth_service.get_user(session, session.username)
                return LoginResponse(
                    token=session.token,
                    username=session.username,
                    role=session.role.value,
                    full_name=user.full_name,
                )

        @self.app.post("/auth/logout", response_model=Dict[str, bool])
        async def logout(session: Session = Depends(current_session)):
            with self._lock:
                return {"success": self._auth_service.logout(session)}

        @self.app.get("/auth/me", response_model=UserResponse)
        async def who_am_i(session: Session = Depends(current_session)):
            with self._lock:
                user = self._auth_service.get_user(session, session.username)
                if user is None:
                    raise ResourceNotFoundError(f"User not found: {session.username}")
                return self._user_to_response(user)

        @self.app.post("/auth/password", response_model=Dict[str, bool])
        async def change_password(change: PasswordChange, session: Session = Depends(current_session)):
            with self._lock:
                if not self._auth_service.change_password(session, change.old_password, change.new_password):
                    raise ValidationError("Old password is incorrect or new password is invalid")
                return {"success": True}

        # User management endpoints
        @self.app.get("/users", response_model=List[UserResponse])
        async def list_users(session: Session = Depends(current_session)):
            with self._lock:
                self._authorize(session, Capability.MANAGE_USERS)
                return [self._user_to_response(user) for user in self._auth_service.get_all_users(session)]

        @self.app.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
        async def create_user(user_data: UserCreate, session: Session = Depends(current_session)):
            with self._lock:
                self._authorize(session, Capability.MANAGE_USERS)
                user = User(user_data.username, user_data.password, UserRole(user_data.role), user_data.full_name)
                if not self._auth_service.register_user(user):
                    raise DuplicateEntityError(f"Username already exists: {user_data.username}")
                return self._user_to_response(user)

        @self.app.get("/users/{username}", response_model=UserResponse)
        async def get_user(username: str, session: Session = Depends(current_session)):
            with self._lock:
                self._authorize(session, Capability.VIEW_ANY_USER, owner=username,
                                own_capability=Capability.VIEW_OWN_RECORD)
                user = self._auth_service.get_user(session, username)
                if user is None:
                    raise ResourceNotFoundError(f"User not found: {username}")
                return self._user_to_response(user)

        @self.app.post("/users/{username}/activate", response_model=Dict[str, bool])
        async def activate_user(username: str, session: Session = Depends(current_session)):
            with self._lock:
                self._require_manageable_user(session, username)
                return {"success": self._auth_service.activate_user(session, username)}

        @self.app.post("/users/{username}/deactivate", response_model=Dict[str, bool])
        async def deactivate_user(username: str, session: Session = Depends(current_session)):
            with self._lock:
                self._require_manageable_user(session, username)
                if username == session.username:
                    raise ValidationError("You cannot deactivate your own account")
                return {"success": self._auth_service.deactivate_user(session, username)}

        @self.app.post("/users/{username}/password", response_model=Dict[str, bool])
        async def reset_password(username: str, reset: PasswordReset, session: Session = Depends(current_session)):
            with self._lock:
                self._require_manageable_user(session, username)
                if not self._auth_service.reset_password(session, username, reset.new_password):
                    raise ValidationError("Password must be at least 6 characters long")
                return {"success": True}

        # Student endpoints
        @self.app.get("/students", response_model=List[StudentResponse])
        async def list_students(major: Optional[str] = None, status_filter: Optional[str] = Query(None, alias="status"),
                                name: Optional[str] = None, session: Session = Depends(current_session)):
            """List students, optionally filtered by major, status or name."""
            with self._lock:
                self._authorize(session, Capability.VIEW_STUDENTS)
                if name:
                    students = self._student_service.search_students_by_name(name)
                elif major:
                    students = self._student_service.get_students_by_major(major)
                elif status_filter:
                    students = self._student_service.get_students_by_status(
                        _parse_enum(StudentStatus, status_filter))
                else:
                    students = self._student_service.get_all_students()
                return [self._student_to_response(student) for student in students]

        @self.app.post("/students", response_model=StudentResponse, status_code=status.HTTP_201_CREATED)
        async def create_student(student_data: StudentCreate, session: Session = Depends(current_session)):
            with self._lock:
                self._authorize(session, Capability.MANAGE_STUDENTS)
                student = Student(
                    student_id=student_data.student_id,
                    full_name=student_data.full_name,
                    email=student_data.email,
                    major=student_data.major,
                    enrollment_year=student_data.enrollment_year,
                )
                if not self._student_service.add_student(student):
                    raise DuplicateEntityError(f"Student ID already exists: {student_data.student_id}")
                return self._student_to_response(student)

        @self.app.get("/students/{student_id}", response_model=StudentResponse)
        async def get_student(student_id: str, session: Session = Depends(current_session)):
            with self._lock:
                self._authorize(session, Capability.VIEW_STUDENTS, owner=student_id,
                                own_capability=Capability.VIEW_OWN_RECORD)
                return self._student_to_response(self._get_student_or_404(student_id))

        @self.app.put("/students/{student_id}", response_model=StudentResponse)
        async def update_student(student_id: str, changes: StudentUpdate,
                                 session: Session = Depends(current_session)):
            with self._lock:
                self._authorize(session, Capability.MANAGE_STUDENTS)
                student = self._get_student_or_404(student_id)
                student.update(**changes.model_dump(exclude_none=True))
                self._student_service.update_student(student_id, student)
                return self._student_to_response(student)

        @self.app.delete("/students/{student_id}", response_model=Dict[str, bool])
        async def delete_student(student_id: str, session: Session = Depends(current_session)):
            with self._lock:
                self._authorize(session, Capability.MANAGE_STUDENTS)
                if not self._student_service.remove_student(student_id):
                    raise ResourceNotFoundError(f"Student not found: {student_id}")
                return {"success": True}

        @self.app.put("/students/{student_id}/status", response_model=StudentResponse)
        async def update_student_status(student_id: str, update: StatusUpdate,
                                        session: Session = Depends(current_session)):
            with self._lock:
                self._authorize(session, Capability.MANAGE_STUDENTS)
                self._get_student_or_404(student_id)
                self._student_service.update_student_status(student_id, _parse_enum(StudentStatus, update.status))
                return self._student_to_response(self._get_student_or_404(student_id))

        @self.app.get("/students/{student_id}/report", response_model=Dict[str, Any])
        async def student_report(student_id: str, session: Session = Depends(current_session)):
            with self._lock:
                self._authorize(session, Capability.VIEW_REPORTS, owner=student_id,
                                own_capability=Capability.VIEW_OWN_RECORD)
                return self._admin_service.generate_student_report(student_id)

        # Faculty endpoints
        @self.app.get("/faculty", response_model=List[FacultyResponse])
        async def list_faculty(department: Optional[str] = None, name: Optional[str] = None,
                               session: Session = Depends(current_session)):
            with self._lock:
                self._authorize(session, Capability.VIEW_COURSES)
                if name:
                    members = self._faculty_service.search_faculty_by_name(name)
                elif department:
                    members = self._faculty_service.get_faculty_by_department(department)
                else:
                    members = self._faculty_service.get_all_faculty()
                return [self._faculty_to_response(member) for member in members]

        @self.app.post("/faculty", response_model=FacultyResponse, status_code=status.HTTP_201_CREATED)
        async def create_faculty(faculty_data: FacultyCreate, session: Session = Depends(current_session)):
            with self._lock:
                self._authorize(session, Capability.MANAGE_FACULTY)
                member = Faculty(
                    faculty_id=faculty_data.faculty_id,
                    full_name=faculty_data.full_name,
                    email=faculty_data.email,
                    department=faculty_data.department,
                    position=faculty_data.position,
                )
                if faculty_data.office_location:
                    member.set_office_location(faculty_data.office_location)
                if faculty_data.phone_number:
                    member.set_phone_number(faculty_data.phone_number)
                if not self._faculty_service.add_faculty(member):
                    raise DuplicateEntityError(f"Faculty ID already exists: {faculty_data.faculty_id}")
                return self._faculty_to_response(member)

        @self.app.get("/faculty/{faculty_id}", response_model=FacultyResponse)
        async def get_faculty(faculty_id: str, session: Session = Depends(current_session)):
            with self._lock:
                self._authorize(session, Capability.VIEW_COURSES)
                return self._faculty_to_response(self._get_faculty_or_404(faculty_id))

        @self.app.put("/faculty/{faculty_id}", response_model=FacultyResponse)
        async def update_faculty(faculty_id: str, changes: FacultyUpdate,
                                 session: Session = Depends(current_session)):
            with self._lock:
                self._authorize(session, Capability.MANAGE_FACULTY)
                member = self._get_faculty_or_404(faculty_id)
                member.update(**changes.model_dump(exclude_none=True))
                self._faculty_service.update_faculty(faculty_id, member)
                return self._faculty_to_response(member)

        @self.app.delete("/faculty/{faculty_id}", response_model=Dict[str, bool])
        async def delete_faculty(faculty_id: str, session: Session = Depends(current_session)):
            with self._lock:
                self._authorize(session, Capability.MANAGE_FACULTY)
                if not self._faculty_service.remove_faculty(faculty_id):
                    raise ResourceNotFoundError(f"Faculty member not found: {faculty_id}")
                return {"success": True}

        @self.app.post("/faculty/{faculty_id}/courses/{course_id}", response_model=FacultyResponse)
        async def assign_course(faculty_id: str, course_id: str, session: Session = Depends(current_session)):
            with self._lock:
                self._authorize(session, Capability.MANAGE_FACULTY)
                self._get_faculty_or_404(faculty_id)
                self._get_course_or_404(course_id)
                if not self._faculty_service.assign_course(faculty_id, course_id):
                    raise DuplicateEntityError(f"Course {course_id} is already assigned to {faculty_id}")
                return self._faculty_to_response(self._get_faculty_or_404(faculty_id))

        @self.app.delete("/faculty/{faculty_id}/courses/{course_id}", response_model=FacultyResponse)
        async def unassign_course(faculty_id: str, course_id: str, session: Session = Depends(current_session)):
            with self._lock:
                self._authorize(session, Capability.MANAGE_FACULTY)
                self._get_faculty_or_404(faculty_id)
                if not self._faculty_service.remove_course_assignment(faculty_id, course_id):
                    raise ResourceNotFoundError(f"Course {course_id} is not assigned to {faculty_id}")
                return self._faculty_to_response(self._get_faculty_or_404(faculty_id))

        @self.app.get("/faculty/{faculty_id}/report", response_model=Dict[str, Any])
        async def faculty_report(faculty_id: str, session: Session = Depends(current_session)):
            with self._lock:
                self._authorize(session, Capability.VIEW_REPORTS, owner=faculty_id,
                                own_capability=Capability.VIEW_OWN_RECORD)
                return self._admin_service.generate_faculty_report(faculty_id)

        # Course endpoints
        @self.app.get("/courses", response_model=List[CourseResponse])
        async def list_courses(available: bool = False, instructor_id: Optional[str] = None,
                               name: Optional[str] = None, session: Session = Depends(current_session)):
            """List courses; ``available=true`` keeps only those open for enrollment."""
            with self._lock:
                self._authorize(session, Capability.VIEW_COURSES)
                if available:
                    courses = self._course_service.get_available_courses()
                elif instructor_id:
                    courses = self._course_service.get_courses_by_instructor(instructor_id)
                elif name:
                    courses = self._course_service.search_courses_by_name(name)
                else:
                    courses = self._course_service.get_all_courses()
                return [self._course_to_response(course) for course in courses]

        @self.app.post("/courses", response_model=CourseResponse, status_code=status.HTTP_201_CREATED)
        async def create_course(course_data: CourseCreate, session: Session = Depends(current_session)):
            with self._lock:
                self._authorize(session, Capability.MANAGE_COURSES)
                course = Course(
                    course_id=course_data.course_id,
                    course_name=course_data.course_name,
                    description=course_data.description,
                    credit_hours=course_data.credit_hours,
                    instructor_id=course_data.instructor_id,
                )
                course.set_max_capacity(course_data.max_capacity)
                course.update(**course_data.model_dump(
                    include={"schedule", "classroom", "semester", "year"}, exclude_none=True))
                for prerequisite in course_data.prerequisites:
                    course.add_prerequisite(prerequisite)
                if not self._course_service.add_course(course):
                    raise DuplicateEntityError(f"Course ID already exists: {course_data.course_id}")
                return self._course_to_response(course)

        @self.app.get("/courses/{course_id}", response_model=CourseResponse)
        async def get_course(course_id: str, session: Session = Depends(current_session)):
            with self._lock:
                self._authorize(session, Capability.VIEW_COURSES)
                return self._course_to_response(self._get_course_or_404(course_id))

        @self.app.put("/courses/{course_id}", response_model=CourseResponse)
        async def update_course(course_id: str, changes: CourseUpdate, session: Session = Depends(current_session)):
            with self._lock:
                self._authorize(session, Capability.MANAGE_COURSES)
                course = self._get_course_or_404(course_id)
                course.update(**changes.model_dump(exclude_none=True))
                self._course_service.update_course(course_id, course)
                return self._course_to_response(course)

        @self.app.delete("/courses/{course_id}", response_model=Dict[str, bool])
        async def delete_course(course_id: str, session: Session = Depends(current_session)):
            with self._lock:
                self._authorize(session, Capability.MANAGE_COURSES)
                if not self._course_service.remove_course(course_id):
                    raise ResourceNotFoundError(f"Course not found: {course_id}")
                return {"success": True}

        @self.app.put("/courses/{course_id}/capacity", response_model=CourseResponse)
        async def set_capacity(course_id: str, update: CapacityUpdate, session: Session = Depends(current_session)):
            with self._lock:
                self._authorize(session, Capability.MANAGE_COURSES)
                self._get_course_or_404(course_id)
                self._course_service.set_max_capacity(course_id, update.max_capacity)
                return self._course_to_response(self._get_course_or_404(course_id))

        @self.app.put("/courses/{course_id}/status", response_model=CourseResponse)
        async def set_course_status(course_id: str, update: StatusUpdate,
                                    session: Session = Depends(current_session)):
            with self._lock:
                self._authorize(session, Capability.MANAGE_COURSES)
                self._get_course_or_404(course_id)
                self._course_service.set_course_status(course_id, _parse_enum(CourseStatus, update.status))
                return self._course_to_response(self._get_course_or_404(course_id))

        # Enrollment endpoints
        @self.app.post("/enrollments", response_model=EnrollmentResponse)
        async def enroll_student(enrollment_data: EnrollmentRequest, session: Session = Depends(current_session)):
            """Enroll a student in a course."""
            with self._lock:
                self._authorize(session, Capability.MANAGE_STUDENTS, owner=enrollment_data.student_id,
                                own_capability=Capability.ENROLL_SELF)
                self._get_student_or_404(enrollment_data.student_id)
                self._get_course_or_404(enrollment_data.course_id)
                result = self._enrollment_service.enroll(enrollment_data.student_id, enrollment_data.course_id)
                return EnrollmentResponse(success=result.success, message=result.message,
                                          status=result.status.value)

        @self.app.delete("/enrollments", response_model=EnrollmentResponse)
        async def drop_student(student_id: str, course_id: str, session: Session = Depends(current_session)):
            """Drop a student from a course."""
            with self._lock:
                self._authorize(session, Capability.MANAGE_STUDENTS, owner=student_id,
                                own_capability=Capability.ENROLL_SELF)
                self._get_student_or_404(student_id)
                self._get_course_or_404(course_id)
                result = self._enrollment_service.drop(student_id, course_id)
                return EnrollmentResponse(success=result.success, message=result.message,
                                          status=result.status.value)

        @self.app.post("/grades", response_model=GradeSubmissionResponse)
        async def submit_grade(submission: GradeSubmission, session: Session = Depends(current_session)):
            """Grade a student; give either a percentage or a letter grade."""
            with self._lock:
                self._authorize(session, Capability.SUBMIT_GRADES)
                if (submission.percentage is None) == (submission.letter_grade is None):
                    raise ValidationError("Provide exactly one of percentage or letter_grade")
                self._get_student_or_404(submission.student_id)
                course = self._get_course_or_404(submission.course_id)
                self._authorize_grading(session, course)
                if submission.percentage is not None:
                    grade = Grade.from_percentage(submission.percentage)
                else:
                    grade = Grade.from_letter(submission.letter_grade)
                result = self._enrollment_service.submit_grade(submission.student_id, submission.course_id, grade)
                return GradeSubmissionResponse(
                    success=result.success,
                    message=result.message,
                    grade=GradeResponse(**grade.to_dict()) if result.success else None,
                )

        # Reporting endpoints
        @self.app.get("/reports/system", response_model=Dict[str, Any])
        async def system_report(session: Session = Depends(current_session)):
            with self._lock:
                self._authorize(session, Capability.VIEW_REPORTS)
                return self._admin_service.generate_system_report()

        @self.app.get("/statistics", response_model=StatisticsResponse)
        async def get_statistics(session: Session = Depends(current_session)):
            """Get system statistics."""
            with self._lock:
                self._authorize(session, Capability.VIEW_REPORTS)
                statistics = {
                    "users": {
                        "total": self._auth_service.user_count,
                        "active": self._auth_service.active_user_count,
                    },
                    "students": {
                        "total": self._student_service.student_count,
                        "active": self._student_service.active_student_count,
                        "average_gpa": self._student_service.get_average_gpa(),
                    },
                    "faculty": {
                        "total": self._faculty_service.faculty_count,
                        "average_course_load": self._faculty_service.get_average_course_load(),
                    },
                    "courses": self._course_service.get_course_statistics(),
                }
                return StatisticsResponse(
                    success=True,
                    message="Statistics retrieved successfully",
                    statistics=statistics
                )

    def _require_manageable_user(self, session: Session, username: str) -> None:
        self._authorize(session, Capability.MANAGE_USERS)
        if not self._auth_service.has_user(username):
            raise ResourceNotFoundError(f"User not found: {username}")

    def _user_to_response(self, user: User) -> UserResponse:
        """Convert User entity to response model."""
        return UserResponse(
            username=user.username,
            role=user.role.value,
            role_display_name=user.role.display_name,
            full_name=user.full_name,
            is_active=user.is_active,
            last_login=user.last_login,
            created_at=user.created_at,
        )

    def _student_to_response(self, student: Student) -> StudentResponse:
        """Convert Student entity to response model."""
        return StudentResponse(
            student_id=student.student_id,
            full_name=student.full_name,
            email=student.email,
            major=student.major,
            enrollment_year=student.enrollment_year,
            status=student.status.value,
            gpa=student.gpa,
            academic_standing=student.academic_standing,
            enrolled_courses=student.enrolled_courses,
            grades={course_id: GradeResponse(**grade.to_dict()) for course_id, grade in student.grades.items()},
            created_at=student.created_at,
            updated_at=student.updated_at,
            version=student.version,
        )

    def _faculty_to_response(self, faculty: Faculty) -> FacultyResponse:
        """Convert Faculty entity to response model."""
        return FacultyResponse(
            faculty_id=faculty.faculty_id,
            full_name=faculty.full_name,
            email=faculty.email,
            department=faculty.department,
            position=faculty.position,
            office_location=faculty.office_location,
            phone_number=faculty.phone_number,
            courses_taught=faculty.courses_taught,
            course_load=faculty.course_load,
            created_at=faculty.created_at,
            updated_at=faculty.updated_at,
            version=faculty.version,
        )

    def _course_to_response(self, course: Course) -> CourseResponse:
        """Convert Course entity to response model."""
        return CourseResponse(
            course_id=course.course_id,
            course_name=course.course_name,
            description=course.description,
            credit_hours=course.credit_hours,
            instructor_id=course.instructor_id,
            enrolled_students=course.enrolled_students,
            prerequisites=course.prerequisites,
            max_capacity=course.max_capacity,
            enrollment_count=course.enrollment_count,
            available_spots=course.available_spots,
            status=course.status.value,
            schedule=course.schedule,
            classroom=course.classroom,
            semester=course.semester,
            year=course.year,
            created_at=course.created_at,
            updated_at=course.updated_at,
            version=course.version,
        )
