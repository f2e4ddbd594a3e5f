"""
Faculty records and teaching assignments.
"""

from collections import Counter
from typing import Dict, List, Optional

from ..core.entities import Faculty
from ..persistence.repositories import FacultyRepository
from .base import EntityService


class FacultyService(EntityService[Faculty]):
    """Service managing the faculty collection."""

    def __init__(self, repository: FacultyRepository):
        super().__init__(repository)

    def add_faculty(self, faculty: Faculty) -> bool:
        return self._add(faculty)

    def update_faculty(self, faculty_id: str, updated_faculty: Faculty) -> bool:
        return self._replace(faculty_id, updated_faculty)

    def remove_faculty(self, faculty_id: str) -> bool:
        return self._remove(faculty_id)

    def get_faculty(self, faculty_id: str) -> Optional[Faculty]:
        with self._lock:
            return self._entities.get(faculty_id)

    def get_all_faculty(self) -> List[Faculty]:
        with self._lock:
            return list(self._entities.values())

    def assign_course(self, faculty_id: str, course_id: str) -> bool:
        return self._mutate(faculty_id, lambda f: f.assign_course(course_id))

    def remove_course_assignment(self, faculty_id: str, course_id: str) -> bool:
        return self._mutate(faculty_id, lambda f: f.remove_course_assignment(course_id))

    def get_faculty_by_department(self, department: str) -> List[Faculty]:
        return self._filter(lambda f: (f.department or "").lower() == (department or "").lower())

    def get_faculty_teaching_course(self, course_id: str) -> List[Faculty]:
        return self._filter(lambda f: course_id in f.courses_taught)

    def search_faculty_by_name(self, name: str) -> List[Faculty]:
        matches = self._name_matcher(name)
        if matches is None:
            return []
        return self._filter(lambda f: matches(f.full_name))

    @property
    def faculty_count(self) -> int:
        return len(self._entities)

    def get_faculty_stats_by_department(self) -> Dict[str, int]:
        with self._lock:
            return dict(Counter(f.department for f in self._entities.values()))

    def get_average_course_load(self) -> float:
        with self._lock:
            if not self._entities:
                return 0.0
            return self.get_total_courses_assigned() / len(self._entities)

    def get_total_courses_assigned(self) -> int:
        with self._lock:
            return sum(f.course_load for f in self._entities.values())
