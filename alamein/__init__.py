"""
Alamein: University Management System

Students, faculty, courses and academic records (enrollment, grades, GPA and
academic standing) behind role-based access, persisted to JSON files or SQLite
and served over a REST API.
"""

__version__ = "1.0.0"
__author__ = "Alamein Development Team"
__description__ = "University Management System"
