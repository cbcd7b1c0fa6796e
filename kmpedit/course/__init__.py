"""
Course model and editing session.
"""

from .model import Course, EntityKind, LoadReport, POINT_SECTIONS, ROUTE_HOLDERS, empty_course
from .session import CourseSession

__all__ = [
    'Course',
    'EntityKind',
    'LoadReport',
    'POINT_SECTIONS',
    'ROUTE_HOLDERS',
    'empty_course',
    'CourseSession',
]
