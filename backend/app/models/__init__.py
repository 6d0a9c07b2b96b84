"""Database models."""

from backend.app.models.user import User, Student
from backend.app.models.school_class import SchoolClass
from backend.app.models.item import Item
from backend.app.models.report import Report, ReportItem
from backend.app.models.approval import ReportApproval
from backend.app.models.review import ReportReview

__all__ = [
    "User",
    "Student",
    "SchoolClass",
    "Item",
    "Report",
    "ReportItem",
    "ReportApproval",
    "ReportReview",
]
