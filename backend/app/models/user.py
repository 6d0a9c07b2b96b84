"""User and student profile models."""

import uuid
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import String, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.app.db.base import Base
from backend.app.utils.dates import local_now

if TYPE_CHECKING:
    from backend.app.models.school_class import SchoolClass


class UserRole(str, Enum):
    """Account role."""
    ADMIN = "ADMIN"
    STUDENT = "STUDENT"


class UserStatus(str, Enum):
    """Account status."""
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"
    INACTIVE = "INACTIVE"


class StudentRole(str, Enum):
    """
    Representative role held by a student inside their class.

    CS and CP sign off the daily report; CC and WS are counted as
    representatives but take no part in approvals.
    """
    CS = "CS"
    CP = "CP"
    CC = "CC"
    WS = "WS"
    MEMBER = "MEMBER"


APPROVER_ROLES = (StudentRole.CS.value, StudentRole.CP.value)
REPRESENTATIVE_ROLES = (
    StudentRole.CS.value,
    StudentRole.CP.value,
    StudentRole.CC.value,
    StudentRole.WS.value,
)


class User(Base):
    """
    User account.

    Attributes:
        id: Unique user identifier (UUID)
        name: Display name
        email: Login e-mail (unique)
        phone: Optional phone number
        role: ADMIN or STUDENT
        status: Account status; only ACTIVE accounts may authenticate
        created_at: Creation timestamp
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default=UserRole.STUDENT.value)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=UserStatus.ACTIVE.value)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=local_now)

    # Relationships
    student_profile: Mapped["Student | None"] = relationship(
        "Student",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"


class Student(Base):
    """
    Student profile extending a user.

    Attributes:
        user_id: Owning user (one profile per user)
        class_id: Class membership, null while unassigned
        student_role: Representative role within the class
    """

    __tablename__ = "students"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )
    class_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("classes.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    student_role: Mapped[str | None] = mapped_column(String(20), nullable=True, index=True)

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="student_profile")
    school_class: Mapped["SchoolClass | None"] = relationship("SchoolClass", back_populates="students")

    def __repr__(self) -> str:
        return f"<Student(user_id={self.user_id}, class_id={self.class_id}, role={self.student_role})>"
