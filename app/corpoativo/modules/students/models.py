from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.corpoativo.constants import DEFAULT_GYM_STATUS
from app.corpoativo.models import Base

if TYPE_CHECKING:
    from app.corpoativo.models import User


class StudentProfile(Base):
    """Enrollment data for a non-owner user. No row means no active enrollment."""

    __tablename__ = "student_profiles"
    __table_args__ = (Index("idx_student_profiles_gym_status", "gym_status"),)

    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    gym_status: Mapped[str] = mapped_column(String(32), nullable=False, default=DEFAULT_GYM_STATUS)
    membership_plan: Mapped[str | None] = mapped_column(String(255), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    user: Mapped["User"] = relationship("User", back_populates="student_profile")
