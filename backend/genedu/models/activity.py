"""
GenEdu Backend — Activity SQLAlchemy Model
============================================

What:  Append-only log of user activity (e.g. notebook_updated) consumed
       by analytics outside this service.
Who:   Written by ActivityTracker; never read by the API itself.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from genedu.database import Base
from genedu.models.types import JSONDocument, utcnow


class Activity(Base):
    __tablename__ = "activities"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    activity_type: Mapped[str] = mapped_column("type", String(50), nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    activity_metadata: Mapped[Dict[str, Any]] = mapped_column(
        "metadata", JSONDocument, nullable=False, default=dict
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    __table_args__ = (
        Index("idx_activities_user_created", "user_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Activity(id={self.id}, type='{self.activity_type}', user_id='{self.user_id}')>"
