"""
GenEdu Backend — Notebook SQLAlchemy Model
============================================

What:  ORM model for the `notebooks` table, one row per notebook document.
How:   Structured sub-documents (cells, metadata, sharing) are JSON columns
       (JSONB on PostgreSQL); counters and timestamps are plain columns so
       they can be updated atomically.
Who:   Used by NotebookService and the access predicates; read by Alembic.

Document shape on the wire (camelCase):
    notebookId, userId, title, description, cells[], metadata{}, sharing{},
    stats.views, version, lastSaved, createdAt, updatedAt
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from genedu.database import Base
from genedu.models.types import JSONDocument, utcnow


def default_sharing() -> Dict[str, Any]:
    """Sharing settings of a notebook nobody else can see."""
    return {
        "isPublic": False,
        "sharedWith": [],
        "permissions": {"canEdit": False},
    }


class Notebook(Base):
    """
    A notebook document owned by exactly one user.

    Lifecycle:
        1. Created outside this service
        2. Mutated by PUT /notebooks/{id} (version += 1 each time)
        3. Viewed by GET /notebooks/{id} (views += 1 for non-owners)
        4. Removed by DELETE /notebooks/{id} (owner only)
    """

    __tablename__ = "notebooks"

    notebook_id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        comment="Opaque notebook identifier",
    )

    user_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        comment="Owner of the notebook",
    )

    title: Mapped[str] = mapped_column(String(500), nullable=False, default="Untitled")
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True, default="")

    # Ordered list of cell objects; each carries a non-empty "id"
    cells: Mapped[List[Dict[str, Any]]] = mapped_column(
        JSONDocument, nullable=False, default=list
    )

    # `metadata` is reserved on declarative classes, hence the attribute name
    notebook_metadata: Mapped[Dict[str, Any]] = mapped_column(
        "metadata", JSONDocument, nullable=False, default=dict
    )

    # {"isPublic": bool, "sharedWith": [userId], "permissions": {"canEdit": bool}}
    sharing: Mapped[Dict[str, Any]] = mapped_column(
        JSONDocument, nullable=False, default=default_sharing
    )

    views: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    last_saved: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    __table_args__ = (
        Index("idx_notebooks_user_id", "user_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<Notebook(notebook_id='{self.notebook_id}', user_id='{self.user_id}', "
            f"version={self.version})>"
        )
