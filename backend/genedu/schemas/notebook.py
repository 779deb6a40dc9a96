"""
GenEdu Backend — Notebook Response Schemas
============================================

What:  Pydantic models for the notebook API contract.
How:   Built explicitly from the ORM row via NotebookResponse.from_model();
       the PUT body is an arbitrary JSON object and has no schema, since
       unknown keys must be ignored rather than rejected.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field

from genedu.models.notebook import Notebook
from genedu.schemas.common import CamelModel


class NotebookStats(CamelModel):
    views: int = Field(default=0, description="Views by callers other than the owner")


class NotebookResponse(CamelModel):
    """Full notebook document as returned by GET and PUT."""

    notebook_id: str
    user_id: str
    title: str
    description: Optional[str] = None
    cells: List[Dict[str, Any]] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)
    sharing: Dict[str, Any] = Field(default_factory=dict)
    stats: NotebookStats = Field(default_factory=NotebookStats)
    version: int
    last_saved: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, notebook: Notebook) -> "NotebookResponse":
        return cls(
            notebook_id=notebook.notebook_id,
            user_id=notebook.user_id,
            title=notebook.title,
            description=notebook.description,
            cells=list(notebook.cells or []),
            metadata=dict(notebook.notebook_metadata or {}),
            sharing=dict(notebook.sharing or {}),
            stats=NotebookStats(views=notebook.views or 0),
            version=notebook.version,
            last_saved=notebook.last_saved,
            created_at=notebook.created_at,
            updated_at=notebook.updated_at,
        )


class NotebookEnvelope(CamelModel):
    success: bool = True
    message: Optional[str] = None
    notebook: NotebookResponse
