"""
GenEdu Backend — Notebook Service
===================================

What:  Business logic for reading, updating and deleting a notebook.
How:   Loads the notebook by id, applies the access predicates, performs a
       single-row write, and returns a response model.
Who:   Called by the /notebooks/{id} route handlers.

Request Flow (PUT /notebooks/{id}):
    ┌──────────┐    ┌─────────────┐    ┌──────────────┐    ┌──────────────┐
    │  Load    │───▶│  can_edit?  │───▶│ Apply allowed│───▶│ Track        │
    │ FOR UPD. │    │  else 404   │    │ keys, v += 1 │    │ (best-effort)│
    └──────────┘    └─────────────┘    └──────────────┘    └──────────────┘

Concurrency:
    - views are incremented with one atomic UPDATE
    - PUT reads the row FOR UPDATE, so concurrent edits serialize on PostgreSQL
    - DELETE is a single conditional DELETE statement
"""

import logging
import time
import uuid
from typing import Any, Dict, Iterable, List, Mapping

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from genedu.exceptions import DatabaseError, GenEduError, NotFoundError, ValidationError
from genedu.models.notebook import Notebook
from genedu.models.types import utcnow
from genedu.schemas.notebook import NotebookResponse
from genedu.services import access
from genedu.services.activity_service import activity_tracker

logger = logging.getLogger(__name__)

# Keys of a PUT body that are applied; everything else is ignored
ALLOWED_UPDATES = ("title", "description", "cells", "metadata", "sharing")
MERGED_FIELDS = ("metadata", "sharing")

# Approximate session length (minutes) reported with each update activity
SESSION_DURATION_MINUTES = 5


# ══════════════════════════════════════════════════════════════════════════
# Pure helpers
# ══════════════════════════════════════════════════════════════════════════

def generate_cell_id() -> str:
    """Time prefix plus random suffix, e.g. cell_1700000000000_3f9a1c2b7."""
    return f"cell_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


def normalize_cells(cells: Iterable[Any]) -> List[Dict[str, Any]]:
    """
    Copy incoming cells, keeping non-empty ids and generating missing ones.

    Raises:
        ValidationError: an element is not a JSON object
    """
    normalized = []
    for cell in cells:
        if not isinstance(cell, Mapping):
            raise ValidationError(message="Each cell must be an object", field="cells")
        copy = dict(cell)
        copy["id"] = cell.get("id") or generate_cell_id()
        normalized.append(copy)
    return normalized


def count_words(cells: Iterable[Mapping[str, Any]]) -> int:
    """Whitespace-separated tokens across every string `content`."""
    total = 0
    for cell in cells:
        content = cell.get("content")
        if isinstance(content, str):
            total += len(content.split())
    return total


def apply_notebook_updates(notebook: Notebook, payload: Mapping[str, Any]) -> List[str]:
    """
    Apply the allowed keys of a PUT body to a notebook in place.

    Semantics per key:
        cells                 list → replaces stored cells (ids kept or generated);
                              any other value is ignored
        metadata, sharing     shallow merge into the existing object
        title                 string, replaced
        description           string or null, replaced

    Always sets last_saved and increments version by exactly one.

    Raises:
        ValidationError: a value of the wrong JSON type

    Returns:
        Names of the keys that were applied.
    """
    applied = []
    for key in ALLOWED_UPDATES:
        if key not in payload:
            continue
        value = payload[key]

        if key == "cells":
            if not isinstance(value, list):
                continue
            notebook.cells = normalize_cells(value)
        elif key in MERGED_FIELDS:
            if not isinstance(value, Mapping):
                raise ValidationError(message=f"'{key}' must be an object", field=key)
            # New dict objects so the JSON columns register the change
            if key == "metadata":
                notebook.notebook_metadata = {**(notebook.notebook_metadata or {}), **value}
            else:
                notebook.sharing = {**(notebook.sharing or {}), **value}
        elif key == "title":
            if not isinstance(value, str):
                raise ValidationError(message="'title' must be a string", field=key)
            notebook.title = value
        else:
            if value is not None and not isinstance(value, str):
                raise ValidationError(message="'description' must be a string or null", field=key)
            notebook.description = value
        applied.append(key)

    now = utcnow()
    notebook.last_saved = now
    notebook.updated_at = now
    notebook.version = (notebook.version or 0) + 1
    return applied


# ══════════════════════════════════════════════════════════════════════════
# Service
# ══════════════════════════════════════════════════════════════════════════

class NotebookService:
    """
    Business logic layer for notebook operations.

    Error Handling Strategy:
        Application errors (NotFoundError, ValidationError) propagate as-is.
        Anything else raised by the database layer is logged and wrapped in
        DatabaseError, which the global handler turns into a generic 500.
    """

    async def _load(self, db: AsyncSession, notebook_id: str, for_update: bool = False) -> Notebook | None:
        query = select(Notebook).where(Notebook.notebook_id == notebook_id)
        if for_update:
            query = query.with_for_update()
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def get_notebook(
        self, db: AsyncSession, notebook_id: str, user_id: str
    ) -> NotebookResponse:
        """
        Return a notebook the caller may view.

        Side effect: a non-owner view increments stats.views by one before
        the response is built.

        Raises:
            NotFoundError: missing, or not visible to the caller (→ 404)
            DatabaseError: query failed (→ 500)
        """
        try:
            notebook = await self._load(db, notebook_id)
            if notebook is None or not access.can_view(user_id, notebook):
                raise NotFoundError(
                    message="Notebook not found",
                    resource="notebook",
                    resource_id=notebook_id,
                )

            if not access.is_owner(user_id, notebook):
                await db.execute(
                    update(Notebook)
                    .where(Notebook.notebook_id == notebook_id)
                    .values(views=Notebook.views + 1)
                    .execution_options(synchronize_session=False)
                )
                await db.refresh(notebook, attribute_names=["views"])

            return NotebookResponse.from_model(notebook)

        except GenEduError:
            raise
        except Exception as e:
            logger.error("Database error fetching notebook %s: %s", notebook_id, str(e), exc_info=True)
            raise DatabaseError(context={"notebook_id": notebook_id})

    async def update_notebook(
        self,
        db: AsyncSession,
        notebook_id: str,
        user_id: str,
        payload: Mapping[str, Any],
    ) -> NotebookResponse:
        """
        Apply a partial update from an owner or an editor.

        Workflow:
            1. Load the row FOR UPDATE; 404 unless can_edit
            2. Apply allowed keys, bump version, stamp lastSaved
            3. Flush (errors surface here, inside the handler)
            4. Append a notebook_updated activity (failure logged only)

        Raises:
            NotFoundError: missing, or caller lacks edit permission (→ 404)
            ValidationError: malformed cells/metadata/sharing (→ 400)
            DatabaseError: write failed (→ 500)
        """
        try:
            notebook = await self._load(db, notebook_id, for_update=True)
            if notebook is None or not access.can_edit(user_id, notebook):
                raise NotFoundError(
                    message="Notebook not found or no edit permission",
                    resource="notebook",
                    resource_id=notebook_id,
                )

            applied = apply_notebook_updates(notebook, payload)
            await db.flush()
            logger.info(
                "Notebook %s updated by %s to version %d (fields: %s)",
                notebook_id,
                user_id,
                notebook.version,
                ", ".join(applied) or "none",
            )

        except GenEduError:
            raise
        except Exception as e:
            logger.error("Database error updating notebook %s: %s", notebook_id, str(e), exc_info=True)
            raise DatabaseError(context={"notebook_id": notebook_id})

        await self._track_update(db, notebook, user_id)
        return NotebookResponse.from_model(notebook)

    async def _track_update(self, db: AsyncSession, notebook: Notebook, user_id: str) -> None:
        """Record the update for analytics. Never raises."""
        cells = notebook.cells or []
        try:
            await activity_tracker.track_activity(
                db,
                user_id=user_id,
                activity_type="notebook_updated",
                title=f"Updated notebook: {notebook.title}",
                description=f"Made changes to {notebook.title}",
                metadata={
                    "notebookId": notebook.notebook_id,
                    "cellsAdded": len(cells),
                    "wordsWritten": count_words(cells),
                    "sessionDuration": SESSION_DURATION_MINUTES,
                },
            )
        except Exception as e:
            logger.error(
                "Error tracking activity for notebook %s: %s",
                notebook.notebook_id,
                str(e),
                exc_info=True,
            )

    async def delete_notebook(self, db: AsyncSession, notebook_id: str, user_id: str) -> None:
        """
        Delete a notebook owned by the caller.

        One conditional DELETE on (notebook_id, user_id): a shared editor
        matches no row, exactly like a missing notebook.

        Raises:
            NotFoundError: nothing deleted (→ 404)
            DatabaseError: statement failed (→ 500)
        """
        try:
            # Same rule as access.can_delete, evaluated by the database
            result = await db.execute(
                delete(Notebook).where(
                    Notebook.notebook_id == notebook_id,
                    Notebook.user_id == user_id,
                )
            )
        except Exception as e:
            logger.error("Database error deleting notebook %s: %s", notebook_id, str(e), exc_info=True)
            raise DatabaseError(context={"notebook_id": notebook_id})

        if result.rowcount == 0:
            raise NotFoundError(
                message="Notebook not found or no permission to delete",
                resource="notebook",
                resource_id=notebook_id,
            )
        logger.info("Notebook %s deleted by owner %s", notebook_id, user_id)


notebook_service = NotebookService()
