"""
GenEdu Backend — Notebook Route Handlers
==========================================

What:  GET / PUT / DELETE /notebooks/{notebook_id}.
How:   Resolves the caller from the auth cookie, delegates to NotebookService,
       wraps the result in the {success, message, notebook} envelope.
Who:   Called by the notebook editor and viewer pages.

Errors are raised as application exceptions and rendered by the global
handlers in main.py (401, 400, 404, 500).
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from genedu.database import get_db_session
from genedu.dependencies import get_current_user
from genedu.schemas.common import ErrorResponse, MessageResponse
from genedu.schemas.notebook import NotebookEnvelope
from genedu.security import TokenPayload
from genedu.services.notebook_service import notebook_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notebooks", tags=["Notebooks"])

_ERRORS = {
    401: {"description": "Missing or invalid auth token", "model": ErrorResponse},
    404: {"description": "Notebook not found or not accessible", "model": ErrorResponse},
    500: {"description": "Server error", "model": ErrorResponse},
}


@router.get(
    "/{notebook_id}",
    response_model=NotebookEnvelope,
    responses=_ERRORS,
    summary="Get a notebook",
    description=(
        "Returns the notebook if the caller owns it, it is public, or it is shared "
        "with the caller. Views by anyone but the owner increment stats.views."
    ),
)
async def get_notebook(
    notebook_id: str,
    caller: TokenPayload = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> NotebookEnvelope:
    notebook = await notebook_service.get_notebook(db, notebook_id, caller.user_id)
    return NotebookEnvelope(notebook=notebook)


@router.put(
    "/{notebook_id}",
    response_model=NotebookEnvelope,
    responses={
        400: {"description": "Malformed cells, metadata or sharing", "model": ErrorResponse},
        **_ERRORS,
    },
    summary="Update a notebook",
    description=(
        "Applies title, description, cells, metadata and sharing from the body; other "
        "keys are ignored. metadata and sharing are merged shallowly. Requires ownership "
        "or edit permission. Every call increments version."
    ),
)
async def update_notebook(
    notebook_id: str,
    caller: TokenPayload = Depends(get_current_user),
    payload: Dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db_session),
) -> NotebookEnvelope:
    notebook = await notebook_service.update_notebook(db, notebook_id, caller.user_id, payload)
    return NotebookEnvelope(message="Notebook updated successfully", notebook=notebook)


@router.delete(
    "/{notebook_id}",
    response_model=MessageResponse,
    responses=_ERRORS,
    summary="Delete a notebook",
    description="Deletes the notebook. Only the owner may delete; sharing never grants it.",
)
async def delete_notebook(
    notebook_id: str,
    caller: TokenPayload = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await notebook_service.delete_notebook(db, notebook_id, caller.user_id)
    return MessageResponse(message="Notebook deleted successfully")
