"""
GenEdu Backend — Notebook Access Predicates
=============================================

What:  Pure boolean rules deciding what a caller may do with a notebook.
How:   Each predicate reads only the owner id and the `sharing` sub-document,
       so the rules are testable without a database.
Who:   NotebookService, after loading a notebook by id.

Rules:
    view    owner, or sharing.isPublic, or caller in sharing.sharedWith
    edit    owner, or (caller in sharing.sharedWith and permissions.canEdit)
    delete  owner only; sharing never grants delete
"""

from typing import Any, Mapping, Optional, Protocol


class SharedDocument(Protocol):
    user_id: str
    sharing: Optional[Mapping[str, Any]]


def is_owner(user_id: str, notebook: SharedDocument) -> bool:
    return bool(user_id) and notebook.user_id == user_id


def _sharing(notebook: SharedDocument) -> Mapping[str, Any]:
    return notebook.sharing or {}


def is_shared_with(user_id: str, notebook: SharedDocument) -> bool:
    shared_with = _sharing(notebook).get("sharedWith") or []
    return bool(user_id) and user_id in shared_with


def can_view(user_id: str, notebook: SharedDocument) -> bool:
    return (
        is_owner(user_id, notebook)
        or _sharing(notebook).get("isPublic") is True
        or is_shared_with(user_id, notebook)
    )


def can_edit(user_id: str, notebook: SharedDocument) -> bool:
    if is_owner(user_id, notebook):
        return True
    permissions = _sharing(notebook).get("permissions") or {}
    return is_shared_with(user_id, notebook) and permissions.get("canEdit") is True


def can_delete(user_id: str, notebook: SharedDocument) -> bool:
    return is_owner(user_id, notebook)
