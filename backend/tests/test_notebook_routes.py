"""
GenEdu Backend — Notebook Endpoint Tests
==========================================

What:  GET / PUT / DELETE /notebooks/{id} through the full FastAPI stack
       against an in-memory SQLite database.

What we test:
    ✅ Cookie authentication (401 Unauthorized / Invalid token)
    ✅ View, edit and delete authorization (404 when refused)
    ✅ View counting for non-owners only
    ✅ Partial updates: allow-list, merging, cell ids, version, lastSaved
    ✅ Activity record per update; tracking failure does not fail the PUT
    ✅ Error envelope and request id on failures
"""

from datetime import timedelta
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import event

from conftest import fetch, fetch_all, login, make_token
from genedu.config import settings
from genedu.models.activity import Activity
from genedu.models.notebook import Notebook
from genedu.security import create_access_token
from genedu.services.activity_service import activity_tracker
from genedu.services.notebook_service import NotebookService

SHARED_READ_ONLY = {"isPublic": False, "sharedWith": ["u2"], "permissions": {"canEdit": False}}
SHARED_EDITABLE = {"isPublic": False, "sharedWith": ["u2"], "permissions": {"canEdit": True}}


class TestAuthentication:

    @pytest.mark.asyncio
    async def test_missing_cookie(self, test_client, create_notebook):
        await create_notebook()
        response = await test_client.get("/notebooks/nb_1")
        assert response.status_code == 401
        body = response.json()
        assert body["success"] is False
        assert body["message"] == "Unauthorized"

    @pytest.mark.asyncio
    async def test_garbage_token(self, test_client, create_notebook):
        await create_notebook()
        test_client.cookies.set(settings.auth_cookie_name, "garbage")
        response = await test_client.get("/notebooks/nb_1")
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid token"

    @pytest.mark.asyncio
    async def test_expired_token(self, test_client, create_notebook):
        await create_notebook()
        token = create_access_token({"userId": "u1"}, expires_delta=timedelta(seconds=-5))
        test_client.cookies.set(settings.auth_cookie_name, token)
        response = await test_client.put("/notebooks/nb_1", json={"title": "x"})
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid token"

    @pytest.mark.asyncio
    async def test_token_without_user_id(self, test_client, create_notebook):
        await create_notebook()
        test_client.cookies.set(settings.auth_cookie_name, create_access_token({"role": "student"}))
        response = await test_client.delete("/notebooks/nb_1")
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid token"
        assert await fetch(Notebook, "nb_1") is not None


class TestGetNotebook:

    @pytest.mark.asyncio
    async def test_owner_view_does_not_count(self, test_client, create_notebook):
        await create_notebook(title="Algebra", cells=[{"id": "c1", "content": "x"}])
        login(test_client, "u1")

        response = await test_client.get("/notebooks/nb_1")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        notebook = body["notebook"]
        assert notebook["notebookId"] == "nb_1"
        assert notebook["userId"] == "u1"
        assert notebook["title"] == "Algebra"
        assert notebook["cells"] == [{"id": "c1", "content": "x"}]
        assert notebook["stats"] == {"views": 0}
        assert notebook["sharing"]["isPublic"] is False
        assert "lastSaved" in notebook
        assert (await fetch(Notebook, "nb_1")).views == 0

    @pytest.mark.asyncio
    async def test_private_notebook_is_hidden(self, test_client, create_notebook):
        await create_notebook()
        login(test_client, "u2")
        response = await test_client.get("/notebooks/nb_1")
        assert response.status_code == 404
        assert response.json()["message"] == "Notebook not found"
        assert (await fetch(Notebook, "nb_1")).views == 0

    @pytest.mark.asyncio
    async def test_missing_and_hidden_look_the_same(self, test_client, create_notebook):
        await create_notebook()
        login(test_client, "u2")
        hidden = await test_client.get("/notebooks/nb_1")
        missing = await test_client.get("/notebooks/nb_404")
        assert hidden.status_code == missing.status_code == 404
        assert hidden.json()["message"] == missing.json()["message"]

    @pytest.mark.asyncio
    async def test_public_notebook_counts_views(self, test_client, create_notebook):
        await create_notebook(sharing={"isPublic": True, "sharedWith": [], "permissions": {"canEdit": False}})
        login(test_client, "u3")

        first = await test_client.get("/notebooks/nb_1")
        second = await test_client.get("/notebooks/nb_1")

        assert first.json()["notebook"]["stats"]["views"] == 1
        assert second.json()["notebook"]["stats"]["views"] == 2
        assert (await fetch(Notebook, "nb_1")).views == 2

    @pytest.mark.asyncio
    async def test_shared_user_can_view(self, test_client, create_notebook):
        await create_notebook(sharing=SHARED_READ_ONLY)
        login(test_client, "u2")
        response = await test_client.get("/notebooks/nb_1")
        assert response.status_code == 200
        assert response.json()["notebook"]["stats"]["views"] == 1


class TestUpdateNotebook:

    @pytest.mark.asyncio
    async def test_owner_update(self, test_client, create_notebook):
        await create_notebook(version=3)
        before = await fetch(Notebook, "nb_1")
        login(test_client, "u1")

        response = await test_client.put(
            "/notebooks/nb_1",
            json={"title": "Renamed", "description": "Chapter 2"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Notebook updated successfully"
        assert body["notebook"]["title"] == "Renamed"
        assert body["notebook"]["description"] == "Chapter 2"
        assert body["notebook"]["version"] == 4

        stored = await fetch(Notebook, "nb_1")
        assert stored.title == "Renamed"
        assert stored.version == 4
        assert stored.last_saved > before.last_saved

    @pytest.mark.asyncio
    async def test_every_update_bumps_version(self, test_client, create_notebook):
        await create_notebook()
        login(test_client, "u1")
        for expected in (2, 3, 4):
            response = await test_client.put("/notebooks/nb_1", json={})
            assert response.json()["notebook"]["version"] == expected

    @pytest.mark.asyncio
    async def test_fields_outside_allow_list_are_ignored(self, test_client, create_notebook):
        await create_notebook(views=7)
        login(test_client, "u1")

        response = await test_client.put(
            "/notebooks/nb_1",
            json={"userId": "u9", "stats": {"views": 0}, "views": 0, "version": 99, "title": "T"},
        )

        assert response.status_code == 200
        stored = await fetch(Notebook, "nb_1")
        assert stored.user_id == "u1"
        assert stored.views == 7
        assert stored.version == 2
        assert stored.title == "T"

    @pytest.mark.asyncio
    async def test_cell_ids_generated_and_kept(self, test_client, create_notebook):
        await create_notebook()
        login(test_client, "u1")

        response = await test_client.put(
            "/notebooks/nb_1",
            json={"cells": [{"id": "keep", "content": "a"}, {"content": "b"}, {"content": "c"}]},
        )

        cells = response.json()["notebook"]["cells"]
        assert cells[0]["id"] == "keep"
        assert cells[1]["id"].startswith("cell_")
        assert cells[2]["id"].startswith("cell_")
        assert cells[1]["id"] != cells[2]["id"]
        stored = await fetch(Notebook, "nb_1")
        assert [c["id"] for c in stored.cells] == [c["id"] for c in cells]

    @pytest.mark.asyncio
    async def test_sharing_merge_keeps_shared_with(self, test_client, create_notebook):
        await create_notebook(sharing=SHARED_READ_ONLY)
        login(test_client, "u1")

        response = await test_client.put("/notebooks/nb_1", json={"sharing": {"isPublic": True}})

        assert response.status_code == 200
        stored = await fetch(Notebook, "nb_1")
        assert stored.sharing == {
            "isPublic": True,
            "sharedWith": ["u2"],
            "permissions": {"canEdit": False},
        }

    @pytest.mark.asyncio
    async def test_metadata_merge(self, test_client, create_notebook):
        await create_notebook(notebook_metadata={"subject": "math", "language": "en"})
        login(test_client, "u1")

        await test_client.put("/notebooks/nb_1", json={"metadata": {"language": "fr"}})

        stored = await fetch(Notebook, "nb_1")
        assert stored.notebook_metadata == {"subject": "math", "language": "fr"}

    @pytest.mark.asyncio
    async def test_non_list_cells_ignored(self, test_client, create_notebook):
        await create_notebook(cells=[{"id": "c1", "content": "keep me"}])
        login(test_client, "u1")

        response = await test_client.put("/notebooks/nb_1", json={"cells": "oops"})

        assert response.status_code == 200
        stored = await fetch(Notebook, "nb_1")
        assert stored.cells == [{"id": "c1", "content": "keep me"}]
        assert stored.version == 2

    @pytest.mark.asyncio
    async def test_non_object_cell_rejected_without_write(self, test_client, create_notebook):
        await create_notebook()
        login(test_client, "u1")

        response = await test_client.put(
            "/notebooks/nb_1",
            json={"title": "Changed", "cells": [{"content": "ok"}, "bad"]},
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Each cell must be an object"
        stored = await fetch(Notebook, "nb_1")
        assert stored.version == 1
        assert stored.title != "Changed"

    @pytest.mark.asyncio
    async def test_non_string_title_rejected(self, test_client, create_notebook):
        await create_notebook(title="Algebra")
        login(test_client, "u1")

        response = await test_client.put("/notebooks/nb_1", json={"title": 5})

        assert response.status_code == 400
        assert response.json()["message"] == "'title' must be a string"
        stored = await fetch(Notebook, "nb_1")
        assert stored.title == "Algebra"
        assert stored.version == 1

    @pytest.mark.asyncio
    async def test_null_title_rejected(self, test_client, create_notebook):
        await create_notebook(title="Algebra")
        login(test_client, "u1")

        response = await test_client.put("/notebooks/nb_1", json={"title": None})

        assert response.status_code == 400
        assert response.json()["success"] is False
        assert (await fetch(Notebook, "nb_1")).title == "Algebra"

    @pytest.mark.asyncio
    async def test_description_type_checked(self, test_client, create_notebook):
        await create_notebook(description="Intro")
        login(test_client, "u1")

        rejected = await test_client.put("/notebooks/nb_1", json={"description": ["a"]})
        assert rejected.status_code == 400
        assert (await fetch(Notebook, "nb_1")).description == "Intro"

        cleared = await test_client.put("/notebooks/nb_1", json={"description": None})
        assert cleared.status_code == 200
        assert cleared.json()["notebook"]["description"] is None
        assert (await fetch(Notebook, "nb_1")).description is None

    @pytest.mark.asyncio
    async def test_non_object_sharing_rejected(self, test_client, create_notebook):
        await create_notebook()
        login(test_client, "u1")
        response = await test_client.put("/notebooks/nb_1", json={"sharing": True})
        assert response.status_code == 400
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_non_object_body_rejected(self, test_client, create_notebook):
        await create_notebook()
        login(test_client, "u1")
        response = await test_client.put("/notebooks/nb_1", json=[{"title": "x"}])
        assert response.status_code == 400
        assert response.json()["success"] is False
        assert (await fetch(Notebook, "nb_1")).version == 1

    @pytest.mark.asyncio
    async def test_editor_can_update(self, test_client, create_notebook):
        await create_notebook(sharing=SHARED_EDITABLE)
        login(test_client, "u2")
        response = await test_client.put("/notebooks/nb_1", json={"title": "By editor"})
        assert response.status_code == 200
        assert (await fetch(Notebook, "nb_1")).title == "By editor"

    @pytest.mark.asyncio
    async def test_public_notebook_is_not_editable(self, test_client, create_notebook):
        await create_notebook(sharing={"isPublic": True, "sharedWith": [], "permissions": {"canEdit": True}})
        login(test_client, "u3")
        response = await test_client.put("/notebooks/nb_1", json={"title": "x"})
        assert response.status_code == 404
        assert response.json()["message"] == "Notebook not found or no edit permission"

    @pytest.mark.asyncio
    async def test_missing_notebook(self, test_client, db_engine):
        login(test_client, "u1")
        response = await test_client.put("/notebooks/nope", json={"title": "x"})
        assert response.status_code == 404
        assert response.json()["message"] == "Notebook not found or no edit permission"


class TestActivityTracking:

    @pytest.mark.asyncio
    async def test_update_records_activity(self, test_client, create_notebook):
        await create_notebook(title="Physics")
        login(test_client, "u1")

        await test_client.put(
            "/notebooks/nb_1",
            json={"cells": [{"content": "force equals mass"}, {"content": "times acceleration"}]},
        )

        activities = await fetch_all(Activity)
        assert len(activities) == 1
        activity = activities[0]
        assert activity.user_id == "u1"
        assert activity.activity_type == "notebook_updated"
        assert activity.title == "Updated notebook: Physics"
        assert activity.activity_metadata == {
            "notebookId": "nb_1",
            "cellsAdded": 2,
            "wordsWritten": 5,
            "sessionDuration": 5,
        }

    @pytest.mark.asyncio
    async def test_tracking_failure_does_not_fail_update(self, test_client, create_notebook):
        await create_notebook()
        login(test_client, "u1")

        with patch.object(
            activity_tracker,
            "track_activity",
            AsyncMock(side_effect=RuntimeError("analytics down")),
        ) as mock_track:
            response = await test_client.put("/notebooks/nb_1", json={"title": "Still saved"})

        mock_track.assert_awaited_once()
        assert response.status_code == 200
        assert response.json()["notebook"]["version"] == 2
        stored = await fetch(Notebook, "nb_1")
        assert stored.title == "Still saved"
        assert await fetch_all(Activity) == []

    @pytest.mark.asyncio
    async def test_failed_activity_insert_keeps_notebook_update(self, test_client, create_notebook):
        await create_notebook()
        login(test_client, "u1")

        def reject_insert(mapper, connection, target):
            raise RuntimeError("activities table unavailable")

        event.listen(Activity, "before_insert", reject_insert)
        try:
            response = await test_client.put("/notebooks/nb_1", json={"title": "kept"})
        finally:
            event.remove(Activity, "before_insert", reject_insert)

        assert response.status_code == 200
        assert response.json()["notebook"]["title"] == "kept"
        stored = await fetch(Notebook, "nb_1")
        assert stored.title == "kept"
        assert stored.version == 2
        assert await fetch_all(Activity) == []


class TestDeleteNotebook:

    @pytest.mark.asyncio
    async def test_owner_deletes(self, test_client, create_notebook):
        await create_notebook()
        login(test_client, "u1")

        response = await test_client.delete("/notebooks/nb_1")

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Notebook deleted successfully"}
        assert await fetch(Notebook, "nb_1") is None

    @pytest.mark.asyncio
    async def test_editor_cannot_delete(self, test_client, create_notebook):
        await create_notebook(sharing=SHARED_EDITABLE)
        login(test_client, "u2")

        response = await test_client.delete("/notebooks/nb_1")

        assert response.status_code == 404
        assert response.json()["message"] == "Notebook not found or no permission to delete"
        assert await fetch(Notebook, "nb_1") is not None

    @pytest.mark.asyncio
    async def test_missing_notebook(self, test_client, db_engine):
        login(test_client, "u1")
        response = await test_client.delete("/notebooks/nb_404")
        assert response.status_code == 404


class TestSharedNotebookExample:
    """nb_1 owned by u1, shared read-only with u2."""

    @pytest.mark.asyncio
    async def test_walkthrough(self, test_client, create_notebook):
        await create_notebook(sharing=SHARED_READ_ONLY)

        login(test_client, "u2")
        viewed = await test_client.get("/notebooks/nb_1")
        assert viewed.status_code == 200
        assert viewed.json()["notebook"]["stats"]["views"] == 1

        refused = await test_client.put("/notebooks/nb_1", json={"title": "u2 edit"})
        assert refused.status_code == 404

        login(test_client, "u1")
        updated = await test_client.put("/notebooks/nb_1", json={"cells": [{"content": "a b c"}]})
        assert updated.status_code == 200
        assert updated.json()["notebook"]["version"] == 2

        activities = await fetch_all(Activity)
        assert len(activities) == 1
        assert activities[0].activity_metadata["wordsWritten"] == 3


class TestErrorEnvelope:

    @pytest.mark.asyncio
    async def test_request_id_echoed(self, test_client, create_notebook):
        await create_notebook()
        login(test_client, "u2")
        response = await test_client.get("/notebooks/nb_1", headers={"X-Request-ID": "req-123"})
        assert response.headers["X-Request-ID"] == "req-123"
        assert response.json() == {
            "success": False,
            "message": "Notebook not found",
            "requestId": "req-123",
        }

    @pytest.mark.asyncio
    async def test_request_id_generated(self, test_client, create_notebook):
        await create_notebook()
        login(test_client, "u1")
        response = await test_client.get("/notebooks/nb_1")
        assert response.headers["X-Request-ID"]

    @pytest.mark.asyncio
    async def test_database_failure_is_generic_500(self, test_client, create_notebook):
        await create_notebook()
        test_client.cookies.set(settings.auth_cookie_name, make_token("u1"))

        with patch.object(
            NotebookService,
            "_load",
            AsyncMock(side_effect=RuntimeError("connection reset by peer")),
        ):
            response = await test_client.get("/notebooks/nb_1")

        assert response.status_code == 500
        body = response.json()
        assert body["success"] is False
        assert body["message"] == "Internal server error"
        assert "connection reset" not in response.text
