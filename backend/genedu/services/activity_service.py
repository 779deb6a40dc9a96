"""
GenEdu Backend — Activity Tracker
===================================

What:  Appends activity records (e.g. "notebook_updated") for analytics.
How:   Writes inside a SAVEPOINT of the caller's session, so a failed insert
       rolls back only the activity row and the request transaction stays
       usable.
Who:   NotebookService after a successful update. Callers treat failures
       as best-effort: log and continue.
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from genedu.models.activity import Activity

logger = logging.getLogger(__name__)


class ActivityTracker:

    async def track_activity(
        self,
        db: AsyncSession,
        user_id: str,
        activity_type: str,
        title: str,
        description: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Activity:
        """Insert one activity row and return it. Raises on failure."""
        activity = Activity(
            user_id=user_id,
            activity_type=activity_type,
            title=title,
            description=description,
            activity_metadata=dict(metadata or {}),
        )
        async with db.begin_nested():
            db.add(activity)
        logger.debug("Tracked %s for user %s", activity_type, user_id)
        return activity


activity_tracker = ActivityTracker()
