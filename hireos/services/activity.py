"""Business audit trail writer."""

import json
from typing import Any, Optional

from sqlalchemy.orm import Session

from hireos.models import ActivityLog


def log_activity(
    db: Session,
    account_id: int,
    action: str,
    entity_type: str,
    entity_id: Optional[int] = None,
    user_id: Optional[int] = None,
    details: Optional[dict[str, Any]] = None,
) -> ActivityLog:
    """Add an activity row to the session; the caller commits."""
    activity = ActivityLog(
        account_id=account_id,
        user_id=user_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        details=json.dumps(details, default=str) if details else None,
    )
    db.add(activity)
    return activity
