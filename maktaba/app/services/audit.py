from __future__ import annotations

import json
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from maktaba.app.models.audit import AuditLog


def log_action(
    db: Session,
    *,
    user_id: UUID | None,
    action: str,
    resource_type: str,
    resource_id: str,
    changes: dict[str, Any] | None = None,
    ip_address: str | None = None,
) -> AuditLog:
    """Stage an audit entry in the caller's transaction (no commit).

    Decimals, UUIDs and dates in *changes* are stored as strings.
    """
    entry = AuditLog(
        user_id=user_id,
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        details=json.loads(json.dumps(changes, default=str)) if changes else None,
        ip_address=ip_address,
    )
    db.add(entry)
    return entry
