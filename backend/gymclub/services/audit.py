from datetime import date, datetime
from decimal import Decimal

from sqlalchemy.orm import Session

from gymclub.models.audit_log import AuditLog


def _json_safe(value):
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): _json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_json_safe(v) for v in value]
    return value


def audit(
    db: Session,
    actor_user_id: int | None,
    entity_type: str,
    entity_id: int | str,
    action: str,
    data: dict | None = None,
) -> AuditLog:
    """Stage an audit row in the caller's transaction; it commits or rolls back with the change it records."""
    row = AuditLog(
        actor_user_id=actor_user_id,
        entity_type=entity_type,
        entity_id=str(entity_id),
        action=action,
        data=_json_safe(data or {}),
    )
    db.add(row)
    return row
