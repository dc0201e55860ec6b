from __future__ import annotations

import logging
import re

import sqlalchemy as sa
from sqlalchemy.orm import Session

from gymclub.core.errors import DuplicateKey, NotFound, ValidationError
from gymclub.db.session import atomic
from gymclub.models.permission import Permission, UserPermission
from gymclub.models.role import RolePermission
from gymclub.schemas.permissions import (
    PERMISSION_KEY_PATTERN,
    PERMISSION_MODULE_PATTERN,
    PermissionOut,
    PermissionSeedOut,
)
from gymclub.services.audit import audit
from gymclub.services.permission_cache import permission_cache

logger = logging.getLogger(__name__)

PERMISSION_MODULES = ("users", "gyms", "clubs", "roles", "permissions", "settings", "profile")
PERMISSION_ACTIONS = ("create", "read", "update", "delete", "list")

_KEY_RE = re.compile(PERMISSION_KEY_PATTERN)
_MODULE_RE = re.compile(PERMISSION_MODULE_PATTERN)


def default_permission_keys() -> list[tuple[str, str, str]]:
    """(key, module, description) for every module/action pair of the built-in catalog."""
    out = []
    for module in PERMISSION_MODULES:
        for action in PERMISSION_ACTIONS:
            out.append((f"{module}.{action}", module, f"Allows {action} on {module}"))
    return out


def _validate_definition(key: str, description: str, module: str) -> tuple[str, str, str]:
    key = (key or "").strip()
    description = (description or "").strip()
    module = (module or "").strip()
    problems = []
    if not 3 <= len(key) <= 100 or not _KEY_RE.match(key):
        problems.append({"field": "key", "msg": "3-100 chars of letters, digits, '.', '_' or '-'"})
    if not 5 <= len(description) <= 500:
        problems.append({"field": "description", "msg": "5-500 chars"})
    if not 2 <= len(module) <= 50 or not _MODULE_RE.match(module):
        problems.append({"field": "module", "msg": "2-50 chars of letters, digits, '_' or '-'"})
    if problems:
        raise ValidationError("Invalid permission definition", errors=problems)
    return key, description, module


def _get_or_404(db: Session, permission_id: int) -> Permission:
    row = db.get(Permission, permission_id)
    if row is None:
        raise NotFound("Permission not found")
    return row


def create_permission(db: Session, key: str, description: str, module: str, *, actor_id: int | None = None) -> PermissionOut:
    key, description, module = _validate_definition(key, description, module)
    with atomic(db):
        exists = db.execute(
            sa.text("SELECT 1 FROM permissions WHERE key=:k"),
            {"k": key},
        ).first()
        if exists:
            raise DuplicateKey(f"Permission key '{key}' already exists")
        row = Permission(key=key, module=module, description=description)
        db.add(row)
        db.flush()
        audit(db, actor_id, "permission", row.id, "created", {"key": key, "module": module})
    logger.info("permission created key=%s module=%s", key, module)
    return PermissionOut.model_validate(row)


def update_permission_description(
    db: Session, permission_id: int, description: str, *, actor_id: int | None = None
) -> PermissionOut:
    description = (description or "").strip()
    if not 5 <= len(description) <= 500:
        raise ValidationError("Invalid permission definition", errors=[{"field": "description", "msg": "5-500 chars"}])
    with atomic(db):
        row = _get_or_404(db, permission_id)
        row.description = description
        audit(db, actor_id, "permission", row.id, "description_updated", {})
    return PermissionOut.model_validate(row)


def get_permission(db: Session, permission_id: int) -> PermissionOut:
    return PermissionOut.model_validate(_get_or_404(db, permission_id))


def list_permissions(db: Session, module: str | None = None) -> list[PermissionOut]:
    stmt = sa.select(Permission).order_by(Permission.module, Permission.key)
    if module is not None:
        stmt = stmt.where(Permission.module == module)
    return [PermissionOut.model_validate(r) for r in db.execute(stmt).scalars().all()]


def list_modules(db: Session) -> list[str]:
    rows = db.execute(sa.text("SELECT DISTINCT module FROM permissions ORDER BY module")).scalars().all()
    return list(rows)


def delete_permission(db: Session, permission_id: int, *, actor_id: int | None = None) -> PermissionOut:
    with atomic(db):
        row = _get_or_404(db, permission_id)
        out = PermissionOut.model_validate(row)
        db.execute(sa.delete(RolePermission).where(RolePermission.permission_id == permission_id))
        db.execute(sa.delete(UserPermission).where(UserPermission.permission_id == permission_id))
        db.delete(row)
        audit(db, actor_id, "permission", permission_id, "deleted", {"key": out.key})
    permission_cache.clear()
    logger.info("permission deleted key=%s", out.key)
    return out


def existing_permission_ids(db: Session, permission_ids: list[int]) -> set[int]:
    if not permission_ids:
        return set()
    rows = db.execute(sa.select(Permission.id).where(Permission.id.in_(permission_ids))).scalars().all()
    return set(rows)


def require_permission_ids(db: Session, permission_ids: list[int]) -> list[int]:
    """Deduplicate ``permission_ids`` keeping order; NotFound if any id is unknown."""
    wanted = list(dict.fromkeys(int(p) for p in permission_ids))
    missing = sorted(set(wanted) - existing_permission_ids(db, wanted))
    if missing:
        raise NotFound("Unknown permission ids", errors=[{"permission_id": p} for p in missing])
    return wanted


def seed_catalog(db: Session) -> PermissionSeedOut:
    with atomic(db):
        present = set(db.execute(sa.select(Permission.key)).scalars().all())
        created = []
        for key, module, description in default_permission_keys():
            if key in present:
                continue
            db.add(Permission(key=key, module=module, description=description))
            created.append(key)
        if created:
            audit(db, None, "permission", "catalog", "seeded", {"created": len(created)})
    logger.info("permission catalog seeded created=%d existing=%d", len(created), len(present))
    return PermissionSeedOut(created=created, existing=len(present))
