from __future__ import annotations

import logging

import sqlalchemy as sa
from sqlalchemy.orm import Session

from gymclub.core.errors import DuplicateName, InUse, NoFieldsToUpdate, NotFound
from gymclub.core.security import hash_password, verify_password
from gymclub.db.session import atomic
from gymclub.models.club import ClubOwner
from gymclub.models.permission import UserPermission
from gymclub.models.role import UserRole
from gymclub.models.user import User
from gymclub.schemas.auth import RegisterIn
from gymclub.schemas.users import UserListOut, UserOut, UserUpdateIn
from gymclub.services.audit import audit
from gymclub.services.permission_cache import permission_cache

logger = logging.getLogger(__name__)


def _get_or_404(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFound("User not found")
    return user


def register_user(db: Session, payload: RegisterIn) -> User:
    email = payload.email.strip().lower()
    user_name = payload.user_name.strip()
    phone = payload.phone.strip() if payload.phone else None
    with atomic(db):
        clashes = [User.user_name == user_name, sa.func.lower(User.email) == email]
        if phone:
            clashes.append(User.phone == phone)
        taken = db.execute(sa.select(User.id).where(sa.or_(*clashes))).first()
        if taken:
            raise DuplicateName("User name, email or phone already registered")
        user = User(
            user_name=user_name,
            first_name=payload.first_name.strip(),
            last_name=payload.last_name.strip(),
            email=email,
            phone=phone,
            password_hash=hash_password(payload.password),
            status="active",
        )
        db.add(user)
        db.flush()
        audit(db, user.id, "user", user.id, "registered", {})
    logger.info("user registered id=%s", user.id)
    return user


def authenticate(db: Session, identifier: str, password: str) -> User | None:
    ident = identifier.strip()
    user = db.execute(
        sa.select(User).where(
            sa.or_(
                User.user_name == ident,
                sa.func.lower(User.email) == ident.lower(),
                User.phone == ident,
            )
        )
    ).scalars().first()
    if user is None or not verify_password(password, user.password_hash):
        return None
    return user


def get_user(db: Session, user_id: int) -> UserOut:
    return UserOut.model_validate(_get_or_404(db, user_id))


def list_users(db: Session, q: str | None = None, limit: int = 50, offset: int = 0) -> UserListOut:
    stmt = sa.select(User).order_by(User.created_at.desc(), User.id.desc()).limit(limit).offset(offset)
    if q:
        pat = f"%{q.strip().lower()}%"
        stmt = stmt.where(
            sa.or_(
                sa.func.lower(User.user_name).like(pat),
                sa.func.lower(User.first_name).like(pat),
                sa.func.lower(User.last_name).like(pat),
                sa.func.lower(User.email).like(pat),
            )
        )
    rows = [UserOut.model_validate(u) for u in db.execute(stmt).scalars().all()]
    next_offset = offset + limit if len(rows) == limit else None
    return UserListOut(rows=rows, limit=limit, offset=offset, next_offset=next_offset)


def update_user(db: Session, user_id: int, payload: UserUpdateIn, *, actor_id: int | None = None) -> UserOut:
    data = payload.model_dump(exclude_unset=True)
    if not data:
        raise NoFieldsToUpdate("No fields to update")
    for key in ("user_name", "first_name", "last_name"):
        if key in data:
            data[key] = data[key].strip()
    if "email" in data:
        data["email"] = data["email"].strip().lower()
    if "phone" in data:
        data["phone"] = (data["phone"] or "").strip() or None

    with atomic(db):
        user = _get_or_404(db, user_id)
        clashes = []
        if "user_name" in data:
            clashes.append(User.user_name == data["user_name"])
        if "email" in data:
            clashes.append(sa.func.lower(User.email) == data["email"])
        if data.get("phone"):
            clashes.append(User.phone == data["phone"])
        if clashes:
            taken = db.execute(
                sa.select(User.id).where(User.id != user_id, sa.or_(*clashes))
            ).first()
            if taken:
                raise DuplicateName("User name, email or phone already registered")
        changes = {}
        for key, value in data.items():
            if getattr(user, key) != value:
                changes[key] = {"from": getattr(user, key), "to": value}
                setattr(user, key, value)
        db.flush()
        audit(db, actor_id, "user", user_id, "updated", changes)
        out = UserOut.model_validate(user)

    if "status" in changes:
        permission_cache.invalidate(user_id)
    logger.info("user updated id=%s fields=%s", user_id, sorted(changes))
    return out


def delete_user(db: Session, user_id: int, *, actor_id: int | None = None) -> UserOut:
    with atomic(db):
        user = _get_or_404(db, user_id)
        stakes = db.execute(
            sa.select(sa.func.count()).select_from(ClubOwner).where(ClubOwner.user_id == user_id)
        ).scalar_one()
        if stakes:
            raise InUse("User is referenced by club ownership records")
        out = UserOut.model_validate(user)
        db.execute(sa.delete(UserRole).where(UserRole.user_id == user_id))
        db.execute(sa.delete(UserPermission).where(UserPermission.user_id == user_id))
        db.delete(user)
        actor = actor_id if actor_id != user_id else None
        audit(db, actor, "user", user_id, "deleted", {"user_name": out.user_name})
    permission_cache.invalidate(user_id)
    logger.info("user deleted id=%s", user_id)
    return out
