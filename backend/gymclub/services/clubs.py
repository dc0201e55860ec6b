from __future__ import annotations

import logging

import sqlalchemy as sa
from sqlalchemy.orm import Session

from gymclub.core.errors import InUse, NoFieldsToUpdate, NotFound
from gymclub.db.session import atomic
from gymclub.models.club import Club, ClubOwner
from gymclub.schemas.clubs import ClubCreateIn, ClubOut, ClubUpdateIn
from gymclub.services.audit import audit
from gymclub.services.relationships import detach_all_for_club

logger = logging.getLogger(__name__)


def _get_or_404(db: Session, club_id: int) -> Club:
    club = db.get(Club, club_id)
    if club is None:
        raise NotFound("Club not found")
    return club


def create_club(db: Session, payload: ClubCreateIn, *, actor_id: int | None = None) -> ClubOut:
    with atomic(db):
        club = Club(**payload.model_dump())
        db.add(club)
        db.flush()
        audit(db, actor_id, "club", club.id, "created", {"name": club.name})
    logger.info("club created id=%s", club.id)
    return ClubOut.model_validate(club)


def get_club(db: Session, club_id: int) -> ClubOut:
    return ClubOut.model_validate(_get_or_404(db, club_id))


def list_clubs(db: Session, status: str | None = None, q: str | None = None) -> list[ClubOut]:
    stmt = sa.select(Club).order_by(Club.created_at.desc(), Club.id.desc())
    if status:
        stmt = stmt.where(Club.status == status)
    if q:
        stmt = stmt.where(sa.func.lower(Club.name).like(f"%{q.strip().lower()}%"))
    return [ClubOut.model_validate(c) for c in db.execute(stmt).scalars().all()]


def update_club(db: Session, club_id: int, payload: ClubUpdateIn, *, actor_id: int | None = None) -> ClubOut:
    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise NoFieldsToUpdate()
    with atomic(db):
        club = _get_or_404(db, club_id)
        for field, value in changes.items():
            setattr(club, field, value)
        db.flush()
        audit(db, actor_id, "club", club_id, "updated", {"fields": sorted(changes)})
    return ClubOut.model_validate(club)


def update_club_status(db: Session, club_id: int, status: str, *, actor_id: int | None = None) -> ClubOut:
    with atomic(db):
        club = _get_or_404(db, club_id)
        previous = club.status
        club.status = status
        db.flush()
        audit(db, actor_id, "club", club_id, "status_changed", {"from": previous, "to": status})
    return ClubOut.model_validate(club)


def delete_club(db: Session, club_id: int, *, actor_id: int | None = None) -> ClubOut:
    with atomic(db):
        club = _get_or_404(db, club_id)
        active_owners = db.execute(
            sa.select(sa.func.count()).select_from(ClubOwner).where(
                ClubOwner.club_id == club_id, ClubOwner.status == "active"
            )
        ).scalar_one()
        if active_owners:
            raise InUse("Club still has active owners; remove them first")
        out = ClubOut.model_validate(club)
        edges = detach_all_for_club(db, club_id)
        db.execute(sa.delete(ClubOwner).where(ClubOwner.club_id == club_id))
        db.delete(club)
        audit(db, actor_id, "club", club_id, "deleted", {"name": out.name, "detached_gyms": edges})
    logger.info("club deleted id=%s", club_id)
    return out
