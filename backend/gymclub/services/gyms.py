from __future__ import annotations

import logging

import sqlalchemy as sa
from sqlalchemy.orm import Session

from gymclub.core.errors import NoFieldsToUpdate, NotFound
from gymclub.db.session import atomic
from gymclub.models.club import Club
from gymclub.models.gym import Gym
from gymclub.schemas.gyms import GymCreateIn, GymDetailOut, GymOut, GymUpdateIn
from gymclub.services.audit import audit
from gymclub.services.relationships import detach_all_for_gym, insert_edge, list_clubs_for_gym

logger = logging.getLogger(__name__)


def _get_or_404(db: Session, gym_id: int) -> Gym:
    gym = db.get(Gym, gym_id)
    if gym is None:
        raise NotFound("Gym not found")
    return gym


def create_gym(db: Session, payload: GymCreateIn, *, actor_id: int | None = None) -> GymDetailOut:
    """Create a gym; with ``club_id`` the club is linked as its owner in the same transaction."""
    fields = payload.model_dump(exclude={"club_id"})
    with atomic(db):
        if payload.club_id is not None and db.get(Club, payload.club_id) is None:
            raise NotFound("Club not found")
        gym = Gym(**fields)
        db.add(gym)
        db.flush()
        if payload.club_id is not None:
            insert_edge(db, payload.club_id, gym.id, "ownership")
        audit(db, actor_id, "gym", gym.id, "created", {"name": gym.name, "club_id": payload.club_id})
    logger.info("gym created id=%s club=%s", gym.id, payload.club_id)
    return get_gym(db, gym.id)


def get_gym(db: Session, gym_id: int) -> GymDetailOut:
    out = GymDetailOut.model_validate(_get_or_404(db, gym_id))
    out.clubs = list_clubs_for_gym(db, gym_id)
    return out


def list_gyms(db: Session, status: str | None = None, city: str | None = None) -> list[GymOut]:
    stmt = sa.select(Gym).order_by(Gym.created_at.desc(), Gym.id.desc())
    if status:
        stmt = stmt.where(Gym.status == status)
    if city:
        stmt = stmt.where(sa.func.lower(Gym.city) == city.strip().lower())
    return [GymOut.model_validate(g) for g in db.execute(stmt).scalars().all()]


def update_gym(db: Session, gym_id: int, payload: GymUpdateIn, *, actor_id: int | None = None) -> GymOut:
    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise NoFieldsToUpdate()
    with atomic(db):
        gym = _get_or_404(db, gym_id)
        for field, value in changes.items():
            setattr(gym, field, value)
        db.flush()
        audit(db, actor_id, "gym", gym_id, "updated", {"fields": sorted(changes)})
    return GymOut.model_validate(gym)


def update_gym_status(db: Session, gym_id: int, status: str, *, actor_id: int | None = None) -> GymOut:
    with atomic(db):
        gym = _get_or_404(db, gym_id)
        previous = gym.status
        gym.status = status
        db.flush()
        audit(db, actor_id, "gym", gym_id, "status_changed", {"from": previous, "to": status})
    return GymOut.model_validate(gym)


def delete_gym(db: Session, gym_id: int, *, actor_id: int | None = None) -> GymOut:
    with atomic(db):
        gym = _get_or_404(db, gym_id)
        out = GymOut.model_validate(gym)
        edges = detach_all_for_gym(db, gym_id)
        db.delete(gym)
        audit(db, actor_id, "gym", gym_id, "deleted", {"name": out.name, "detached_clubs": edges})
    logger.info("gym deleted id=%s", gym_id)
    return out
