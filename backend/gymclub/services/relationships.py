from __future__ import annotations

import logging

import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from gymclub.core.errors import DuplicateEdge, NotFound, ValidationError
from gymclub.db.session import atomic
from gymclub.models.club import Club
from gymclub.models.gym import ClubGym, Gym
from gymclub.schemas.gyms import ClubGymOut, EdgeOut, GymClubOut
from gymclub.services.audit import audit

logger = logging.getLogger(__name__)

RELATIONSHIP_TYPES = ("ownership", "partnership", "franchise")


def _validate_type(relationship_type: str) -> str:
    if relationship_type not in RELATIONSHIP_TYPES:
        raise ValidationError(
            "Invalid relationship type",
            errors=[{"field": "relationship_type", "allowed": list(RELATIONSHIP_TYPES)}],
        )
    return relationship_type


def _require_endpoints(db: Session, club_id: int, gym_id: int) -> None:
    if db.get(Club, club_id) is None:
        raise NotFound("Club not found")
    if db.get(Gym, gym_id) is None:
        raise NotFound("Gym not found")


def _find_edge(db: Session, club_id: int, gym_id: int, lock: bool = False) -> ClubGym | None:
    stmt = sa.select(ClubGym).where(ClubGym.club_id == club_id, ClubGym.gym_id == gym_id)
    if lock:
        stmt = stmt.with_for_update()
    return db.execute(stmt).scalar_one_or_none()


def insert_edge(db: Session, club_id: int, gym_id: int, relationship_type: str) -> ClubGym:
    """Insert without committing; callers own the transaction."""
    if _find_edge(db, club_id, gym_id) is not None:
        raise DuplicateEdge("This club and gym are already linked")
    edge = ClubGym(club_id=club_id, gym_id=gym_id, relationship_type=relationship_type, status="active")
    db.add(edge)
    try:
        db.flush()
    except IntegrityError as exc:
        # a concurrent writer won the unique (club_id, gym_id) slot
        raise DuplicateEdge("This club and gym are already linked") from exc
    return edge


def connect(db: Session, club_id: int, gym_id: int, relationship_type: str, *, actor_id: int | None = None) -> EdgeOut:
    relationship_type = _validate_type(relationship_type)
    with atomic(db):
        _require_endpoints(db, club_id, gym_id)
        edge = insert_edge(db, club_id, gym_id, relationship_type)
        audit(db, actor_id, "club_gym", edge.id, "connected", {
            "club_id": club_id,
            "gym_id": gym_id,
            "relationship_type": relationship_type,
        })
    logger.info("club %s linked to gym %s as %s", club_id, gym_id, relationship_type)
    return EdgeOut.model_validate(edge)


def disconnect(db: Session, club_id: int, gym_id: int, *, actor_id: int | None = None) -> EdgeOut:
    with atomic(db):
        edge = _find_edge(db, club_id, gym_id, lock=True)
        if edge is None:
            raise NotFound("Relationship between club and gym not found")
        out = EdgeOut.model_validate(edge)
        db.delete(edge)
        audit(db, actor_id, "club_gym", out.id, "disconnected", {
            "club_id": club_id,
            "gym_id": gym_id,
            "relationship_type": out.relationship_type,
        })
    logger.info("club %s unlinked from gym %s", club_id, gym_id)
    return out


def update_relationship_type(
    db: Session, club_id: int, gym_id: int, relationship_type: str, *, actor_id: int | None = None
) -> EdgeOut:
    relationship_type = _validate_type(relationship_type)
    with atomic(db):
        edge = _find_edge(db, club_id, gym_id, lock=True)
        if edge is None:
            raise NotFound("Relationship between club and gym not found")
        previous = edge.relationship_type
        edge.relationship_type = relationship_type
        db.flush()
        audit(db, actor_id, "club_gym", edge.id, "type_changed", {"from": previous, "to": relationship_type})
    return EdgeOut.model_validate(edge)


def list_gyms_for_club(db: Session, club_id: int) -> list[ClubGymOut]:
    if db.get(Club, club_id) is None:
        raise NotFound("Club not found")
    rows = db.execute(
        sa.select(
            ClubGym.id.label("edge_id"),
            Gym.id.label("gym_id"),
            Gym.name.label("gym_name"),
            Gym.city,
            Gym.status.label("gym_status"),
            ClubGym.relationship_type,
            ClubGym.created_at.label("linked_at"),
        )
        .join(Gym, Gym.id == ClubGym.gym_id)
        .where(ClubGym.club_id == club_id, ClubGym.status == "active")
        .order_by(ClubGym.created_at.desc(), ClubGym.id.desc())
    ).mappings().all()
    return [ClubGymOut(**r) for r in rows]


def list_clubs_for_gym(db: Session, gym_id: int) -> list[GymClubOut]:
    if db.get(Gym, gym_id) is None:
        raise NotFound("Gym not found")
    rows = db.execute(
        sa.select(
            ClubGym.id.label("edge_id"),
            Club.id.label("club_id"),
            Club.name.label("club_name"),
            Club.status.label("club_status"),
            ClubGym.relationship_type,
            ClubGym.created_at.label("linked_at"),
        )
        .join(Club, Club.id == ClubGym.club_id)
        .where(ClubGym.gym_id == gym_id, ClubGym.status == "active")
        .order_by(ClubGym.created_at.desc(), ClubGym.id.desc())
    ).mappings().all()
    return [GymClubOut(**r) for r in rows]


def detach_all_for_club(db: Session, club_id: int) -> int:
    return db.execute(sa.delete(ClubGym).where(ClubGym.club_id == club_id)).rowcount


def detach_all_for_gym(db: Session, gym_id: int) -> int:
    return db.execute(sa.delete(ClubGym).where(ClubGym.gym_id == gym_id)).rowcount
