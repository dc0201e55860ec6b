from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from gymclub.api.deps import get_current_user, require_permission
from gymclub.db.session import get_db
from gymclub.schemas.common import ApiResponse, ok
from gymclub.schemas.gyms import (
    ClubLinkIn,
    EdgeOut,
    GymClubOut,
    GymCreateIn,
    GymDetailOut,
    GymOut,
    GymStatus,
    GymStatusIn,
    GymUpdateIn,
)
from gymclub.services import gyms, relationships

router = APIRouter()


@router.get("", response_model=ApiResponse[list[GymOut]])
def list_gyms(
    status: GymStatus | None = None,
    city: str | None = Query(default=None, max_length=100),
    current=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return ok("Gyms", gyms.list_gyms(db, status=status, city=city))


@router.post("", response_model=ApiResponse[GymDetailOut], status_code=201)
def create_gym(payload: GymCreateIn, current=Depends(require_permission("gyms.create")), db: Session = Depends(get_db)):
    return ok("Gym created", gyms.create_gym(db, payload, actor_id=current.id))


@router.get("/{gym_id}", response_model=ApiResponse[GymDetailOut])
def get_gym(gym_id: int, current=Depends(get_current_user), db: Session = Depends(get_db)):
    return ok("Gym", gyms.get_gym(db, gym_id))


@router.patch("/{gym_id}", response_model=ApiResponse[GymOut])
def update_gym(
    gym_id: int,
    payload: GymUpdateIn,
    current=Depends(require_permission("gyms.update")),
    db: Session = Depends(get_db),
):
    return ok("Gym updated", gyms.update_gym(db, gym_id, payload, actor_id=current.id))


@router.patch("/{gym_id}/status", response_model=ApiResponse[GymOut])
def update_gym_status(
    gym_id: int,
    payload: GymStatusIn,
    current=Depends(require_permission("gyms.update")),
    db: Session = Depends(get_db),
):
    return ok("Gym status updated", gyms.update_gym_status(db, gym_id, payload.status, actor_id=current.id))


@router.delete("/{gym_id}", response_model=ApiResponse[GymOut])
def delete_gym(gym_id: int, current=Depends(require_permission("gyms.delete")), db: Session = Depends(get_db)):
    return ok("Gym deleted", gyms.delete_gym(db, gym_id, actor_id=current.id))


@router.get("/{gym_id}/clubs", response_model=ApiResponse[list[GymClubOut]])
def gym_clubs(gym_id: int, current=Depends(get_current_user), db: Session = Depends(get_db)):
    return ok("Gym clubs", relationships.list_clubs_for_gym(db, gym_id))


@router.post("/{gym_id}/clubs", response_model=ApiResponse[EdgeOut], status_code=201)
def add_club(
    gym_id: int,
    payload: ClubLinkIn,
    current=Depends(require_permission("gyms.update")),
    db: Session = Depends(get_db),
):
    out = relationships.connect(db, payload.club_id, gym_id, payload.relationship_type, actor_id=current.id)
    return ok("Club linked to gym", out)


@router.delete("/{gym_id}/clubs/{club_id}", response_model=ApiResponse[EdgeOut])
def remove_club(
    gym_id: int,
    club_id: int,
    current=Depends(require_permission("gyms.update")),
    db: Session = Depends(get_db),
):
    return ok("Club unlinked from gym", relationships.disconnect(db, club_id, gym_id, actor_id=current.id))
