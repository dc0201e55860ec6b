from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from gymclub.api.deps import get_current_user, require_permission
from gymclub.db.session import get_db
from gymclub.schemas.clubs import (
    ClubCreateIn,
    ClubOut,
    ClubStatus,
    ClubStatusIn,
    ClubUpdateIn,
    OwnerCreateIn,
    OwnerOut,
    OwnerUpdateIn,
    OwnershipSummaryOut,
)
from gymclub.schemas.common import ApiResponse, ok
from gymclub.schemas.gyms import ClubGymOut, EdgeOut, GymLinkIn, RelationshipTypeIn
from gymclub.services import clubs, ownership, relationships

router = APIRouter()


@router.get("", response_model=ApiResponse[list[ClubOut]])
def list_clubs(
    status: ClubStatus | None = None,
    q: str | None = Query(default=None, max_length=100),
    current=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return ok("Clubs", clubs.list_clubs(db, status=status, q=q))


@router.post("", response_model=ApiResponse[ClubOut], status_code=201)
def create_club(payload: ClubCreateIn, current=Depends(require_permission("clubs.create")), db: Session = Depends(get_db)):
    return ok("Club created", clubs.create_club(db, payload, actor_id=current.id))


@router.get("/{club_id}", response_model=ApiResponse[ClubOut])
def get_club(club_id: int, current=Depends(get_current_user), db: Session = Depends(get_db)):
    return ok("Club", clubs.get_club(db, club_id))


@router.patch("/{club_id}", response_model=ApiResponse[ClubOut])
def update_club(
    club_id: int,
    payload: ClubUpdateIn,
    current=Depends(require_permission("clubs.update")),
    db: Session = Depends(get_db),
):
    return ok("Club updated", clubs.update_club(db, club_id, payload, actor_id=current.id))


@router.patch("/{club_id}/status", response_model=ApiResponse[ClubOut])
def update_club_status(
    club_id: int,
    payload: ClubStatusIn,
    current=Depends(require_permission("clubs.update")),
    db: Session = Depends(get_db),
):
    return ok("Club status updated", clubs.update_club_status(db, club_id, payload.status, actor_id=current.id))


@router.delete("/{club_id}", response_model=ApiResponse[ClubOut])
def delete_club(club_id: int, current=Depends(require_permission("clubs.delete")), db: Session = Depends(get_db)):
    return ok("Club deleted", clubs.delete_club(db, club_id, actor_id=current.id))


# owners


@router.get("/{club_id}/owners", response_model=ApiResponse[list[OwnerOut]])
def club_owners(club_id: int, current=Depends(get_current_user), db: Session = Depends(get_db)):
    return ok("Club owners", ownership.list_owners(db, club_id))


@router.get("/{club_id}/owners/summary", response_model=ApiResponse[OwnershipSummaryOut])
def club_ownership_summary(club_id: int, current=Depends(get_current_user), db: Session = Depends(get_db)):
    return ok("Ownership summary", ownership.ownership_summary(db, club_id))


@router.post("/{club_id}/owners", response_model=ApiResponse[OwnerOut], status_code=201)
def add_owner(
    club_id: int,
    payload: OwnerCreateIn,
    current=Depends(require_permission("clubs.update")),
    db: Session = Depends(get_db),
):
    out = ownership.add_owner(
        db,
        club_id,
        payload.user_id,
        ownership_type=payload.ownership_type,
        percentage=payload.ownership_percentage,
        start_date=payload.start_date,
        actor_id=current.id,
    )
    return ok("Owner added to club", out)


@router.patch("/{club_id}/owners/{stake_id}", response_model=ApiResponse[OwnerOut])
def update_owner(
    club_id: int,
    stake_id: int,
    payload: OwnerUpdateIn,
    current=Depends(require_permission("clubs.update")),
    db: Session = Depends(get_db),
):
    out = ownership.update_ownership(
        db,
        club_id,
        stake_id,
        ownership_type=payload.ownership_type,
        percentage=payload.ownership_percentage,
        actor_id=current.id,
    )
    return ok("Ownership updated", out)


@router.delete("/{club_id}/owners/{stake_id}", response_model=ApiResponse[OwnerOut])
def remove_owner(
    club_id: int,
    stake_id: int,
    current=Depends(require_permission("clubs.update")),
    db: Session = Depends(get_db),
):
    return ok("Owner removed from club", ownership.remove_owner(db, club_id, stake_id, actor_id=current.id))


# gyms


@router.get("/{club_id}/gyms", response_model=ApiResponse[list[ClubGymOut]])
def club_gyms(club_id: int, current=Depends(get_current_user), db: Session = Depends(get_db)):
    return ok("Club gyms", relationships.list_gyms_for_club(db, club_id))


@router.post("/{club_id}/gyms", response_model=ApiResponse[EdgeOut], status_code=201)
def connect_gym(
    club_id: int,
    payload: GymLinkIn,
    current=Depends(require_permission("clubs.update")),
    db: Session = Depends(get_db),
):
    out = relationships.connect(db, club_id, payload.gym_id, payload.relationship_type, actor_id=current.id)
    return ok("Gym linked to club", out)


@router.patch("/{club_id}/gyms/{gym_id}", response_model=ApiResponse[EdgeOut])
def change_gym_relationship(
    club_id: int,
    gym_id: int,
    payload: RelationshipTypeIn,
    current=Depends(require_permission("clubs.update")),
    db: Session = Depends(get_db),
):
    out = relationships.update_relationship_type(db, club_id, gym_id, payload.relationship_type, actor_id=current.id)
    return ok("Relationship updated", out)


@router.delete("/{club_id}/gyms/{gym_id}", response_model=ApiResponse[EdgeOut])
def disconnect_gym(
    club_id: int,
    gym_id: int,
    current=Depends(require_permission("clubs.update")),
    db: Session = Depends(get_db),
):
    return ok("Gym unlinked from club", relationships.disconnect(db, club_id, gym_id, actor_id=current.id))
