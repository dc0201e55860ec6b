"""Club ownership ledger.

Stakes are fractional and typed. For every club the ownership_percentage of
its active stakes sums to at most 100. Every check re-reads the store inside
the writing transaction, after taking a row lock on the club, so two writers
on the same club are serialized instead of both passing a stale total.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation

import sqlalchemy as sa
from sqlalchemy.orm import Session

from gymclub.core.config import settings
from gymclub.core.errors import (
    DuplicateOwnership,
    NoFieldsToUpdate,
    NotFound,
    PercentageExceeded,
    ValidationError,
)
from gymclub.core.security import today_utc
from gymclub.db.session import atomic
from gymclub.models.club import Club, ClubOwner
from gymclub.models.user import User
from gymclub.schemas.clubs import OwnerOut, OwnershipSummaryOut, UserStakeOut
from gymclub.services.audit import audit

logger = logging.getLogger(__name__)

OWNERSHIP_TYPES = ("owner", "co_owner", "partner", "investor")
FULL_OWNERSHIP = Decimal("100.00")
_CENT = Decimal("0.01")


@dataclass(frozen=True)
class Share:
    """Percentage requested for a stake, remembering whether the caller chose it."""

    percentage: Decimal
    specified: bool

    @property
    def source(self) -> str:
        return "specified" if self.specified else "default"


def to_percentage(value) -> Decimal:
    """Exact 2-place decimal in (0, 100]; floats go through str() to avoid binary drift."""
    try:
        pct = Decimal(str(value)) if not isinstance(value, Decimal) else value
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError("Ownership percentage must be a number") from None
    if not pct.is_finite():
        raise ValidationError("Ownership percentage must be a number")
    if pct != pct.quantize(_CENT):
        raise ValidationError("Ownership percentage allows at most 2 decimal places")
    pct = pct.quantize(_CENT)
    if pct <= 0 or pct > FULL_OWNERSHIP:
        raise ValidationError("Ownership percentage must be greater than 0 and at most 100")
    return pct


def resolve_share(percentage=None) -> Share:
    if percentage is None:
        return Share(to_percentage(settings.DEFAULT_OWNERSHIP_PERCENTAGE), specified=False)
    return Share(to_percentage(percentage), specified=True)


def _validate_type(ownership_type: str) -> str:
    if ownership_type not in OWNERSHIP_TYPES:
        raise ValidationError(
            "Invalid ownership type",
            errors=[{"field": "ownership_type", "allowed": list(OWNERSHIP_TYPES)}],
        )
    return ownership_type


def _lock_club(db: Session, club_id: int) -> None:
    row = db.execute(sa.select(Club.id).where(Club.id == club_id).with_for_update()).first()
    if row is None:
        raise NotFound("Club not found")


def active_total(db: Session, club_id: int, exclude_stake_id: int | None = None) -> Decimal:
    stmt = sa.select(sa.func.coalesce(sa.func.sum(ClubOwner.ownership_percentage), 0)).where(
        ClubOwner.club_id == club_id,
        ClubOwner.status == "active",
    )
    if exclude_stake_id is not None:
        stmt = stmt.where(ClubOwner.id != exclude_stake_id)
    total = db.execute(stmt).scalar_one()
    return Decimal(str(total or 0)).quantize(_CENT)


def _ensure_fits(current_total: Decimal, percentage: Decimal) -> None:
    if current_total + percentage > FULL_OWNERSHIP:
        available = max(FULL_OWNERSHIP - current_total, Decimal("0.00"))
        raise PercentageExceeded(
            "Total ownership percentage cannot exceed 100%",
            errors=[{
                "allocated": str(current_total),
                "requested": str(percentage),
                "available": str(available),
            }],
        )


def _owner_out(stake: ClubOwner, user: User | None = None, source: str | None = None) -> OwnerOut:
    out = OwnerOut.model_validate(stake)
    if user is not None:
        out.user_name = user.user_name
        out.first_name = user.first_name
        out.last_name = user.last_name
        out.email = user.email
    out.percentage_source = source
    return out


def add_owner(
    db: Session,
    club_id: int,
    user_id: int,
    ownership_type: str | None = None,
    percentage=None,
    start_date: date | None = None,
    *,
    actor_id: int | None = None,
) -> OwnerOut:
    share = resolve_share(percentage)
    type_to_use = _validate_type(ownership_type or settings.DEFAULT_OWNERSHIP_TYPE)

    with atomic(db):
        _lock_club(db, club_id)
        user = db.get(User, user_id)
        if user is None:
            raise NotFound("User not found")

        duplicate = db.execute(
            sa.select(ClubOwner.id).where(
                ClubOwner.club_id == club_id,
                ClubOwner.user_id == user_id,
                ClubOwner.status == "active",
            )
        ).first()
        if duplicate:
            raise DuplicateOwnership("User already holds an active stake in this club")

        _ensure_fits(active_total(db, club_id), share.percentage)

        stake = ClubOwner(
            club_id=club_id,
            user_id=user_id,
            ownership_type=type_to_use,
            ownership_percentage=share.percentage,
            start_date=start_date or today_utc(),
            status="active",
        )
        db.add(stake)
        db.flush()
        audit(db, actor_id, "club_owner", stake.id, "added", {
            "club_id": club_id,
            "user_id": user_id,
            "ownership_type": type_to_use,
            "ownership_percentage": str(share.percentage),
            "percentage_source": share.source,
        })

    if not share.specified:
        logger.warning(
            "ownership percentage not given, defaulted to %s (club=%s user=%s)",
            share.percentage, club_id, user_id,
        )
    logger.info("owner added club=%s user=%s pct=%s", club_id, user_id, share.percentage)
    return _owner_out(stake, user, share.source)


def update_ownership(
    db: Session,
    club_id: int,
    stake_id: int,
    ownership_type: str | None = None,
    percentage=None,
    *,
    actor_id: int | None = None,
) -> OwnerOut:
    if ownership_type is None and percentage is None:
        raise NoFieldsToUpdate("Provide ownership_type or ownership_percentage")
    new_type = _validate_type(ownership_type) if ownership_type is not None else None
    new_pct = to_percentage(percentage) if percentage is not None else None

    with atomic(db):
        _lock_club(db, club_id)
        stake = db.execute(
            sa.select(ClubOwner).where(
                ClubOwner.id == stake_id,
                ClubOwner.club_id == club_id,
                ClubOwner.status == "active",
            )
        ).scalar_one_or_none()
        if stake is None:
            raise NotFound("Ownership record not found")

        changes = {}
        if new_pct is not None:
            _ensure_fits(active_total(db, club_id, exclude_stake_id=stake_id), new_pct)
            changes["ownership_percentage"] = {"from": str(stake.ownership_percentage), "to": str(new_pct)}
            stake.ownership_percentage = new_pct
        if new_type is not None:
            changes["ownership_type"] = {"from": stake.ownership_type, "to": new_type}
            stake.ownership_type = new_type
        db.flush()
        audit(db, actor_id, "club_owner", stake_id, "updated", changes)

    logger.info("ownership updated club=%s stake=%s", club_id, stake_id)
    return _owner_out(stake, db.get(User, stake.user_id))


def remove_owner(db: Session, club_id: int, stake_id: int, *, actor_id: int | None = None) -> OwnerOut:
    with atomic(db):
        _lock_club(db, club_id)
        stake = db.execute(
            sa.select(ClubOwner).where(
                ClubOwner.id == stake_id,
                ClubOwner.club_id == club_id,
                ClubOwner.status == "active",
            )
        ).scalar_one_or_none()
        if stake is None:
            raise NotFound("Ownership record not found")
        stake.status = "inactive"
        stake.end_date = today_utc()
        db.flush()
        audit(db, actor_id, "club_owner", stake_id, "removed", {
            "club_id": club_id,
            "user_id": stake.user_id,
            "ownership_percentage": str(stake.ownership_percentage),
        })

    logger.info("owner removed club=%s stake=%s", club_id, stake_id)
    return _owner_out(stake)


def list_owners(db: Session, club_id: int) -> list[OwnerOut]:
    if db.get(Club, club_id) is None:
        raise NotFound("Club not found")
    rows = db.execute(
        sa.select(ClubOwner, User)
        .join(User, User.id == ClubOwner.user_id)
        .where(ClubOwner.club_id == club_id, ClubOwner.status == "active")
        .order_by(ClubOwner.ownership_percentage.desc(), ClubOwner.created_at.asc(), ClubOwner.id.asc())
    ).all()
    return [_owner_out(stake, user) for stake, user in rows]


def ownership_summary(db: Session, club_id: int) -> OwnershipSummaryOut:
    if db.get(Club, club_id) is None:
        raise NotFound("Club not found")
    allocated = active_total(db, club_id)
    owner_count = db.execute(
        sa.select(sa.func.count()).select_from(ClubOwner).where(
            ClubOwner.club_id == club_id, ClubOwner.status == "active"
        )
    ).scalar_one()
    return OwnershipSummaryOut(
        club_id=club_id,
        owner_count=int(owner_count),
        allocated_percentage=allocated,
        available_percentage=FULL_OWNERSHIP - allocated,
    )


def list_user_stakes(db: Session, user_id: int) -> list[UserStakeOut]:
    if db.get(User, user_id) is None:
        raise NotFound("User not found")
    rows = db.execute(
        sa.select(
            ClubOwner.id.label("stake_id"),
            ClubOwner.club_id,
            Club.name.label("club_name"),
            ClubOwner.ownership_type,
            ClubOwner.ownership_percentage,
            ClubOwner.start_date,
        )
        .join(Club, Club.id == ClubOwner.club_id)
        .where(ClubOwner.user_id == user_id, ClubOwner.status == "active")
        .order_by(ClubOwner.ownership_percentage.desc(), ClubOwner.id.asc())
    ).mappings().all()
    return [UserStakeOut(**r) for r in rows]


def clubs_over_allocated(db: Session) -> list[dict]:
    """Clubs whose active stakes sum above 100, e.g. rows loaded before the guard existed."""
    total = sa.func.sum(ClubOwner.ownership_percentage)
    rows = db.execute(
        sa.select(ClubOwner.club_id, total.label("allocated"))
        .where(ClubOwner.status == "active")
        .group_by(ClubOwner.club_id)
        .having(total > FULL_OWNERSHIP)
        .order_by(ClubOwner.club_id)
    ).mappings().all()
    return [{"club_id": r["club_id"], "allocated": Decimal(str(r["allocated"])).quantize(_CENT)} for r in rows]
