from decimal import Decimal

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column
from gymclub.db.base import Base

ACTIVE_ONLY = sa.text("status = 'active'")

class Club(Base):
    __tablename__ = "clubs"

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(sa.Text, nullable=False)
    phone: Mapped[str] = mapped_column(sa.Text, nullable=False)
    email: Mapped[str] = mapped_column(sa.Text, nullable=False)
    address: Mapped[str | None] = mapped_column(sa.Text, nullable=True)
    description: Mapped[str | None] = mapped_column(sa.Text, nullable=True)
    logo: Mapped[str | None] = mapped_column(sa.Text, nullable=True)
    status: Mapped[str] = mapped_column(sa.Text, nullable=False, server_default="active")
    created_at: Mapped[sa.DateTime] = mapped_column(sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now())
    updated_at: Mapped[sa.DateTime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now(), onupdate=sa.func.now()
    )

    __table_args__ = (
        sa.CheckConstraint("status in ('active','inactive')", name="ck_club_status"),
    )


class ClubOwner(Base):
    """Ownership stake of a user in a club. Removed stakes stay as inactive history rows."""

    __tablename__ = "clubs_owners"

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    club_id: Mapped[int] = mapped_column(sa.Integer, sa.ForeignKey("clubs.id", ondelete="CASCADE"), nullable=False)
    user_id: Mapped[int] = mapped_column(sa.Integer, sa.ForeignKey("users.id", ondelete="RESTRICT"), nullable=False)
    ownership_type: Mapped[str] = mapped_column(sa.Text, nullable=False, server_default="owner")
    ownership_percentage: Mapped[Decimal] = mapped_column(sa.Numeric(5, 2), nullable=False)
    start_date: Mapped[sa.Date] = mapped_column(sa.Date, nullable=False)
    end_date: Mapped[sa.Date | None] = mapped_column(sa.Date, nullable=True)
    status: Mapped[str] = mapped_column(sa.Text, nullable=False, server_default="active")
    created_at: Mapped[sa.DateTime] = mapped_column(sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now())
    updated_at: Mapped[sa.DateTime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now(), onupdate=sa.func.now()
    )

    __table_args__ = (
        sa.CheckConstraint(
            "ownership_type in ('owner','co_owner','partner','investor')", name="ck_clubs_owners_type"
        ),
        sa.CheckConstraint(
            "ownership_percentage > 0 AND ownership_percentage <= 100", name="ck_clubs_owners_percentage"
        ),
        sa.CheckConstraint("status in ('active','inactive')", name="ck_clubs_owners_status"),
        sa.Index(
            "uq_clubs_owners_active_club_user",
            "club_id",
            "user_id",
            unique=True,
            postgresql_where=ACTIVE_ONLY,
            sqlite_where=ACTIVE_ONLY,
        ),
        sa.Index("ix_clubs_owners_user_status", "user_id", "status"),
    )
