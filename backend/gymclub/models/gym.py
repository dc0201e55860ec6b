from decimal import Decimal

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column
from gymclub.db.base import Base

class Gym(Base):
    __tablename__ = "gyms"

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(sa.Text, nullable=False)
    phone: Mapped[str | None] = mapped_column(sa.Text, nullable=True)
    email: Mapped[str | None] = mapped_column(sa.Text, nullable=True)
    address: Mapped[str | None] = mapped_column(sa.Text, nullable=True)
    city: Mapped[str | None] = mapped_column(sa.Text, nullable=True)
    address_line_1: Mapped[str | None] = mapped_column(sa.Text, nullable=True)
    address_line_2: Mapped[str | None] = mapped_column(sa.Text, nullable=True)
    postal_code: Mapped[str | None] = mapped_column(sa.Text, nullable=True)
    timezone: Mapped[str | None] = mapped_column(sa.Text, nullable=True)
    is_public: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, server_default=sa.true())
    description: Mapped[str | None] = mapped_column(sa.Text, nullable=True)
    logo: Mapped[str | None] = mapped_column(sa.Text, nullable=True)
    website: Mapped[str | None] = mapped_column(sa.Text, nullable=True)
    capacity: Mapped[int | None] = mapped_column(sa.Integer, nullable=True)
    area_sqm: Mapped[Decimal | None] = mapped_column(sa.Numeric(10, 2), nullable=True)
    latitude: Mapped[Decimal | None] = mapped_column(sa.Numeric(9, 6), nullable=True)
    longitude: Mapped[Decimal | None] = mapped_column(sa.Numeric(9, 6), nullable=True)
    status: Mapped[str] = mapped_column(sa.Text, nullable=False, server_default="active")
    created_at: Mapped[sa.DateTime] = mapped_column(sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now())
    updated_at: Mapped[sa.DateTime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now(), onupdate=sa.func.now()
    )

    __table_args__ = (
        sa.CheckConstraint("status in ('active','inactive','maintenance')", name="ck_gym_status"),
    )


class ClubGym(Base):
    __tablename__ = "clubs_gyms_map"

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    club_id: Mapped[int] = mapped_column(sa.Integer, sa.ForeignKey("clubs.id", ondelete="CASCADE"), nullable=False)
    gym_id: Mapped[int] = mapped_column(sa.Integer, sa.ForeignKey("gyms.id", ondelete="CASCADE"), nullable=False)
    relationship_type: Mapped[str] = mapped_column(sa.Text, nullable=False)
    status: Mapped[str] = mapped_column(sa.Text, nullable=False, server_default="active")
    created_at: Mapped[sa.DateTime] = mapped_column(sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now())
    updated_at: Mapped[sa.DateTime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now(), onupdate=sa.func.now()
    )

    __table_args__ = (
        sa.UniqueConstraint("club_id", "gym_id", name="uq_clubs_gyms_pair"),
        sa.CheckConstraint(
            "relationship_type in ('ownership','partnership','franchise')", name="ck_clubs_gyms_type"
        ),
        sa.CheckConstraint("status in ('active','inactive')", name="ck_clubs_gyms_status"),
        sa.Index("ix_clubs_gyms_gym", "gym_id"),
    )
