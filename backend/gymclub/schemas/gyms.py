from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from gymclub.schemas.common import not_null

GymStatus = Literal["active", "inactive", "maintenance"]
RelationshipType = Literal["ownership", "partnership", "franchise"]


class GymFields(BaseModel):
    phone: str | None = Field(default=None, max_length=32)
    email: str | None = Field(default=None, max_length=254)
    address: str | None = Field(default=None, max_length=500)
    city: str | None = Field(default=None, max_length=100)
    address_line_1: str | None = Field(default=None, max_length=200)
    address_line_2: str | None = Field(default=None, max_length=200)
    postal_code: str | None = Field(default=None, max_length=20)
    timezone: str | None = Field(default=None, max_length=64)
    description: str | None = Field(default=None, max_length=2000)
    website: str | None = Field(default=None, max_length=300)
    capacity: int | None = Field(default=None, ge=0)
    area_sqm: Decimal | None = Field(default=None, ge=0)
    latitude: Decimal | None = Field(default=None, ge=-90, le=90)
    longitude: Decimal | None = Field(default=None, ge=-180, le=180)


class GymCreateIn(GymFields):
    club_id: int | None = None
    name: str = Field(..., min_length=2, max_length=200)
    is_public: bool = True
    status: GymStatus = "active"


class GymUpdateIn(GymFields):
    name: str | None = Field(default=None, min_length=2, max_length=200)
    is_public: bool | None = None
    status: GymStatus | None = None

    @field_validator("name", "is_public", "status")
    @classmethod
    def _reject_null(cls, value):
        return not_null(value)


class GymStatusIn(BaseModel):
    status: GymStatus


class GymOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    phone: str | None = None
    email: str | None = None
    address: str | None = None
    city: str | None = None
    address_line_1: str | None = None
    address_line_2: str | None = None
    postal_code: str | None = None
    timezone: str | None = None
    is_public: bool = True
    description: str | None = None
    logo: str | None = None
    website: str | None = None
    capacity: int | None = None
    area_sqm: Decimal | None = None
    latitude: Decimal | None = None
    longitude: Decimal | None = None
    status: GymStatus
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ClubLinkIn(BaseModel):
    club_id: int
    relationship_type: RelationshipType


class GymLinkIn(BaseModel):
    gym_id: int
    relationship_type: RelationshipType


class RelationshipTypeIn(BaseModel):
    relationship_type: RelationshipType


class EdgeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    club_id: int
    gym_id: int
    relationship_type: RelationshipType
    status: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ClubGymOut(BaseModel):
    edge_id: int
    gym_id: int
    gym_name: str
    city: str | None = None
    gym_status: GymStatus
    relationship_type: RelationshipType
    linked_at: datetime | None = None


class GymClubOut(BaseModel):
    edge_id: int
    club_id: int
    club_name: str
    club_status: str
    relationship_type: RelationshipType
    linked_at: datetime | None = None


class GymDetailOut(GymOut):
    clubs: list[GymClubOut] = Field(default_factory=list)
