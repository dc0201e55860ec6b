from datetime import date, datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from gymclub.schemas.common import not_null

ClubStatus = Literal["active", "inactive"]
OwnershipType = Literal["owner", "co_owner", "partner", "investor"]
PercentageSource = Literal["specified", "default"]


class ClubCreateIn(BaseModel):
    name: str = Field(..., min_length=2, max_length=200)
    phone: str = Field(..., min_length=3, max_length=32)
    email: str = Field(..., min_length=5, max_length=254)
    address: str | None = Field(default=None, max_length=500)
    description: str | None = Field(default=None, max_length=2000)
    logo: str | None = None
    status: ClubStatus = "active"


class ClubUpdateIn(BaseModel):
    name: str | None = Field(default=None, min_length=2, max_length=200)
    phone: str | None = Field(default=None, min_length=3, max_length=32)
    email: str | None = Field(default=None, min_length=5, max_length=254)
    address: str | None = Field(default=None, max_length=500)
    description: str | None = Field(default=None, max_length=2000)
    logo: str | None = None
    status: ClubStatus | None = None

    @field_validator("name", "phone", "email", "status")
    @classmethod
    def _reject_null(cls, value):
        return not_null(value)


class ClubStatusIn(BaseModel):
    status: ClubStatus


class ClubOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    phone: str
    email: str
    address: str | None = None
    description: str | None = None
    logo: str | None = None
    status: ClubStatus
    created_at: datetime | None = None
    updated_at: datetime | None = None


class OwnerCreateIn(BaseModel):
    user_id: int
    # None means "not specified": the ledger applies its defaults and reports it.
    ownership_type: OwnershipType | None = None
    ownership_percentage: Decimal | None = Field(default=None, gt=0, le=100, decimal_places=2)
    start_date: date | None = None


class OwnerUpdateIn(BaseModel):
    ownership_type: OwnershipType | None = None
    ownership_percentage: Decimal | None = Field(default=None, gt=0, le=100, decimal_places=2)


class OwnerOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    club_id: int
    user_id: int
    ownership_type: OwnershipType
    ownership_percentage: Decimal
    start_date: date
    end_date: date | None = None
    status: Literal["active", "inactive"]
    created_at: datetime | None = None
    updated_at: datetime | None = None
    user_name: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    # only add_owner reports it; update and remove leave it None
    percentage_source: PercentageSource | None = None


class OwnershipSummaryOut(BaseModel):
    club_id: int
    owner_count: int
    allocated_percentage: Decimal
    available_percentage: Decimal


class UserStakeOut(BaseModel):
    stake_id: int
    club_id: int
    club_name: str
    ownership_type: OwnershipType
    ownership_percentage: Decimal
    start_date: date
