from pydantic import BaseModel, Field, field_validator

from gymclub.core.security import BCRYPT_MAX_BYTES
from gymclub.schemas.users import UserOut


class RegisterIn(BaseModel):
    user_name: str = Field(..., min_length=3, max_length=50, pattern=r"^[a-zA-Z0-9._-]+$")
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=5, max_length=254)
    phone: str | None = Field(default=None, max_length=32)
    password: str = Field(..., min_length=8, max_length=BCRYPT_MAX_BYTES)

    @field_validator("password")
    @classmethod
    def _password_fits_bcrypt(cls, value: str) -> str:
        if len(value.encode("utf-8")) > BCRYPT_MAX_BYTES:
            raise ValueError(f"must be at most {BCRYPT_MAX_BYTES} bytes when UTF-8 encoded")
        return value


class LoginIn(BaseModel):
    identifier: str = Field(..., min_length=1, max_length=254)  # user_name, email or phone
    password: str = Field(..., min_length=1, max_length=128)


class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserOut
