from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from gymclub.api.deps import get_current_user
from gymclub.core.security import create_access_token
from gymclub.db.session import get_db
from gymclub.schemas.auth import LoginIn, RegisterIn, TokenOut
from gymclub.schemas.common import ApiResponse, ok
from gymclub.schemas.users import EffectivePermissionsOut, UserOut
from gymclub.services.authorization import effective_permissions
from gymclub.services.users import authenticate, register_user

router = APIRouter()


def _token_out(user) -> TokenOut:
    return TokenOut(access_token=create_access_token(str(user.id)), user=UserOut.model_validate(user))


@router.post("/register", response_model=ApiResponse[TokenOut], status_code=201)
def register(payload: RegisterIn, db: Session = Depends(get_db)):
    user = register_user(db, payload)
    return ok("User registered", _token_out(user))


@router.post("/login", response_model=ApiResponse[TokenOut])
def login(payload: LoginIn, db: Session = Depends(get_db)):
    user = authenticate(db, payload.identifier, payload.password)
    if user is None:
        raise HTTPException(401, "Invalid credentials")
    if user.status != "active":
        raise HTTPException(403, "User is blocked")
    return ok("Login successful", _token_out(user))


@router.get("/me", response_model=ApiResponse[UserOut])
def me(current=Depends(get_current_user)):
    return ok("Current user", UserOut.model_validate(current))


@router.get("/me/permissions", response_model=ApiResponse[EffectivePermissionsOut])
def my_permissions(current=Depends(get_current_user), db: Session = Depends(get_db)):
    return ok("Effective permissions", effective_permissions(db, current.id))
