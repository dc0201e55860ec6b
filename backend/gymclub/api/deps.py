from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.orm import Session

from gymclub.core.security import decode_token
from gymclub.db.session import get_db
from gymclub.models.user import User
from gymclub.services.authorization import has_permission, is_superadmin

bearer = HTTPBearer(auto_error=False)


def get_current_user(
    creds: HTTPAuthorizationCredentials | None = Depends(bearer),
    db: Session = Depends(get_db),
) -> User:
    if creds is None:
        raise HTTPException(status_code=401, detail="Missing bearer token")
    try:
        payload = decode_token(creds.credentials)
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid token")
    if payload.get("type") != "access":
        raise HTTPException(status_code=401, detail="Invalid token type")
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid token subject")
    user = db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=401, detail="User not found")
    if user.status != "active":
        raise HTTPException(status_code=403, detail="User is blocked")
    return user


def require_permission(key: str):
    """Dependency factory: the caller must hold ``key`` among their effective permissions."""

    def checker(current: User = Depends(get_current_user), db: Session = Depends(get_db)) -> User:
        if is_superadmin(db, current.id) or has_permission(db, current.id, key):
            return current
        raise HTTPException(status_code=403, detail=f"Missing permission: {key}")

    return checker
