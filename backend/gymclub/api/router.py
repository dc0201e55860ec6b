from fastapi import APIRouter

from gymclub.modules.auth import api as auth
from gymclub.modules.clubs import api as clubs
from gymclub.modules.gyms import api as gyms
from gymclub.modules.permissions import api as permissions
from gymclub.modules.roles import api as roles
from gymclub.modules.users import api as users

router = APIRouter()
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(users.router, prefix="/users", tags=["users"])
router.include_router(permissions.router, prefix="/permissions", tags=["permissions"])
router.include_router(roles.router, prefix="/roles", tags=["roles"])
router.include_router(clubs.router, prefix="/clubs", tags=["clubs"])
router.include_router(gyms.router, prefix="/gyms", tags=["gyms"])
