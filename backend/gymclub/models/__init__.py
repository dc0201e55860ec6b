from gymclub.models.user import User
from gymclub.models.permission import Permission, UserPermission
from gymclub.models.role import Role, RolePermission, UserRole
from gymclub.models.club import Club, ClubOwner
from gymclub.models.gym import Gym, ClubGym
from gymclub.models.audit_log import AuditLog
