"""Database models for AccessNav."""

from accessnav.db.models.user import User, LegacyRole
from accessnav.db.models.permission import Permission
from accessnav.db.models.role import Role, RolePermission
from accessnav.db.models.role_assignment import UserRole
from accessnav.db.models.content import (
    ContentStatus,
    Route,
    PersonalizedMessage,
    TouristRegistration,
)

__all__ = [
    "User",
    "LegacyRole",
    "Permission",
    "Role",
    "RolePermission",
    "UserRole",
    "ContentStatus",
    "Route",
    "PersonalizedMessage",
    "TouristRegistration",
]
