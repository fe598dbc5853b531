"""Default role definitions for AccessNav.

Defines the 6 system roles and the permission set each one receives when
the RBAC system is initialized:
1. Super Administrator - Every active permission
2. Administrator - User, content and log management
3. Tour Guide - Authoring routes, voice guides and messages
4. Content Moderator - Reviewing and editing content
5. Tourist - Using routes and registering visits
6. Regular User - Basic read access

The table is plain data. ``resolve_role_permissions`` turns one entry into
a concrete list of names and is the only code that reads it.
"""

from typing import Dict, Iterable, List, Union


# Marker for "every active permission in the catalog"
ALL_PERMISSIONS = "__all__"

SUPER_ADMIN = "super_admin"
ADMIN = "admin"
GUIDE = "guide"
MODERATOR = "moderator"
TOURIST = "tourist"
USER = "user"


SYSTEM_ROLES: Dict[str, dict] = {
    SUPER_ADMIN: {
        "display_name": "Super Administrator",
        "description": "Full system access with all permissions",
    },
    ADMIN: {
        "display_name": "Administrator",
        "description": "System administrator with management permissions",
    },
    GUIDE: {
        "display_name": "Tour Guide",
        "description": "Can create and manage routes and voice guides",
    },
    MODERATOR: {
        "display_name": "Content Moderator",
        "description": "Can moderate content and manage user reports",
    },
    TOURIST: {
        "display_name": "Tourist",
        "description": "Tourist with basic access to view and use routes",
    },
    USER: {
        "display_name": "Regular User",
        "description": "Standard user with basic permissions",
    },
}


DEFAULT_ROLE_PERMISSIONS: Dict[str, Union[str, List[str]]] = {
    SUPER_ADMIN: ALL_PERMISSIONS,
    ADMIN: [
        "user.read", "user.update", "user.manage",
        "route.read", "route.update", "route.manage",
        "message.read", "message.update", "message.manage",
        "tourist.read", "tourist.update", "tourist.manage",
        "voice_guide.read", "voice_guide.update", "voice_guide.manage",
        "system.logs", "system.analytics",
        "role.read", "role.assign",
    ],
    GUIDE: [
        "route.create", "route.read", "route.update", "route.delete",
        "voice_guide.create", "voice_guide.read", "voice_guide.update", "voice_guide.delete",
        "message.create", "message.read", "message.update", "message.delete",
        "tourist.read",
    ],
    MODERATOR: [
        "route.read", "route.update",
        "message.read", "message.update", "message.delete",
        "tourist.read", "tourist.update",
        "voice_guide.read", "voice_guide.update",
        "user.read",
    ],
    TOURIST: [
        "route.read",
        "voice_guide.read",
        "tourist.create", "tourist.read", "tourist.update",
        "message.read",
    ],
    USER: [
        "route.read",
        "voice_guide.read",
        "message.read",
    ],
}

# Roles allowed to (re)initialize RBAC through the API
BOOTSTRAP_ROLES = (SUPER_ADMIN, ADMIN)


def resolve_role_permissions(role_name: str, active_catalog: Iterable[str]) -> List[str]:
    """
    Compute the permission names a system role should hold.

    Args:
        role_name: System role name
        active_catalog: Names of every active permission

    Returns:
        Sorted permission names, restricted to the active catalog

    Raises:
        ValueError: If ``role_name`` is not a system role
    """
    if role_name not in DEFAULT_ROLE_PERMISSIONS:
        raise ValueError(f"Unknown system role: {role_name}")

    catalog = set(active_catalog)
    wanted = DEFAULT_ROLE_PERMISSIONS[role_name]
    if wanted == ALL_PERMISSIONS:
        return sorted(catalog)
    return sorted(name for name in wanted if name in catalog)


def get_all_system_roles() -> Dict[str, dict]:
    """Get all system role definitions."""
    return SYSTEM_ROLES.copy()
