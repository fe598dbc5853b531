"""Permission catalog for AccessNav RBAC.

Defines all resources, actions, and the default permission catalog.

Permission string format: "<resource>.<action>"
Examples:
  - route.create
  - voice_guide.read
  - role.assign
  - system.admin

The name prefix is the singular resource key; the ``resource`` tag stored
on each permission is the collection it protects (``route.read`` protects
``routes``).
"""

import re
from enum import Enum
from typing import NamedTuple, Optional


class Resource(str, Enum):
    """Resources that can be protected by permissions."""

    USERS = "users"
    ROUTES = "routes"
    MESSAGES = "messages"
    TOURIST = "tourist"
    VOICE_GUIDES = "voice_guides"
    SYSTEM = "system"
    ROLES = "roles"


class Action(str, Enum):
    """Actions that can be performed on resources."""

    # Standard CRUD actions
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    MANAGE = "manage"           # Act on every record, not only your own

    # Specialized actions
    ASSIGN = "assign"           # Assign roles to users
    ADMIN = "admin"             # Blanket administration
    LOGS = "logs"               # View system logs
    ANALYTICS = "analytics"     # View analytics


# Singular prefix used in permission names for each resource
RESOURCE_PREFIXES: dict[Resource, str] = {
    Resource.USERS: "user",
    Resource.ROUTES: "route",
    Resource.MESSAGES: "message",
    Resource.TOURIST: "tourist",
    Resource.VOICE_GUIDES: "voice_guide",
    Resource.SYSTEM: "system",
    Resource.ROLES: "role",
}

PERMISSION_NAME_PATTERN = re.compile(r"^[a-z][a-z0-9_]*\.[a-z][a-z0-9_]*$")


class PermissionDefinition(NamedTuple):
    """Catalog entry for a permission."""
    name: str
    display_name: str
    resource: str
    action: str
    description: Optional[str] = None


def parse_permission_name(name: str) -> tuple[str, str]:
    """Split ``"route.create"`` into ``("route", "create")``."""
    if not PERMISSION_NAME_PATTERN.match(name or ""):
        raise ValueError(f"Invalid permission format: {name!r}")
    prefix, action = name.split(".")
    return prefix, action


def is_valid_permission_name(name: str) -> bool:
    """Check if a string is a well-formed permission name."""
    try:
        parse_permission_name(name)
    except ValueError:
        return False
    return True


def _define(resource: Resource, action: Action, display_name: str) -> PermissionDefinition:
    return PermissionDefinition(
        name=f"{RESOURCE_PREFIXES[resource]}.{action.value}",
        display_name=display_name,
        resource=resource.value,
        action=action.value,
        description=f"Permission to {action.value} {resource.value}",
    )


def _crud(resource: Resource, plural: str) -> list[PermissionDefinition]:
    return [
        _define(resource, Action.CREATE, f"Create {plural}"),
        _define(resource, Action.READ, f"View {plural}"),
        _define(resource, Action.UPDATE, f"Update {plural}"),
        _define(resource, Action.DELETE, f"Delete {plural}"),
        _define(resource, Action.MANAGE, f"Manage All {plural}"),
    ]


DEFAULT_PERMISSIONS: list[PermissionDefinition] = [
    *_crud(Resource.USERS, "Users"),
    *_crud(Resource.ROUTES, "Routes"),
    *_crud(Resource.MESSAGES, "Messages"),
    *_crud(Resource.TOURIST, "Tourist Registrations"),
    *_crud(Resource.VOICE_GUIDES, "Voice Guides"),

    # System
    _define(Resource.SYSTEM, Action.ADMIN, "System Administration"),
    _define(Resource.SYSTEM, Action.LOGS, "View System Logs"),
    _define(Resource.SYSTEM, Action.ANALYTICS, "View Analytics"),

    # Role management
    _define(Resource.ROLES, Action.CREATE, "Create Roles"),
    _define(Resource.ROLES, Action.READ, "View Roles"),
    _define(Resource.ROLES, Action.UPDATE, "Update Roles"),
    _define(Resource.ROLES, Action.DELETE, "Delete Roles"),
    _define(Resource.ROLES, Action.ASSIGN, "Assign Roles to Users"),
]

# All catalog permissions as a dictionary: "resource.action" -> definition
PERMISSION_DEFINITIONS: dict[str, PermissionDefinition] = {
    perm.name: perm for perm in DEFAULT_PERMISSIONS
}


def get_permissions_for_resource(resource: Resource) -> list[str]:
    """Get the catalog permission names protecting a resource."""
    return [p.name for p in DEFAULT_PERMISSIONS if p.resource == resource.value]


def get_all_permissions() -> list[str]:
    """Get all catalog permission names."""
    return list(PERMISSION_DEFINITIONS.keys())
