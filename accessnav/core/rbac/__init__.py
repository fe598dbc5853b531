"""RBAC (Role-Based Access Control) module for AccessNav.

This module defines the permission catalog, the default roles, the services
that manage roles and assignments, permission resolution, and the request
gates built on top of it.
"""

from .permissions import Resource, Action, PERMISSION_DEFINITIONS, DEFAULT_PERMISSIONS
from .roles import SYSTEM_ROLES, DEFAULT_ROLE_PERMISSIONS, ALL_PERMISSIONS
from .catalog import PermissionCatalog
from .registry import RoleRegistry
from .assignments import AssignmentStore
from .resolver import PermissionResolver
from .bootstrap import initialize_rbac
from .checker import (
    RequirePermission,
    RequireAnyPermission,
    RequireRole,
    RequireOwnership,
    RequireSelfOrPermission,
    load_user_permissions,
    model_loader,
    owned_by,
)

__all__ = [
    "Resource",
    "Action",
    "PERMISSION_DEFINITIONS",
    "DEFAULT_PERMISSIONS",
    "SYSTEM_ROLES",
    "DEFAULT_ROLE_PERMISSIONS",
    "ALL_PERMISSIONS",
    "PermissionCatalog",
    "RoleRegistry",
    "AssignmentStore",
    "PermissionResolver",
    "initialize_rbac",
    "RequirePermission",
    "RequireAnyPermission",
    "RequireRole",
    "RequireOwnership",
    "RequireSelfOrPermission",
    "load_user_permissions",
    "model_loader",
    "owned_by",
]
