"""RBAC bootstrap.

Brings the database in line with the default policy: system roles, the
permission catalog, and each system role's grants. Running it again is
harmless; custom roles and user assignments are never touched.
"""

import logging
from typing import Any, Dict

from sqlalchemy.orm import Session

from .catalog import PermissionCatalog
from .permissions import DEFAULT_PERMISSIONS
from .registry import RoleRegistry
from .roles import SYSTEM_ROLES, resolve_role_permissions

logger = logging.getLogger(__name__)


def seed_system_roles(db: Session) -> Dict[str, Any]:
    """Find or create the system roles. Returns the roles by name."""
    registry = RoleRegistry(db)
    roles = {}
    for name, config in SYSTEM_ROLES.items():
        role, _ = registry.find_or_create_role(
            name,
            config["display_name"],
            config["description"],
            is_system=True,
        )
        roles[name] = role
    db.flush()
    return roles


def seed_permissions(db: Session) -> int:
    """Find or create every catalog permission. Returns how many exist."""
    catalog = PermissionCatalog(db)
    for definition in DEFAULT_PERMISSIONS:
        catalog.create_permission(
            definition.name,
            definition.display_name,
            definition.resource,
            definition.action,
            definition.description,
        )
    return len(DEFAULT_PERMISSIONS)


def sync_system_role_permissions(db: Session, roles: Dict[str, Any]) -> Dict[str, int]:
    """Replace each system role's grants with its default set."""
    registry = RoleRegistry(db)
    active_catalog = registry.catalog.active_permission_names()
    granted = {}
    for name, role in roles.items():
        names = resolve_role_permissions(name, active_catalog)
        registry.set_permissions(role, names)
        granted[name] = len(names)
        logger.debug("System role %s granted %d permissions", name, len(names))
    return granted


def initialize_rbac(db: Session) -> Dict[str, Any]:
    """
    Initialize the RBAC system with default roles and permissions.

    Runs all three steps in one transaction and commits it. On failure the
    transaction is rolled back and the error re-raised.

    Returns:
        Summary with the role count, permission count and grants per role
    """
    logger.info("Initializing RBAC system")
    try:
        roles = seed_system_roles(db)
        permission_count = seed_permissions(db)
        granted = sync_system_role_permissions(db, roles)
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("RBAC initialization failed")
        raise

    logger.info(
        "RBAC system initialized: %d roles, %d permissions",
        len(roles),
        permission_count,
    )
    return {
        "roles": len(roles),
        "permissions": permission_count,
        "grants": granted,
    }
