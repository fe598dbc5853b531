"""Role registry service.

Manages roles and their permission grants. System roles are protected:
the administrative operations here refuse to edit or delete them, and only
the bootstrap replaces their grants through ``set_permissions``.
"""

import logging
from typing import Iterable, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.orm import Session

from accessnav.core.exceptions import ConflictError, InvalidOperationError, NotFoundError
from accessnav.db.base import utcnow
from accessnav.db.models import Role, RolePermission

from .assignments import AssignmentStore
from .catalog import PermissionCatalog

logger = logging.getLogger(__name__)


class RoleRegistry:
    """
    High-level service for managing roles.

    Handles:
    - Creating, updating and deleting custom roles
    - Replacing a role's permission grants atomically
    - Listing and looking up roles
    """

    def __init__(self, db: Session):
        self.db = db
        self.catalog = PermissionCatalog(db)

    # -- Lookup -------------------------------------------------------------

    def get_role(self, role_id: UUID) -> Role:
        role = self.db.get(Role, role_id)
        if not role:
            raise NotFoundError("Role not found")
        return role

    def get_role_by_name(self, name: str, *, active_only: bool = False) -> Optional[Role]:
        query = self.db.query(Role).filter(Role.name == name)
        if active_only:
            query = query.filter(Role.is_active.is_(True))
        return query.first()

    def list_roles(
        self,
        *,
        search: Optional[str] = None,
        is_active: Optional[bool] = None,
        page: Optional[int] = None,
        per_page: Optional[int] = None,
    ) -> Tuple[List[Role], int]:
        """
        List roles, newest first.

        Args:
            search: Case-insensitive substring of the name or display name
            is_active: Restrict to active or inactive roles
            page: 1-based page number (with ``per_page``)
            per_page: Page size

        Returns:
            Tuple of (roles, total matching count)
        """
        query = self.db.query(Role)
        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(Role.name.ilike(pattern), Role.display_name.ilike(pattern))
            )
        if is_active is not None:
            query = query.filter(Role.is_active.is_(is_active))

        total = query.count()
        query = query.order_by(Role.created_at.desc(), Role.name.asc())
        if page is not None and per_page is not None:
            query = query.offset((page - 1) * per_page).limit(per_page)
        return query.all(), total

    # -- Mutation -----------------------------------------------------------

    def find_or_create_role(
        self,
        name: str,
        display_name: str,
        description: Optional[str] = None,
        *,
        is_system: bool = False,
    ) -> Tuple[Role, bool]:
        """
        Return the role called ``name``, creating it if needed.

        Returns:
            Tuple of (role, created)
        """
        role = self.get_role_by_name(name)
        if role:
            return role, False

        role = Role(
            name=name,
            display_name=display_name,
            description=description,
            is_system=is_system,
            is_active=True,
        )
        self.db.add(role)
        self.db.flush()
        logger.info("Role created: %s%s", name, " (system)" if is_system else "")
        return role, True

    def create_role(
        self,
        name: str,
        display_name: str,
        description: Optional[str] = None,
        permission_names: Iterable[str] = (),
        *,
        created_by: Optional[UUID] = None,
    ) -> Role:
        """
        Create a new custom role.

        Raises:
            ConflictError: If a role with this name already exists
            NotFoundError: If any permission is unknown or inactive
        """
        if self.get_role_by_name(name):
            raise ConflictError("Role with this name already exists")

        permission_names = list(permission_names)
        # Resolve before inserting so a bad name leaves nothing behind
        self.catalog.get_active_permissions(permission_names)

        role, _ = self.find_or_create_role(name, display_name, description)
        if permission_names:
            self.set_permissions(role, permission_names, granted_by=created_by)
        return role

    def update_role(
        self,
        role_id: UUID,
        *,
        name: Optional[str] = None,
        display_name: Optional[str] = None,
        description: Optional[str] = None,
        is_active: Optional[bool] = None,
        permission_names: Optional[Iterable[str]] = None,
        updated_by: Optional[UUID] = None,
    ) -> Role:
        """
        Update a custom role. System roles cannot be modified.

        ``permission_names``, when given, replaces the whole grant set.

        Raises:
            NotFoundError: If the role or a permission does not exist
            InvalidOperationError: If the role is a system role
            ConflictError: If renaming to a name already in use
        """
        role = self.get_role(role_id)
        if role.is_system:
            raise InvalidOperationError("Cannot modify system roles")

        if name is not None and name != role.name:
            if self.get_role_by_name(name):
                raise ConflictError("Role with this name already exists")
            role.name = name
        if display_name is not None:
            role.display_name = display_name
        if description is not None:
            role.description = description
        if is_active is not None:
            role.is_active = is_active

        if permission_names is not None:
            self.set_permissions(role, permission_names, granted_by=updated_by)

        self.db.flush()
        logger.info("Role updated: %s", role.name)
        return role

    def delete_role(self, role_id: UUID) -> None:
        """
        Delete a custom role that nobody holds.

        Raises:
            NotFoundError: If the role does not exist
            InvalidOperationError: If the role is a system role
            ConflictError: If any active assignment references the role
        """
        role = self.get_role(role_id)
        if role.is_system:
            raise InvalidOperationError("Cannot delete system roles")

        in_use = AssignmentStore(self.db).count_active_assignments(role.id)
        if in_use > 0:
            raise ConflictError(
                f"Cannot delete role: {in_use} users are assigned to this role",
                details={"active_assignments": in_use},
            )

        self.db.delete(role)
        self.db.flush()
        logger.info("Role deleted: %s", role.name)

    def set_permissions(
        self,
        role: Role,
        permission_names: Iterable[str],
        *,
        granted_by: Optional[UUID] = None,
    ) -> Role:
        """
        Replace the role's grants with exactly ``permission_names``.

        All existing grants are deleted and the new set inserted inside the
        caller's transaction, so readers never see a merge of old and new.

        Raises:
            NotFoundError: If any permission is unknown or inactive
        """
        permissions = self.catalog.get_active_permissions(permission_names)

        # delete-orphan removes the old rows; flush before re-inserting the same keys
        role.grants.clear()
        self.db.flush()

        now = utcnow()
        role.grants.extend(
            RolePermission(permission=permission, granted_by=granted_by, granted_at=now)
            for permission in permissions
        )
        self.db.flush()
        self.db.expire(role, ["permissions"])
        return role
