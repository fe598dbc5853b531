"""Permission catalog service.

Persists permissions and answers catalog queries. Permissions are created
find-or-create by name and retired through their active flag; there is no
delete.
"""

import logging
from typing import Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from accessnav.core.exceptions import NotFoundError, ValidationError
from accessnav.db.models import Permission

from .permissions import parse_permission_name

logger = logging.getLogger(__name__)


class PermissionCatalog:
    """Create, list and retire permissions."""

    def __init__(self, db: Session):
        self.db = db

    def create_permission(
        self,
        name: str,
        display_name: str,
        resource: str,
        action: str,
        description: Optional[str] = None,
    ) -> Permission:
        """
        Find or create a permission by name.

        An existing permission is returned unchanged, whatever the other
        arguments say.

        Raises:
            ValidationError: If ``name`` is not ``<resource>.<action>``
        """
        try:
            parse_permission_name(name)
        except ValueError as e:
            raise ValidationError(str(e)) from e

        permission = self.db.query(Permission).filter(Permission.name == name).first()
        if permission:
            return permission

        permission = Permission(
            name=name,
            display_name=display_name,
            resource=resource,
            action=action,
            description=description or f"Permission to {action} {resource}",
            is_active=True,
        )
        self.db.add(permission)
        self.db.flush()
        logger.info("Permission created: %s", name)
        return permission

    def get_permission(self, name: str) -> Permission:
        permission = self.db.query(Permission).filter(Permission.name == name).first()
        if not permission:
            raise NotFoundError(f"Permission '{name}' not found")
        return permission

    def list_permissions(
        self,
        *,
        resource: Optional[str] = None,
        action: Optional[str] = None,
        page: Optional[int] = None,
        per_page: Optional[int] = None,
    ) -> Tuple[List[Permission], int]:
        """
        List active permissions ordered by (resource, action).

        Returns:
            Tuple of (permissions, total matching count)
        """
        query = self.db.query(Permission).filter(Permission.is_active.is_(True))
        if resource:
            query = query.filter(Permission.resource == resource)
        if action:
            query = query.filter(Permission.action == action)

        total = query.count()
        query = query.order_by(Permission.resource.asc(), Permission.action.asc())
        if page is not None and per_page is not None:
            query = query.offset((page - 1) * per_page).limit(per_page)
        return query.all(), total

    def active_permission_names(self) -> List[str]:
        rows = (
            self.db.query(Permission.name)
            .filter(Permission.is_active.is_(True))
            .order_by(Permission.name)
            .all()
        )
        return [name for (name,) in rows]

    def get_active_permissions(self, names: Iterable[str]) -> List[Permission]:
        """
        Resolve permission names to active permission rows.

        Raises:
            NotFoundError: Listing every name that is unknown or inactive
        """
        wanted = list(dict.fromkeys(names))
        if not wanted:
            return []

        found = (
            self.db.query(Permission)
            .filter(Permission.name.in_(wanted), Permission.is_active.is_(True))
            .all()
        )
        found_names = {p.name for p in found}
        missing = [n for n in wanted if n not in found_names]
        if missing:
            raise NotFoundError(
                f"Unknown or inactive permissions: {', '.join(missing)}",
                details={"permissions": missing},
            )
        return found

    def set_permission_active(self, name: str, is_active: bool) -> Permission:
        """Retire or restore a permission. Takes effect on the next check."""
        permission = self.get_permission(name)
        if permission.is_active != is_active:
            permission.is_active = is_active
            self.db.flush()
            logger.info("Permission %s %s", name, "activated" if is_active else "deactivated")
        return permission
