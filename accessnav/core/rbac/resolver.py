"""Permission resolution.

Computes a user's effective permission set straight from storage on every
call. Nothing is cached, so a revoked or expired assignment stops counting
on the very next check.
"""

import logging
from datetime import datetime
from typing import Optional, Set
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from accessnav.db.base import utcnow
from accessnav.db.models import Permission, Role, RolePermission, UserRole

logger = logging.getLogger(__name__)


class PermissionResolver:
    """
    Answers "what may this user do?".

    A permission is effective when it is granted to an active role that the
    user holds through an active, unexpired assignment, and the permission
    itself is active. Every one of those filters lives in a single query.

    Both lookups fail closed: a storage error is logged and treated as "no
    permissions". Callers that need to tell a failure from a denial pass
    ``fail_closed=False`` and handle ``SQLAlchemyError`` themselves.
    """

    def __init__(self, db: Session):
        self.db = db

    def _granted(self, user_id: UUID, now: datetime):
        return (
            self.db.query(Permission.name)
            .join(RolePermission, RolePermission.permission_id == Permission.id)
            .join(Role, Role.id == RolePermission.role_id)
            .join(UserRole, UserRole.role_id == Role.id)
            .filter(
                UserRole.user_id == user_id,
                UserRole.is_active.is_(True),
                or_(UserRole.expires_at.is_(None), UserRole.expires_at > now),
                Role.is_active.is_(True),
                Permission.is_active.is_(True),
            )
        )

    def get_effective_permissions(
        self,
        user_id: Optional[UUID],
        *,
        fail_closed: bool = True,
        now: Optional[datetime] = None,
    ) -> Set[str]:
        """Return the set of permission names the user currently holds."""
        if user_id is None:
            return set()
        try:
            rows = self._granted(user_id, now or utcnow()).distinct().all()
        except SQLAlchemyError:
            if not fail_closed:
                raise
            logger.exception("Error resolving permissions for user %s", user_id)
            return set()
        return {name for (name,) in rows}

    def has_permission(
        self,
        user_id: Optional[UUID],
        permission_name: str,
        *,
        fail_closed: bool = True,
        now: Optional[datetime] = None,
    ) -> bool:
        """Check a single permission without materializing the full set."""
        if user_id is None:
            return False
        try:
            query = self._granted(user_id, now or utcnow()).filter(
                Permission.name == permission_name
            )
            return bool(self.db.query(query.exists()).scalar())
        except SQLAlchemyError:
            if not fail_closed:
                raise
            logger.exception(
                "Error checking permission %s for user %s", permission_name, user_id
            )
            return False
