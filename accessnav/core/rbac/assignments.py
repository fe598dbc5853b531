"""Role assignment store.

Assigns roles to users and removes them. Removal only clears the active
flag; re-assigning reactivates the same row so its id and history survive.
"""

import logging
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from accessnav.core.exceptions import ConflictError, NotFoundError
from accessnav.db.base import as_naive_utc, utcnow
from accessnav.db.models import Role, User, UserRole

logger = logging.getLogger(__name__)


class AssignmentStore:
    """Create, reactivate, deactivate and list role assignments."""

    def __init__(self, db: Session):
        self.db = db

    def _active_role(self, role_name: str) -> Role:
        role = (
            self.db.query(Role)
            .filter(Role.name == role_name, Role.is_active.is_(True))
            .first()
        )
        if not role:
            raise NotFoundError("Role not found or inactive")
        return role

    def _assignment(self, user_id: UUID, role_id: UUID) -> Optional[UserRole]:
        return (
            self.db.query(UserRole)
            .filter(UserRole.user_id == user_id, UserRole.role_id == role_id)
            .first()
        )

    def assign_role(
        self,
        user_id: UUID,
        role_name: str,
        assigned_by: Optional[UUID] = None,
        expires_at: Optional[datetime] = None,
    ) -> UserRole:
        """
        Give ``role_name`` to a user.

        An inactive assignment of the same role is reactivated in place with
        fresh ``assigned_by``, ``assigned_at`` and ``expires_at``. An aware
        ``expires_at`` is stored as naive UTC.

        Raises:
            NotFoundError: If the user does not exist, or the role does not
                exist or is inactive
            ConflictError: If the user already holds the role
        """
        if self.db.get(User, user_id) is None:
            raise NotFoundError("User not found")
        role = self._active_role(role_name)
        expires_at = as_naive_utc(expires_at)

        assignment = self._assignment(user_id, role.id)

        if assignment is not None:
            if assignment.is_active:
                raise ConflictError("User already has this role")
            assignment.is_active = True
            assignment.assigned_by = assigned_by
            assignment.assigned_at = utcnow()
            assignment.expires_at = expires_at
            self.db.flush()
            logger.info("Role %s reactivated for user %s", role_name, user_id)
            return assignment

        assignment = UserRole(
            user_id=user_id,
            role_id=role.id,
            assigned_by=assigned_by,
            assigned_at=utcnow(),
            expires_at=expires_at,
            is_active=True,
        )
        try:
            with self.db.begin_nested():
                self.db.add(assignment)
        except IntegrityError as e:
            # Only the savepoint is rolled back. A concurrent insert of the
            # same pair is a conflict; any other violation propagates.
            if self._assignment(user_id, role.id) is None:
                raise
            raise ConflictError("User already has this role") from e

        logger.info("Role %s assigned to user %s", role_name, user_id)
        return assignment

    def remove_role(self, user_id: UUID, role_name: str) -> UserRole:
        """
        Take ``role_name`` away from a user.

        Raises:
            NotFoundError: If the role is unknown or the user does not hold it
        """
        role = self.db.query(Role).filter(Role.name == role_name).first()
        if not role:
            raise NotFoundError("Role not found")

        assignment = (
            self.db.query(UserRole)
            .filter(
                UserRole.user_id == user_id,
                UserRole.role_id == role.id,
                UserRole.is_active.is_(True),
            )
            .first()
        )
        if not assignment:
            raise NotFoundError("User does not have this role")

        assignment.is_active = False
        self.db.flush()
        logger.info("Role %s removed from user %s", role_name, user_id)
        return assignment

    def _effective_query(self, user_id: UUID, now: Optional[datetime] = None):
        now = now or utcnow()
        return (
            self.db.query(UserRole)
            .join(Role, UserRole.role_id == Role.id)
            .filter(
                UserRole.user_id == user_id,
                UserRole.is_active.is_(True),
                or_(UserRole.expires_at.is_(None), UserRole.expires_at > now),
                Role.is_active.is_(True),
            )
        )

    def list_active_assignments(self, user_id: UUID) -> List[UserRole]:
        """Assignments that currently confer permissions, with their roles loaded."""
        return (
            self._effective_query(user_id)
            .options(joinedload(UserRole.role))
            .order_by(UserRole.assigned_at.asc())
            .all()
        )

    def active_role_names(self, user_id: UUID) -> List[str]:
        rows = (
            self._effective_query(user_id)
            .with_entities(Role.name)
            .order_by(Role.name)
            .all()
        )
        return [name for (name,) in rows]

    def count_active_assignments(self, role_id: UUID) -> int:
        """Active assignments of a role, expired or not."""
        return (
            self.db.query(UserRole)
            .filter(UserRole.role_id == role_id, UserRole.is_active.is_(True))
            .count()
        )
