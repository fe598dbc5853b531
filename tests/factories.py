"""Factory functions for creating test database records.

Each factory creates a model instance, adds it to the session, and flushes
so that database-generated fields (id, created_at, etc.) are populated.
All fields have sensible defaults but can be overridden via keyword arguments.

Usage::

    from tests.factories import create_user, create_role, assign

    def test_something(db_session):
        user = create_user(db_session)
        role = create_role(db_session, permissions=["route.read"])
        assign(db_session, user, role)
"""

from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from accessnav.core.rbac.permissions import parse_permission_name
from accessnav.db.base import utcnow
from accessnav.db.models import (
    LegacyRole,
    Permission,
    PersonalizedMessage,
    Role,
    RolePermission,
    Route,
    TouristRegistration,
    User,
    UserRole,
)


_counter = 0


def _next_id() -> int:
    """Return a monotonically increasing integer for unique default values."""
    global _counter
    _counter += 1
    return _counter


# ---------------------------------------------------------------------------
# User
# ---------------------------------------------------------------------------


def create_user(
    session: Session,
    *,
    email: Optional[str] = None,
    name: Optional[str] = None,
    role: LegacyRole = LegacyRole.USER,
    is_active: bool = True,
) -> User:
    n = _next_id()
    user = User(
        email=email or f"user{n}@example.com",
        name=name or f"Test User {n}",
        role=role,
        is_active=is_active,
    )
    session.add(user)
    session.flush()
    return user


# ---------------------------------------------------------------------------
# Permission / Role
# ---------------------------------------------------------------------------


def create_permission(
    session: Session,
    name: str,
    *,
    display_name: Optional[str] = None,
    is_active: bool = True,
) -> Permission:
    """Create ``name`` or return the existing row (its active flag is updated)."""
    permission = session.query(Permission).filter(Permission.name == name).first()
    if permission is None:
        prefix, action = parse_permission_name(name)
        permission = Permission(
            name=name,
            display_name=display_name or name,
            resource=prefix,
            action=action,
        )
        session.add(permission)
    permission.is_active = is_active
    session.flush()
    return permission


def create_role(
    session: Session,
    *,
    name: Optional[str] = None,
    display_name: Optional[str] = None,
    permissions: Iterable[str] = (),
    is_system: bool = False,
    is_active: bool = True,
) -> Role:
    n = _next_id()
    role = Role(
        name=name or f"role_{n}",
        display_name=display_name or f"Test Role {n}",
        is_system=is_system,
        is_active=is_active,
    )
    session.add(role)
    session.flush()
    for permission_name in permissions:
        session.add(RolePermission(
            role_id=role.id,
            permission_id=create_permission(session, permission_name).id,
        ))
    session.flush()
    return role


def assign(
    session: Session,
    user: User,
    role: Role,
    *,
    is_active: bool = True,
    expires_at: Optional[datetime] = None,
    assigned_by: Optional[User] = None,
) -> UserRole:
    assignment = UserRole(
        user_id=user.id,
        role_id=role.id,
        is_active=is_active,
        expires_at=expires_at,
        assigned_at=utcnow(),
        assigned_by=assigned_by.id if assigned_by else None,
    )
    session.add(assignment)
    session.flush()
    return assignment


# ---------------------------------------------------------------------------
# Owned content
# ---------------------------------------------------------------------------


def create_route(session: Session, *, owner: User, name: Optional[str] = None) -> Route:
    n = _next_id()
    route = Route(
        name=name or f"Route {n}",
        location="Plaza Mayor",
        transport_name=f"Bus {n}",
        created_by=owner.id,
    )
    session.add(route)
    session.flush()
    return route


def create_message(session: Session, *, owner: User, route: Route) -> PersonalizedMessage:
    message = PersonalizedMessage(
        message=f"Next stop {_next_id()}",
        route_id=route.id,
        created_by=owner.id,
    )
    session.add(message)
    session.flush()
    return message


def create_tourist_registration(session: Session, *, owner: User) -> TouristRegistration:
    n = _next_id()
    registration = TouristRegistration(
        destination_place=f"Museum {n}",
        name=f"Visit {n}",
        created_by=owner.id,
    )
    session.add(registration)
    session.flush()
    return registration
