"""Request-time permission gates for AccessNav.

Each gate is a FastAPI dependency. It resolves the authenticated user
(``AuthenticationError`` if there is none), runs its check against the
current state of storage, and either returns the user or raises:

- ``AuthorizationError`` when the user is known but not allowed
- ``NotFoundError`` when the ownership gate cannot find the resource
- ``PermissionCheckError`` when storage fails mid-check

A storage failure is never an allow.
"""

import logging
from typing import Any, Callable, Iterable, Optional, Sequence, Type
from uuid import UUID

from fastapi import Depends, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from accessnav.api.deps import get_current_user, get_db
from accessnav.api.middleware.request_context import get_client_ip
from accessnav.core.config import get_settings
from accessnav.core.exceptions import (
    AuthorizationError,
    InvalidOperationError,
    NotFoundError,
    PermissionCheckError,
)
from accessnav.db.models import User

from .assignments import AssignmentStore
from .resolver import PermissionResolver

logger = logging.getLogger(__name__)

# Legacy role values that bypass ownership checks
ADMIN_LEGACY_ROLES = frozenset({"admin", "super_admin"})

ResourceLoader = Callable[[Session, Any], Optional[Any]]
OwnerCheck = Callable[[Session, User, Any], bool]


def model_loader(model: Type) -> ResourceLoader:
    """
    Build a loader that fetches ``model`` rows by primary key.

    Ids that are not valid UUIDs load nothing.
    """
    def load(db: Session, resource_id: Any) -> Optional[Any]:
        try:
            key = resource_id if isinstance(resource_id, UUID) else UUID(str(resource_id))
        except ValueError:
            return None
        return db.get(model, key)

    return load


def owned_by(loader: ResourceLoader, owner_field: str = "created_by") -> OwnerCheck:
    """Build an owner check for ``RequirePermission(allow_owner=True)``."""
    def check(db: Session, user: User, resource_id: Any) -> bool:
        resource = loader(db, resource_id)
        return resource is not None and getattr(resource, owner_field, None) == user.id

    return check


def legacy_role_matches(user: User, role_names: Iterable[str]) -> bool:
    """Check the user's single legacy role against ``role_names``."""
    legacy = user.legacy_role
    return bool(legacy) and legacy in set(role_names)


def _log_denial(request: Request, user: User, message: str, **context) -> None:
    logger.warning(
        "%s: user=%s %s path=%s method=%s ip=%s",
        message,
        user.id,
        " ".join(f"{k}={v}" for k, v in context.items()),
        request.url.path,
        request.method,
        get_client_ip(request),
    )


def _check_failed(request: Request, user: User, what: str) -> PermissionCheckError:
    logger.exception(
        "Error in %s check: user=%s path=%s", what, user.id, request.url.path
    )
    return PermissionCheckError()


class RequirePermission:
    """
    Gate on a single permission.

    With ``allow_owner`` and an ``owner_check``, a user without the
    permission still passes when they own the resource addressed by the
    ``id_param`` path parameter.

    Usage:
        @router.put("/routes/{id}")
        def update_route(
            user: User = Depends(RequirePermission(
                "route.update", allow_owner=True, owner_check=owned_by(model_loader(Route)),
            )),
        ):
            ...
    """

    def __init__(
        self,
        permission: str,
        *,
        allow_owner: bool = False,
        owner_check: Optional[OwnerCheck] = None,
        id_param: str = "id",
    ):
        self.permission = permission
        self.allow_owner = allow_owner
        self.owner_check = owner_check
        self.id_param = id_param

    def __call__(
        self,
        request: Request,
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db),
    ) -> User:
        try:
            allowed = PermissionResolver(db).has_permission(
                current_user.id, self.permission, fail_closed=False
            )
            if not allowed and self.allow_owner and self.owner_check is not None:
                resource_id = request.path_params.get(self.id_param)
                if resource_id is not None:
                    allowed = self.owner_check(db, current_user, resource_id)
        except SQLAlchemyError as e:
            raise _check_failed(request, current_user, "permission") from e

        if not allowed:
            _log_denial(request, current_user, "Permission denied", permission=self.permission)
            raise AuthorizationError(required_permission=self.permission)
        return current_user


class RequireAnyPermission:
    """Gate that passes when the user holds at least one of ``permissions``."""

    def __init__(self, permissions: Sequence[str]):
        self.permissions = list(permissions)

    def __call__(
        self,
        request: Request,
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db),
    ) -> User:
        try:
            held = PermissionResolver(db).get_effective_permissions(
                current_user.id, fail_closed=False
            )
        except SQLAlchemyError as e:
            raise _check_failed(request, current_user, "any permission") from e

        if held.isdisjoint(self.permissions):
            _log_denial(
                request, current_user, "Permission denied - no matching permissions",
                permissions=",".join(self.permissions),
            )
            raise AuthorizationError(required_permissions=self.permissions)
        return current_user


class RequireRole:
    """
    Gate on role membership.

    The legacy ``User.role`` value is checked first; RBAC roles held through
    effective assignments are checked only when it does not match.
    """

    def __init__(self, role_names: Sequence[str]):
        if isinstance(role_names, str):
            role_names = [role_names]
        self.role_names = list(role_names)

    def __call__(
        self,
        request: Request,
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db),
    ) -> User:
        if legacy_role_matches(current_user, self.role_names):
            return current_user

        try:
            held = AssignmentStore(db).active_role_names(current_user.id)
        except SQLAlchemyError as e:
            raise _check_failed(request, current_user, "role") from e

        if any(name in self.role_names for name in held):
            return current_user

        _log_denial(
            request, current_user, "Role access denied",
            roles=",".join(self.role_names), legacy_role=current_user.legacy_role,
        )
        raise AuthorizationError(
            "Insufficient role permissions",
            required_roles=self.role_names,
            code="ROLE_DENIED",
        )


class RequireOwnership:
    """
    Gate on ownership of the resource named by the ``id_param`` path parameter.

    The loaded resource is left on ``request.state.resource`` for the handler.
    Admins (legacy ``admin``/``super_admin`` or holders of the configured
    admin permission) skip the owner comparison when ``allow_admin`` is set.
    """

    def __init__(
        self,
        resource_type: str,
        loader: ResourceLoader,
        *,
        owner_field: str = "created_by",
        allow_admin: bool = True,
        id_param: str = "id",
    ):
        self.resource_type = resource_type
        self.loader = loader
        self.owner_field = owner_field
        self.allow_admin = allow_admin
        self.id_param = id_param

    def _is_admin(self, db: Session, user: User) -> bool:
        if user.legacy_role in ADMIN_LEGACY_ROLES:
            return True
        return PermissionResolver(db).has_permission(
            user.id, get_settings().admin_permission, fail_closed=False
        )

    def __call__(
        self,
        request: Request,
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db),
    ) -> User:
        resource_id = request.path_params.get(self.id_param)
        if resource_id is None:
            raise InvalidOperationError("Invalid resource configuration")

        try:
            resource = self.loader(db, resource_id)
            if resource is None:
                raise NotFoundError("Resource not found")

            allowed = (
                getattr(resource, self.owner_field, None) == current_user.id
                or (self.allow_admin and self._is_admin(db, current_user))
            )
        except SQLAlchemyError as e:
            raise _check_failed(request, current_user, "ownership") from e

        if not allowed:
            _log_denial(
                request, current_user, "Ownership access denied",
                resource_type=self.resource_type, resource_id=resource_id,
            )
            raise AuthorizationError(
                "Access denied - you do not own this resource",
                code="OWNERSHIP_DENIED",
            )

        request.state.resource = resource
        return current_user


class RequireSelfOrPermission:
    """Gate that lets users act on themselves, and others only with ``permission``."""

    def __init__(self, permission: str, *, id_param: str = "user_id"):
        self.permission = permission
        self.id_param = id_param

    def __call__(
        self,
        request: Request,
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db),
    ) -> User:
        ensure_self_or_permission(
            request, db, current_user, request.path_params.get(self.id_param), self.permission
        )
        return current_user


def ensure_self_or_permission(
    request: Request,
    db: Session,
    user: User,
    target_user_id: Any,
    permission: str,
) -> None:
    """Raise unless ``target_user_id`` is the user or the user holds ``permission``."""
    if target_user_id is not None and str(target_user_id) == str(user.id):
        return

    try:
        allowed = PermissionResolver(db).has_permission(user.id, permission, fail_closed=False)
    except SQLAlchemyError as e:
        raise _check_failed(request, user, "permission") from e

    if not allowed:
        _log_denial(request, user, "Permission denied", permission=permission)
        raise AuthorizationError(required_permission=permission)


def load_user_permissions(
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> set[str]:
    """Put the user's effective permissions on ``request.state.permissions``."""
    permissions = PermissionResolver(db).get_effective_permissions(current_user.id)
    request.state.permissions = permissions
    return permissions
