"""RBAC administration API endpoints."""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from accessnav.api.deps import get_current_user, get_db
from accessnav.api.schemas.common import ErrorResponse, PaginatedResponse, ok
from accessnav.api.schemas.rbac import (
    PermissionCheckRequest,
    PermissionCheckResponse,
    PermissionCreate,
    PermissionResponse,
    PermissionStatusUpdate,
    RoleAssignmentRequest,
    RoleAssignmentResponse,
    RoleCreate,
    RoleRemovalRequest,
    RoleResponse,
    RoleUpdate,
    UserPermissionsResponse,
    UserRoleResponse,
)
from accessnav.core.config import get_settings
from accessnav.core.rbac import (
    AssignmentStore,
    PermissionCatalog,
    PermissionResolver,
    RequirePermission,
    RequireRole,
    RequireSelfOrPermission,
    RoleRegistry,
    initialize_rbac,
    load_user_permissions,
)
from accessnav.core.rbac.checker import ensure_self_or_permission
from accessnav.core.rbac.roles import BOOTSTRAP_ROLES
from accessnav.db.models import User

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(
    prefix="/rbac",
    tags=["rbac"],
    responses={
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Not allowed"},
    },
)


def _page_params(
    page: int = Query(1, ge=1, description="Page number"),
    per_page: int = Query(
        settings.default_page_size, ge=1, le=settings.max_page_size, description="Items per page"
    ),
) -> tuple[int, int]:
    return page, per_page


def _user_role(assignment) -> UserRoleResponse:
    return UserRoleResponse(
        **RoleAssignmentResponse.model_validate(assignment).model_dump(),
        role_name=assignment.role.name,
        role_display_name=assignment.role.display_name,
    )


# Bootstrap
@router.post("/initialize")
def initialize(
    db: Session = Depends(get_db),
    current_user: User = Depends(RequireRole(BOOTSTRAP_ROLES)),
):
    """Create or refresh system roles, the permission catalog and their grants."""
    summary = initialize_rbac(db)
    logger.info("RBAC initialized by user %s", current_user.id)
    return ok("RBAC system initialized successfully", {"status": "initialized", **summary})


# Roles
@router.get("/roles")
def list_roles(
    search: Optional[str] = Query(None, max_length=100),
    is_active: Optional[bool] = Query(None),
    paging: tuple[int, int] = Depends(_page_params),
    db: Session = Depends(get_db),
    current_user: User = Depends(RequirePermission("role.read")),
):
    """List roles, newest first, with optional search and active filter."""
    page, per_page = paging
    roles, total = RoleRegistry(db).list_roles(
        search=search, is_active=is_active, page=page, per_page=per_page
    )
    return ok(
        "Roles retrieved successfully",
        PaginatedResponse[RoleResponse].create(
            [RoleResponse.model_validate(r) for r in roles], total, page, per_page
        ),
    )


@router.get("/roles/{role_id}")
def get_role(
    role_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(RequirePermission("role.read")),
):
    role = RoleRegistry(db).get_role(role_id)
    return ok("Role retrieved successfully", {"role": RoleResponse.model_validate(role)})


@router.post("/roles", status_code=status.HTTP_201_CREATED)
def create_role(
    role_data: RoleCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(RequirePermission("role.create")),
):
    """Create a new custom role."""
    role = RoleRegistry(db).create_role(
        role_data.name,
        role_data.display_name,
        role_data.description,
        role_data.permissions,
        created_by=current_user.id,
    )
    db.commit()
    logger.info("Role %s created by user %s", role.name, current_user.id)
    return ok("Role created successfully", {"role": RoleResponse.model_validate(role)})


@router.put("/roles/{role_id}")
def update_role(
    role_id: UUID,
    role_data: RoleUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(RequirePermission("role.update")),
):
    """Update a role. System roles cannot be modified."""
    role = RoleRegistry(db).update_role(
        role_id,
        name=role_data.name,
        display_name=role_data.display_name,
        description=role_data.description,
        is_active=role_data.is_active,
        permission_names=role_data.permissions,
        updated_by=current_user.id,
    )
    db.commit()
    return ok("Role updated successfully", {"role": RoleResponse.model_validate(role)})


@router.delete("/roles/{role_id}")
def delete_role(
    role_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(RequirePermission("role.delete")),
):
    """Delete a custom role that no user holds."""
    RoleRegistry(db).delete_role(role_id)
    db.commit()
    return ok("Role deleted successfully")


# Permissions
@router.get("/permissions")
def list_permissions(
    resource: Optional[str] = Query(None, max_length=50),
    action: Optional[str] = Query(None, max_length=50),
    paging: tuple[int, int] = Depends(_page_params),
    db: Session = Depends(get_db),
    current_user: User = Depends(RequirePermission("role.read")),
):
    """List active permissions ordered by resource and action."""
    page, per_page = paging
    permissions, total = PermissionCatalog(db).list_permissions(
        resource=resource, action=action, page=page, per_page=per_page
    )
    return ok(
        "Permissions retrieved successfully",
        PaginatedResponse[PermissionResponse].create(
            [PermissionResponse.model_validate(p) for p in permissions], total, page, per_page
        ),
    )


@router.post("/permissions", status_code=status.HTTP_201_CREATED)
def create_permission(
    permission_data: PermissionCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(RequirePermission(settings.admin_permission)),
):
    permission = PermissionCatalog(db).create_permission(
        permission_data.name,
        permission_data.display_name,
        permission_data.resource,
        permission_data.action,
        permission_data.description,
    )
    db.commit()
    return ok(
        "Permission created successfully",
        {"permission": PermissionResponse.model_validate(permission)},
    )


@router.patch("/permissions/{name}")
def set_permission_status(
    name: str,
    status_data: PermissionStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(RequirePermission(settings.admin_permission)),
):
    """Retire or restore a permission."""
    permission = PermissionCatalog(db).set_permission_active(name, status_data.is_active)
    db.commit()
    return ok(
        "Permission updated successfully",
        {"permission": PermissionResponse.model_validate(permission)},
    )


# Assignments
@router.post("/assign-role")
def assign_role(
    assignment_data: RoleAssignmentRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(RequirePermission("role.assign")),
):
    assignment = AssignmentStore(db).assign_role(
        assignment_data.user_id,
        assignment_data.role_name,
        assigned_by=current_user.id,
        expires_at=assignment_data.expires_at,
    )
    db.commit()
    return ok(
        "Role assigned to user successfully",
        {"user_role": RoleAssignmentResponse.model_validate(assignment)},
    )


@router.post("/remove-role")
def remove_role(
    removal_data: RoleRemovalRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(RequirePermission("role.assign")),
):
    AssignmentStore(db).remove_role(removal_data.user_id, removal_data.role_name)
    db.commit()
    return ok("Role removed from user successfully")


@router.get("/users/{user_id}/roles")
def get_user_roles(
    user_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(RequireSelfOrPermission("user.read")),
):
    """List the roles a user currently holds."""
    assignments = AssignmentStore(db).list_active_assignments(user_id)
    return ok(
        "User roles retrieved successfully",
        {"user_id": user_id, "roles": [_user_role(a) for a in assignments]},
    )


@router.get("/user-permissions/{user_id}")
def get_user_permissions(
    user_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(RequireSelfOrPermission("user.read")),
):
    permissions = PermissionResolver(db).get_effective_permissions(user_id)
    return ok(
        "User permissions retrieved successfully",
        UserPermissionsResponse(user_id=user_id, permissions=sorted(permissions)),
    )


@router.post("/check-permission")
def check_permission(
    check: PermissionCheckRequest,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Check whether a user holds a permission."""
    ensure_self_or_permission(request, db, current_user, check.user_id, "user.read")
    allowed = PermissionResolver(db).has_permission(check.user_id, check.permission)
    return ok(
        "Permission check completed",
        PermissionCheckResponse(
            user_id=check.user_id, permission=check.permission, has_permission=allowed
        ),
    )


@router.get("/me/permissions")
def get_my_permissions(
    current_user: User = Depends(get_current_user),
    permissions: set[str] = Depends(load_user_permissions),
):
    return ok(
        "User permissions retrieved successfully",
        UserPermissionsResponse(user_id=current_user.id, permissions=sorted(permissions)),
    )
