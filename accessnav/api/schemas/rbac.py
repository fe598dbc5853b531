"""Request and response schemas for the RBAC administration API."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


ROLE_NAME_PATTERN = r"^[a-z][a-z0-9_]*$"
PERMISSION_NAME_PATTERN = r"^[a-z][a-z0-9_]*\.[a-z][a-z0-9_]*$"


# Roles
class RoleCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=50, pattern=ROLE_NAME_PATTERN)
    display_name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    permissions: List[str] = Field(default_factory=list)


class RoleUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=50, pattern=ROLE_NAME_PATTERN)
    display_name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    is_active: Optional[bool] = None
    permissions: Optional[List[str]] = None


class PermissionSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    display_name: str
    resource: str
    action: str


class RoleResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    display_name: str
    description: Optional[str] = None
    is_active: bool
    is_system: bool
    permissions: List[PermissionSummary] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# Permissions
class PermissionCreate(BaseModel):
    name: str = Field(..., max_length=100, pattern=PERMISSION_NAME_PATTERN)
    display_name: str = Field(..., min_length=1, max_length=150)
    resource: str = Field(..., min_length=1, max_length=50)
    action: str = Field(..., min_length=1, max_length=50)
    description: Optional[str] = None


class PermissionStatusUpdate(BaseModel):
    is_active: bool


class PermissionResponse(PermissionSummary):
    description: Optional[str] = None
    is_active: bool


# Assignments
class RoleAssignmentRequest(BaseModel):
    user_id: UUID
    role_name: str = Field(..., min_length=1, max_length=50)
    expires_at: Optional[datetime] = None


class RoleRemovalRequest(BaseModel):
    user_id: UUID
    role_name: str = Field(..., min_length=1, max_length=50)


class RoleAssignmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    role_id: UUID
    assigned_by: Optional[UUID] = None
    assigned_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    is_active: bool


class UserRoleResponse(RoleAssignmentResponse):
    role_name: str
    role_display_name: str


# Checks
class PermissionCheckRequest(BaseModel):
    user_id: UUID
    permission: str = Field(..., max_length=100)


class PermissionCheckResponse(BaseModel):
    user_id: UUID
    permission: str
    has_permission: bool


class UserPermissionsResponse(BaseModel):
    user_id: UUID
    permissions: List[str]
