import uuid
from sqlalchemy import Column, String, DateTime, Boolean, Text, ForeignKey, Uuid
from sqlalchemy.orm import relationship

from accessnav.db.base import Base, utcnow


class Role(Base):
    """
    A named bundle of permissions.

    System roles are created by the bootstrap and can never be renamed,
    edited through the admin API, or deleted.
    """
    __tablename__ = "roles"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(50), unique=True, nullable=False, index=True)
    display_name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    is_system = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    grants = relationship(
        "RolePermission",
        back_populates="role",
        cascade="all, delete-orphan",
    )
    permissions = relationship(
        "Permission",
        secondary="role_permissions",
        viewonly=True,
        order_by="Permission.name",
    )
    # Deleting a role deletes its assignment rows; only roles with no active
    # assignment can be deleted
    assignments = relationship(
        "UserRole",
        back_populates="role",
        cascade="all, delete-orphan",
    )

    @property
    def permission_names(self) -> list[str]:
        return [p.name for p in self.permissions]

    def __repr__(self) -> str:
        return f"<Role {self.name}{' (system)' if self.is_system else ''}>"


class RolePermission(Base):
    """
    Grant of a permission to a role.

    The grant set of a role is replaced wholesale whenever it changes, so
    rows are identified by the (role, permission) pair alone.
    """
    __tablename__ = "role_permissions"

    role_id = Column(Uuid, ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True)
    permission_id = Column(Uuid, ForeignKey("permissions.id", ondelete="CASCADE"), primary_key=True, index=True)

    # Who granted this permission
    granted_by = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    granted_at = Column(DateTime, default=utcnow)

    # Relationships
    role = relationship("Role", back_populates="grants")
    permission = relationship("Permission", back_populates="grants")

    def __repr__(self) -> str:
        return f"<RolePermission role={self.role_id} permission={self.permission_id}>"
