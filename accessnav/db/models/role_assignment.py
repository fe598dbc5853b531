"""Role assignment model.

Links users to roles. Removing a role from a user only clears the active
flag so the audit fields survive; deleting the role itself deletes its rows.
"""

import uuid
from sqlalchemy import Column, DateTime, Boolean, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from accessnav.db.base import Base, utcnow


class UserRole(Base):
    """
    Assignment of a role to a user.

    At most one row exists per (user, role) pair; re-assigning a removed
    role reactivates that row.
    """
    __tablename__ = "user_roles"
    __table_args__ = (
        UniqueConstraint("user_id", "role_id", name="uq_user_roles_user_id_role_id"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    role_id = Column(Uuid, ForeignKey("roles.id", ondelete="CASCADE"), nullable=False, index=True)

    # Who assigned this role
    assigned_by = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    assigned_at = Column(DateTime, default=utcnow)
    expires_at = Column(DateTime, nullable=True, index=True)  # Optional expiration

    is_active = Column(Boolean, default=True, nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    user = relationship("User", foreign_keys=[user_id], back_populates="role_assignments")
    role = relationship("Role", back_populates="assignments")
    assigner = relationship("User", foreign_keys=[assigned_by])

    def is_effective(self, now) -> bool:
        """Active and not past its expiry at ``now``."""
        return bool(self.is_active) and (self.expires_at is None or self.expires_at > now)

    def __repr__(self) -> str:
        return f"<UserRole user={self.user_id} role={self.role_id} active={self.is_active}>"
