import uuid
from sqlalchemy import Column, String, DateTime, Boolean, Text, Index, Uuid
from sqlalchemy.orm import relationship

from accessnav.db.base import Base, utcnow


class Permission(Base):
    """
    An atomic capability identified by ``<resource>.<action>``.

    Permissions are never deleted once referenced; they are retired by
    clearing ``is_active`` and the resolver ignores them from then on.
    """
    __tablename__ = "permissions"
    __table_args__ = (
        Index("ix_permissions_resource_action", "resource", "action"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(100), unique=True, nullable=False, index=True)
    display_name = Column(String(150), nullable=False)
    description = Column(Text, nullable=True)
    resource = Column(String(50), nullable=False)
    action = Column(String(50), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    grants = relationship("RolePermission", back_populates="permission")

    def __repr__(self) -> str:
        return f"<Permission {self.name}>"
