import enum
import uuid
from sqlalchemy import Column, String, DateTime, Boolean, Enum, Uuid
from sqlalchemy.orm import relationship

from accessnav.db.base import Base, utcnow


class LegacyRole(str, enum.Enum):
    """Single-role field that predates RBAC assignments."""
    USER = "user"
    ADMIN = "admin"


class User(Base):
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(255))
    role = Column(
        Enum(LegacyRole, name="legacy_role", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=LegacyRole.USER,
    )
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    role_assignments = relationship(
        "UserRole",
        back_populates="user",
        foreign_keys="UserRole.user_id",
    )

    @property
    def legacy_role(self) -> str:
        return self.role.value if isinstance(self.role, LegacyRole) else self.role

    def __repr__(self) -> str:
        return f"<User {self.email} ({self.legacy_role})>"
