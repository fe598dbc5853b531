"""User-owned content models.

Routes, personalized messages and tourist registrations are owned by the
user in ``created_by``. The RBAC layer only needs them for ownership checks.
"""

import enum
import uuid
from sqlalchemy import Column, String, DateTime, Text, Numeric, ForeignKey, Enum, Uuid
from sqlalchemy.orm import relationship

from accessnav.db.base import Base, utcnow


class ContentStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


def _status_column():
    return Column(
        Enum(ContentStatus, name="content_status", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=ContentStatus.ACTIVE,
        index=True,
    )


class Route(Base):
    __tablename__ = "routes"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    location = Column(String(255), nullable=False)
    transport_name = Column(String(255), nullable=False)
    status = _status_column()
    created_by = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    creator = relationship("User")
    messages = relationship("PersonalizedMessage", back_populates="route")

    def __repr__(self) -> str:
        return f"<Route {self.name}>"


class PersonalizedMessage(Base):
    __tablename__ = "personalized_messages"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    message = Column(Text, nullable=False)
    status = _status_column()
    route_id = Column(Uuid, ForeignKey("routes.id"), nullable=False, index=True)
    created_by = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    route = relationship("Route", back_populates="messages")
    creator = relationship("User")


class TouristRegistration(Base):
    __tablename__ = "tourist_registrations"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    destination_place = Column(String(255), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    latitude = Column(Numeric(10, 8), nullable=True)
    longitude = Column(Numeric(11, 8), nullable=True)
    status = _status_column()
    created_by = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    creator = relationship("User")
