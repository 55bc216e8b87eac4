"""Role model for permission bundles."""

import uuid

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from database import Base


class Role(Base):
    """Named bundle of permission strings, scoped to the administrator who created it."""

    __tablename__ = "roles"
    __table_args__ = (UniqueConstraint("created_by", "role_name", name="uq_roles_creator_name"),)

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    created_by = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    role_name = Column(String, nullable=False, index=True)
    permissions = Column(JSON, nullable=False, default=list)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    creator = relationship("User", back_populates="roles_created")
