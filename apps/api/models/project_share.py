"""ProjectShare model for shareable project URLs."""

import uuid

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from database import Base


class ProjectShare(Base):
    """Time-boxed link exposing a filtered slice of one project.

    The primary key doubles as the public token: ``/shared/{id}``.
    """

    __tablename__ = "project_shares"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    project_id = Column(String, ForeignKey("projects.id"), nullable=False, index=True)
    created_by = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    share_type = Column(String, nullable=False, default="public")
    # Fernet ciphertext; NULL for public links.
    password_encrypted = Column(Text, nullable=True)
    share_options = Column(JSON, nullable=False, default=dict)
    allow_comments = Column(Boolean, nullable=False, default=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    view_count = Column(Integer, nullable=False, default=0)
    comments = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    project = relationship("Project", back_populates="shares")
    creator = relationship("User", back_populates="project_shares")
