"""User model."""

from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid

from database import Base


class User(Base):
    """Application user and profile.

    ``role`` holds the role name copied at assignment time, not a reference to
    the role row. Renaming or editing a role later leaves this label untouched.
    """

    __tablename__ = "users"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String, unique=True, nullable=False, index=True)
    full_name = Column(String, nullable=True)
    role = Column(String, nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    projects = relationship("Project", back_populates="owner", cascade="all, delete-orphan")
    roles_created = relationship("Role", back_populates="creator", cascade="all, delete-orphan")
    project_shares = relationship("ProjectShare", back_populates="creator", cascade="all, delete-orphan")
