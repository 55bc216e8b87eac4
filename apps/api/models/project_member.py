"""ProjectMember model for a project's team roster."""

import uuid

from sqlalchemy import Boolean, Column, ForeignKey, String
from sqlalchemy.orm import relationship

from database import Base


class ProjectMember(Base):
    """Team member listed on a project (site engineer, contractor, ...)."""

    __tablename__ = "project_members"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    project_id = Column(String, ForeignKey("projects.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=True)
    role_name = Column(String, nullable=True)
    status = Column(String, nullable=True)
    active = Column(Boolean, nullable=False, default=True)

    project = relationship("Project", back_populates="members")
