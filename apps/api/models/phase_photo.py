"""PhasePhoto model for site progress photos."""

import uuid

from sqlalchemy import Column, DateTime, ForeignKey, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from database import Base


class PhasePhoto(Base):
    __tablename__ = "phase_photos"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    project_id = Column(String, ForeignKey("projects.id"), nullable=False, index=True)
    phase_id = Column(String, ForeignKey("phases.id"), nullable=True, index=True)
    photo_url = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    project = relationship("Project", back_populates="phase_photos")
    phase = relationship("Phase", back_populates="photos")
