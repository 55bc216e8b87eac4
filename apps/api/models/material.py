"""Material model."""

import uuid

from sqlalchemy import Column, Float, ForeignKey, String
from sqlalchemy.orm import relationship

from database import Base


class Material(Base):
    __tablename__ = "materials"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    project_id = Column(String, ForeignKey("projects.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    unit_cost = Column(Float, nullable=True)
    qty_required = Column(Float, nullable=True)
    status = Column(String, nullable=True)

    project = relationship("Project", back_populates="materials")
