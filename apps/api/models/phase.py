"""Phase model."""

import uuid

from sqlalchemy import Column, Date, Float, ForeignKey, String
from sqlalchemy.orm import relationship

from database import Base


class Phase(Base):
    """Scheduled stage of a project (foundation, framing, ...)."""

    __tablename__ = "phases"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    project_id = Column(String, ForeignKey("projects.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    status = Column(String, nullable=False, default="not_started")
    estimated_cost = Column(Float, nullable=True)
    contractor_name = Column(String, nullable=True)

    project = relationship("Project", back_populates="phases")
    ledger_entries = relationship("LedgerEntry", back_populates="phase")
    photos = relationship("PhasePhoto", back_populates="phase")
