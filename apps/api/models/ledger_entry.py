"""LedgerEntry model for project expenses and income."""

import uuid

from sqlalchemy import Column, Date, Float, ForeignKey, String
from sqlalchemy.orm import relationship

from database import Base


class LedgerEntry(Base):
    """Single expense or income line; ``entry_type`` is ``expense`` or ``income``."""

    __tablename__ = "ledger_entries"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    project_id = Column(String, ForeignKey("projects.id"), nullable=False, index=True)
    phase_id = Column(String, ForeignKey("phases.id"), nullable=True, index=True)
    entry_type = Column(String, nullable=False, index=True)
    amount = Column(Float, nullable=False)
    gst_amount = Column(Float, nullable=True)
    category = Column(String, nullable=True)
    date = Column(Date, nullable=True)

    project = relationship("Project", back_populates="ledger_entries")
    phase = relationship("Phase", back_populates="ledger_entries")
