"""Access log model."""

from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Float, Integer, String, Text

from prase.database import Base


class Log(Base):
    """Scored access event.

    ``project_id`` and ``card_id`` hold the external ``uid`` of a project and a
    card, not foreign keys; a log may outlive the card it names.
    """

    __tablename__ = "log"

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(String(128), nullable=True, index=True)
    card_id = Column(String(128), nullable=True, index=True)
    score = Column(Float, nullable=True)
    score_type = Column(String(128), nullable=True)
    note = Column(Text, nullable=True)
    success = Column(Boolean, nullable=False, default=False)
    new_card = Column(Boolean, nullable=False, default=False)
    # No onupdate: score edits leave both timestamps alone.
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow)
