"""Project model."""

from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, Integer, String, Text

from prase.database import Base


class Project(Base):
    """A named unit of work with an uploaded picture."""

    __tablename__ = "project"

    id = Column(Integer, primary_key=True, autoincrement=True)
    uid = Column(String(128), unique=True, nullable=False, index=True)
    name = Column(String(256), nullable=False)
    description = Column(Text, nullable=False, default="")
    picture = Column(String(512), nullable=True)
    materials = Column(Text, nullable=False, default="")
    tools = Column(Text, nullable=False, default="")
    steps = Column(JSON, nullable=False, default=list)
    tips = Column(Text, nullable=False, default="")
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
