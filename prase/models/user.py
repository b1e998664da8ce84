"""User model."""

from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, Integer, String

from prase.database import Base


class User(Base):
    """Application user."""

    __tablename__ = "user"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(256), unique=True, nullable=False, index=True)
    password_hash = Column(String(256), nullable=False)

    # Profile
    name = Column(String(256), nullable=False, default="")
    gender = Column(String(64), nullable=False, default="")
    location = Column(String(256), nullable=False, default="")
    website = Column(String(512), nullable=False, default="")
    picture = Column(String(512), nullable=True)

    # Linked identity providers: [{"kind": "github", "access_token": "..."}]
    tokens = Column(JSON, nullable=False, default=list)

    password_reset_token = Column(String(256), nullable=True, index=True)
    password_reset_expires_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
