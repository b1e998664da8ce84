"""Card and lock models."""

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Table, Text
from sqlalchemy.orm import relationship

from prase.database import Base

card_lock = Table(
    "card_lock",
    Base.metadata,
    Column("card_id", Integer, ForeignKey("card.id", ondelete="CASCADE"), primary_key=True),
    Column("lock_id", Integer, ForeignKey("lock.id", ondelete="CASCADE"), primary_key=True),
)


class Lock(Base):
    """Physical lock a card can open."""

    __tablename__ = "lock"

    id = Column(Integer, primary_key=True, autoincrement=True)
    uid = Column(String(128), unique=True, nullable=False, index=True)
    name = Column(String(256), nullable=False, default="")
    description = Column(Text, nullable=False, default="")
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    cards = relationship("Card", secondary=card_lock, back_populates="locks")


class Card(Base):
    """Identity record for a tracked person or asset, referenced by logs through ``uid``."""

    __tablename__ = "card"

    id = Column(Integer, primary_key=True, autoincrement=True)
    uid = Column(String(128), unique=True, nullable=False, index=True)
    name = Column(String(256), nullable=False, default="")
    idcard = Column(String(128), nullable=False, default="")
    mobile = Column(String(64), nullable=False, default="")
    qq = Column(String(64), nullable=False, default="")
    memberid = Column(String(128), nullable=False, default="")
    description = Column(Text, nullable=False, default="")
    profield = Column(String(256), nullable=False, default="")
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    locks = relationship("Lock", secondary=card_lock, back_populates="cards", order_by="Lock.uid")
