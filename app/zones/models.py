from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from app.database import Base


class Zone(Base):
    __tablename__ = "zones"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, index=True)
    created_by = Column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True
    )
    created_at = Column(DateTime, default=datetime.utcnow)

    creator = relationship("User", foreign_keys=[created_by])
    members = relationship("UserZone", back_populates="zone")
    expenses = relationship("Expense", back_populates="zone")


class UserZone(Base):
    """Assignment of a user to a zone. The composite key keeps each pair unique."""

    __tablename__ = "user_zones"

    user_id = Column(Integer, ForeignKey("users.id"), primary_key=True)
    zone_id = Column(Integer, ForeignKey("zones.id"), primary_key=True)

    user = relationship("User", back_populates="zones")
    zone = relationship("Zone", back_populates="members")
