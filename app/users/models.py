import enum
from datetime import datetime

from sqlalchemy import Column, Integer, String, Date, DateTime, Enum
from sqlalchemy.orm import relationship

from app.database import Base


class Role(str, enum.Enum):
    admin = "admin"
    user = "user"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(100), nullable=True)
    hashed_password = Column(String, nullable=False)
    role = Column(Enum(Role, name="user_role"), nullable=False, default=Role.user)

    # Optional profile fields
    dob = Column(Date, nullable=True)
    phone = Column(String(30), nullable=True)
    gender = Column(String(20), nullable=True)
    id_proof_type = Column(String(50), nullable=True)
    profile_photo = Column(String, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)

    expenses = relationship("Expense", back_populates="owner")
    zones = relationship("UserZone", back_populates="user")
