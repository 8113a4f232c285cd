"""User model"""

import enum

from sqlalchemy import Column, Integer, String

from app.models.base import Base


class UserType(str, enum.Enum):
    """User type enumeration"""
    DEV = "DEV"
    PL = "PL"
    ADMIN = "ADMIN"


class User(Base):
    """Time tracker user"""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, nullable=False, index=True)
    type = Column(String, nullable=False, default=UserType.DEV.value)

    def __repr__(self):
        return f"<User(username='{self.username}', type='{self.type}')>"
