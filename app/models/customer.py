"""Customer model"""

from sqlalchemy import Boolean, Column, Integer, String

from app.models.base import Base


class Customer(Base):
    """Customer an entry is booked for"""

    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    active = Column(Boolean, default=True, nullable=False)

    def __repr__(self):
        return f"<Customer(name='{self.name}', active={self.active})>"
