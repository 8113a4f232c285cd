"""Activity model"""

from sqlalchemy import Boolean, Column, Integer, String

from app.models.base import Base


class Activity(Base):
    """Kind of work done (development, meeting, ...)"""

    __tablename__ = "activities"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    # Developers must give a ticket when booking this activity.
    needs_ticket = Column(Boolean, default=False, nullable=False)

    def __repr__(self):
        return f"<Activity(name='{self.name}')>"
