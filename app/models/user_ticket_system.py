"""Per-user ticket system credentials"""
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from app.models.base import Base


class UserTicketSystem(Base):
    """OAuth token pair of one user for one ticket system"""

    __tablename__ = "users_ticket_systems"
    __table_args__ = (
        UniqueConstraint("user_id", "ticket_system_id", name="uq_user_ticket_system"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    ticket_system_id = Column(Integer, ForeignKey("ticket_systems.id"), nullable=False)

    # Holds the request token while a handshake is in flight.
    access_token = Column(String, nullable=False, default="")
    token_secret = Column(String, nullable=False, default="")
    # Set when the user declined the OAuth grant; no sync happens for the pair.
    avoid_connection = Column(Boolean, default=False, nullable=False)

    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    user = relationship("User")
    ticket_system = relationship("TicketSystem")

    def __repr__(self):
        return f"<UserTicketSystem(user_id={self.user_id}, ticket_system_id={self.ticket_system_id})>"
