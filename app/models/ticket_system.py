"""Ticket system model"""

import enum
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text

from app.models.base import Base


class TicketSystemType(str, enum.Enum):
    """Ticket system type enumeration"""
    UNKNOWN = ""
    JIRA = "JIRA"
    OTRS = "OTRS"

    @classmethod
    def parse(cls, value) -> "TicketSystemType":
        try:
            return cls(str(value or "").upper())
        except ValueError:
            return cls.UNKNOWN

    @property
    def supports_oauth(self) -> bool:
        return self is TicketSystemType.JIRA

    @property
    def supports_time_tracking(self) -> bool:
        """Whether remote work logs can be written to this type."""
        return self is TicketSystemType.JIRA


class TicketSystem(Base):
    """Remote ticket system configuration"""

    __tablename__ = "ticket_systems"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False, index=True)
    # Stored as plain string so unknown legacy values survive a round trip.
    type = Column(String, nullable=False, default=TicketSystemType.JIRA.value)
    # Whether remote work log sync is enabled at all for this system.
    book_time = Column(Boolean, default=False, nullable=False)
    url = Column(String, nullable=False)
    # printf-style template, e.g. "https://jira.example.com/browse/%s"
    ticket_url = Column(String, nullable=True)

    # Legacy basic auth; tolerated for non-OAuth types, never used for sync.
    login = Column(String, nullable=True)
    password = Column(String, nullable=True)

    oauth_consumer_key = Column(String, nullable=True)
    # RSA private key (inline PEM) or a path to a PEM file.
    oauth_consumer_secret = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def system_type(self) -> TicketSystemType:
        return TicketSystemType.parse(self.type)

    def issue_link(self, ticket: str) -> str:
        """Browser link for a ticket, or the bare ticket if no template is set."""
        if not self.ticket_url:
            return ticket
        if "%s" not in self.ticket_url:
            return self.ticket_url
        return self.ticket_url.replace("%s", ticket, 1)

    def __repr__(self):
        return f"<TicketSystem(name='{self.name}', type='{self.type}', book_time={self.book_time})>"
