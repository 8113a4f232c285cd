"""Project model"""

from datetime import datetime
from typing import List

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from app.models.base import Base


def _split_keys(value) -> List[str]:
    return [part.strip() for part in str(value or "").split(",") if part.strip()]


class Project(Base):
    """Project booked against, with its ticket system configuration"""

    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=True)
    active = Column(Boolean, default=True, nullable=False)

    # Comma-separated list of valid ticket prefixes, e.g. "FOO,BAR"
    jira_id = Column(String, nullable=True)

    # Primary ticket system
    ticket_system_id = Column(Integer, ForeignKey("ticket_systems.id"), nullable=True)

    # Internal mirroring: secondary ticket system (id, stored as string like the
    # legacy schema) and the project key tickets are mirrored into.
    internal_jira_ticket_system = Column(String, nullable=True)
    internal_jira_project_key = Column(String, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    customer = relationship("Customer")
    ticket_system = relationship("TicketSystem", foreign_keys=[ticket_system_id])

    def has_internal_jira_project_key(self) -> bool:
        return bool(self.internal_jira_project_key) and bool(self.internal_jira_ticket_system)

    def internal_ticket_system_id(self):
        """Id of the internal ticket system, or None if unset/unparseable."""
        if not self.internal_jira_ticket_system:
            return None
        try:
            return int(self.internal_jira_ticket_system)
        except (TypeError, ValueError):
            return None

    def jira_prefixes(self) -> List[str]:
        return _split_keys(self.jira_id)

    def matches_internal_jira_project(self, jira_id: str) -> bool:
        """Check if a ticket prefix is one of the internal project keys."""
        if not self.has_internal_jira_project_key():
            return False
        return jira_id in _split_keys(self.internal_jira_project_key)

    def __repr__(self):
        return f"<Project(name='{self.name}', jira_id='{self.jira_id}')>"
