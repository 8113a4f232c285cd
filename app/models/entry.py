"""Time entry model"""
from datetime import date, datetime, time
from typing import Any, Dict, Optional

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Index, Integer, String, Text, Time
from sqlalchemy.orm import relationship

from app.models.base import Base


def normalize_ticket(value: Optional[str]) -> str:
    """Tickets are stored upper-cased, without any blanks."""
    return "".join(str(value or "").split()).upper()


class Entry(Base):
    """Time worked by one user on one day, optionally against a ticket"""

    __tablename__ = "entries"
    __table_args__ = (
        Index("idx_entries_user_synced_day", "user_id", "synced_to_ticketsystem", "day"),
        Index("idx_entries_worklog_id", "worklog_id"),
    )

    id = Column(Integer, primary_key=True, index=True)

    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=True)
    activity_id = Column(Integer, ForeignKey("activities.id"), nullable=True)

    ticket = Column(String(32), nullable=False, default="")
    # Ticket key of the primary system when `ticket` was rewritten to an
    # internal mirror key.
    internal_jira_ticket_original_key = Column(String(50), nullable=True)
    description = Column(Text, nullable=False, default="")

    day = Column(Date, nullable=False)
    start = Column(Time, nullable=False)
    end = Column(Time, nullable=False)
    duration = Column(Integer, nullable=False, default=0)  # minutes

    # Remote work log id, set once a create/update succeeded
    worklog_id = Column(Integer, nullable=True)
    synced_to_ticketsystem = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    user = relationship("User")
    project = relationship("Project")
    customer = relationship("Customer")
    activity = relationship("Activity")

    def calc_duration(self) -> int:
        """Derive duration in minutes from start/end."""
        if self.start is None or self.end is None:
            self.duration = 0
            return 0
        anchor = date(2000, 1, 1)
        delta = datetime.combine(anchor, self.end) - datetime.combine(anchor, self.start)
        self.duration = int(round(delta.total_seconds() / 60))
        return self.duration

    @staticmethod
    def _fmt_time(value: Optional[time]) -> Optional[str]:
        return value.strftime("%H:%M") if value is not None else None

    @property
    def duration_string(self) -> str:
        minutes = int(self.duration or 0)
        return f"{minutes // 60:02d}:{minutes % 60:02d}"

    def to_dict(self) -> Dict[str, Any]:
        customer = self.customer_id
        if customer is None and self.project is not None:
            customer = self.project.customer_id
        return {
            "id": self.id,
            "date": self.day.strftime("%d/%m/%Y") if self.day else None,
            "start": self._fmt_time(self.start),
            "end": self._fmt_time(self.end),
            "user": self.user_id,
            "customer": customer,
            "project": self.project_id,
            "activity": self.activity_id,
            "description": self.description or "",
            "ticket": self.ticket or "",
            "extTicket": self.internal_jira_ticket_original_key or "",
            "duration": self.duration or 0,
            "durationString": self.duration_string,
            "worklogId": self.worklog_id,
            "syncedToTicketsystem": bool(self.synced_to_ticketsystem),
        }

    def __repr__(self):
        return f"<Entry(id={self.id}, ticket='{self.ticket}', duration={self.duration})>"
