"""Sync log model"""
from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Text, Enum
from sqlalchemy.orm import relationship
from datetime import datetime
import enum
from app.models.base import Base


class SyncStatus(str, enum.Enum):
    """Sync status enumeration"""
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"
    NEEDS_REAUTHORIZATION = "needs_reauthorization"


class SyncAction(str, enum.Enum):
    """What triggered the sync attempt"""
    SAVE = "save"
    DELETE = "delete"
    RESYNC = "resync"


class SyncLog(Base):
    """Log of work log sync attempts"""

    __tablename__ = "sync_logs"

    id = Column(Integer, primary_key=True, index=True)

    # No FK on entry_id: logs outlive deleted entries.
    entry_id = Column(Integer, nullable=True, index=True)
    ticket_system_id = Column(Integer, ForeignKey("ticket_systems.id"), nullable=True)
    ticket = Column(String, nullable=True)
    worklog_id = Column(Integer, nullable=True)

    # Sync details
    status = Column(Enum(SyncStatus), nullable=False)
    action = Column(Enum(SyncAction), nullable=False)
    message = Column(Text, nullable=True)

    # Timestamp
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    # Relationships
    ticket_system = relationship("TicketSystem")

    def __repr__(self):
        return f"<SyncLog(entry_id={self.entry_id}, status={self.status}, action={self.action})>"
