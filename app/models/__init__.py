"""Database models"""

from app.models.base import Base
from app.models.activity import Activity
from app.models.customer import Customer
from app.models.entry import Entry
from app.models.project import Project
from app.models.sync_log import SyncLog
from app.models.ticket_system import TicketSystem, TicketSystemType
from app.models.user import User, UserType
from app.models.user_ticket_system import UserTicketSystem

__all__ = [
    "Base",
    "Activity",
    "Customer",
    "Entry",
    "Project",
    "SyncLog",
    "TicketSystem",
    "TicketSystemType",
    "User",
    "UserType",
    "UserTicketSystem",
]
