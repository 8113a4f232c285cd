"""Services"""

from app.services.entry_service import EntryService
from app.services.internal_ticket_mirror import InternalTicketMirror
from app.services.jira_client import JiraClient
from app.services.jira_oauth import JiraOAuthSessionManager
from app.services.ticket_system_resolver import TicketSystemResolver
from app.services.worklog_resync import WorklogResyncService
from app.services.worklog_sync import WorklogSyncCoordinator

__all__ = [
    "EntryService",
    "InternalTicketMirror",
    "JiraClient",
    "JiraOAuthSessionManager",
    "TicketSystemResolver",
    "WorklogResyncService",
    "WorklogSyncCoordinator",
]
