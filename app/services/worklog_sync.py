"""Work log sync state machine"""
import logging
from dataclasses import replace
from typing import Optional

from sqlalchemy.orm import Session

from app.services.exceptions import JiraApiError
from app.services.internal_ticket_mirror import InternalTicketMirror
from app.services.jira_oauth import JiraOAuthSessionManager
from app.services.sync_types import (
    EntrySnapshot,
    Failed,
    NeedsReauthorization,
    Skipped,
    Synced,
    SyncOutcome,
)
from app.services.ticket_system_resolver import TicketSystemResolver

logger = logging.getLogger(__name__)


def should_delete_old_worklog(is_original_ticket: bool, tickets_differ: bool) -> bool:
    """Whether the previous ticket's work log is stale and must be removed.

    An entry still holding its original ticket is on its first sync, so a
    different previous ticket is not a rename.
    """
    return not is_original_ticket and tickets_differ


def _internal_project_key(project) -> Optional[str]:
    keys = [k.strip() for k in (project.internal_jira_project_key or "").split(",") if k.strip()]
    return keys[0] if keys else None


class WorklogSyncCoordinator:
    """Decides and runs create/update/delete of an entry's remote work log.

    Returns a SyncOutcome and never raises for remote failures; the local
    entry has been committed before any of this runs.
    """

    def __init__(
        self,
        db: Session,
        sessions: Optional[JiraOAuthSessionManager] = None,
        resolver: Optional[TicketSystemResolver] = None,
        mirror: Optional[InternalTicketMirror] = None,
    ):
        self.db = db
        self.sessions = sessions or JiraOAuthSessionManager(db)
        self.resolver = resolver or TicketSystemResolver(db)
        self.mirror = mirror or InternalTicketMirror()

    def _target(self, user, project):
        """(ticket system, None) or (None, Skipped)."""
        ticket_system = self.resolver.resolve(project)
        if ticket_system is None:
            return None, Skipped("no ticket system")
        if not self.sessions.check_user_ticket_system(user, ticket_system):
            return None, Skipped(f"sync with {ticket_system.name} disabled for user")
        return ticket_system, None

    def sync(self, entry: EntrySnapshot, previous: EntrySnapshot, user, project) -> SyncOutcome:
        after, before = entry, previous
        if not after.ticket:
            return Skipped("no ticket")

        ticket_system, skipped = self._target(user, project)
        if skipped is not None:
            return skipped

        try:
            client = self.sessions.get_authorized_client(user, ticket_system)
            if isinstance(client, NeedsReauthorization):
                return client

            if project.has_internal_jira_project_key():
                mirrored = self.mirror.mirror(
                    client, before, after, _internal_project_key(project), project.ticket_system
                )
                if isinstance(mirrored, NeedsReauthorization):
                    return mirrored
                before, after = mirrored

            tickets_differ = before.ticket != after.ticket
            if (
                before.ticket
                and before.worklog_id
                and should_delete_old_worklog(after.is_original_ticket, tickets_differ)
            ):
                deleted = client.delete_worklog(before)
                if isinstance(deleted, NeedsReauthorization):
                    return deleted
                logger.info(f"Moved entry {after.id} from {before.ticket} to {after.ticket}")
                after = replace(after, worklog_id=None)

            exists = client.ticket_exists(after.ticket)
            if isinstance(exists, NeedsReauthorization):
                return exists
            if not exists:
                logger.info(f"Ticket {after.ticket} not found in {ticket_system.name}, skipping work log")
                return Skipped(f"ticket {after.ticket} does not exist in {ticket_system.name}", entry=after)

            if after.duration <= 0:
                deleted = client.delete_worklog(after)
                if isinstance(deleted, NeedsReauthorization):
                    return deleted
                return Skipped("zero duration", entry=replace(after, worklog_id=None, synced_to_ticketsystem=False))

            worklog_id = client.create_or_update_worklog(after)
            if isinstance(worklog_id, NeedsReauthorization):
                return worklog_id
        except JiraApiError as e:
            logger.warning(f"Work log sync of entry {after.id} to {ticket_system.name} failed: {e}")
            return Failed(str(e))

        return Synced(worklog_id, replace(after, worklog_id=worklog_id, synced_to_ticketsystem=True))

    def remove(self, entry: EntrySnapshot, user, project) -> SyncOutcome:
        """Delete the remote work log of an entry that is being removed."""
        if not entry.ticket or not entry.worklog_id:
            return Skipped("no work log")

        ticket_system, skipped = self._target(user, project)
        if skipped is not None:
            return skipped

        try:
            client = self.sessions.get_authorized_client(user, ticket_system)
            if isinstance(client, NeedsReauthorization):
                return client
            deleted = client.delete_worklog(entry)
            if isinstance(deleted, NeedsReauthorization):
                return deleted
        except JiraApiError as e:
            logger.warning(f"Removing work log {entry.worklog_id} of {entry.ticket} failed: {e}")
            return Failed(str(e))

        return Synced(None, replace(entry, worklog_id=None, synced_to_ticketsystem=False))
