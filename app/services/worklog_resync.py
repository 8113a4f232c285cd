"""Batch resync of unsynced entries"""
import logging
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from app.config import settings
from app.models import Entry, TicketSystem, User
from app.models.sync_log import SyncAction
from app.services.entry_service import EntryService
from app.services.sync_types import EntrySnapshot, Failed, NeedsReauthorization, SyncOutcome

logger = logging.getLogger(__name__)


class WorklogResyncService:
    """Pushes entries that are saved locally but not yet synced."""

    def __init__(self, db: Session, entry_service: Optional[EntryService] = None):
        self.db = db
        self.entry_service = entry_service or EntryService(db)
        self.coordinator = self.entry_service.coordinator

    def pending_entries(self, user: User, ticket_system: TicketSystem, limit: int) -> List[Entry]:
        """Unsynced entries of the user that belong to the ticket system, newest first."""
        query = (
            self.db.query(Entry)
            .filter(
                Entry.user_id == user.id,
                Entry.synced_to_ticketsystem == False,
                Entry.ticket != "",
            )
            .order_by(Entry.day.desc(), Entry.start.desc())
        )
        entries = []
        for entry in query:
            target = self.coordinator.resolver.resolve(entry.project)
            if target is None or target.id != ticket_system.id:
                continue
            entries.append(entry)
            if limit and len(entries) >= limit:
                break
        return entries

    def update_entries_limited(
        self, user: User, ticket_system: TicketSystem, limit: Optional[int] = None
    ) -> List[SyncOutcome]:
        """Resync up to `limit` entries; stops early when Jira wants a new grant."""
        if limit is None:
            limit = settings.resync_entry_limit
        if not self.coordinator.sessions.check_user_ticket_system(user, ticket_system):
            return []

        outcomes: List[SyncOutcome] = []
        for entry in self.pending_entries(user, ticket_system, limit):
            snapshot = EntrySnapshot.from_entry(entry)
            outcome = self.entry_service.sync_entry(entry, snapshot, user, SyncAction.RESYNC)
            outcomes.append(outcome)
            if isinstance(outcome, NeedsReauthorization):
                break
        return outcomes

    def resync_all(self, limit: Optional[int] = None) -> Dict[str, str]:
        """Every user against every ticket system; one failing pair never stops the run."""
        results: Dict[str, str] = {}
        users = self.db.query(User).order_by(User.id).all()
        ticket_systems = self.db.query(TicketSystem).order_by(TicketSystem.id).all()

        for user in users:
            for ticket_system in ticket_systems:
                key = f"{ticket_system.name} | {user.username}"
                try:
                    outcomes = self.update_entries_limited(user, ticket_system, limit)
                except Exception as e:
                    self.db.rollback()
                    logger.error(f"Resync {key} failed: {e}")
                    results[key] = f"error ({e})"
                    continue

                problems = [o for o in outcomes if isinstance(o, (NeedsReauthorization, Failed))]
                if problems:
                    results[key] = f"error ({problems[-1].message})"
                else:
                    results[key] = "success"

        logger.info(f"Resynced {len(results)} user/ticket system pairs")
        return results
