"""Local entry save/delete flows with remote work log sync"""
import logging
from dataclasses import dataclass, field
from datetime import date, time, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from app.models import Activity, Customer, Entry, Project, SyncLog, User, UserType
from app.models.entry import normalize_ticket
from app.models.sync_log import SyncAction, SyncStatus
from app.services.exceptions import EntryNotFoundError, EntryValidationError
from app.services.sync_types import (
    EntrySnapshot,
    Failed,
    NeedsReauthorization,
    Skipped,
    Synced,
    SyncOutcome,
)
from app.services.ticket_validation import check_format, validate_ticket_for_project
from app.services.worklog_sync import WorklogSyncCoordinator

logger = logging.getLogger(__name__)

MODIFIED_ANYWAY = "Dataset was modified in Timetracker anyway"
BULK_MAX_DAYS = 100

_STATUS_BY_OUTCOME = {
    Synced: SyncStatus.SUCCESS,
    Skipped: SyncStatus.SKIPPED,
    NeedsReauthorization: SyncStatus.NEEDS_REAUTHORIZATION,
    Failed: SyncStatus.FAILED,
}


def outcome_message(outcome: SyncOutcome) -> str:
    if isinstance(outcome, Synced):
        return f"work log {outcome.worklog_id}" if outcome.worklog_id else "work log removed"
    if isinstance(outcome, Skipped):
        return outcome.reason
    return outcome.message


def original_ticket_key(
    project: Optional[Project],
    before: EntrySnapshot,
    stored_key: Optional[str],
    ticket: str,
    ext_ticket: str,
) -> Optional[str]:
    """Primary ticket key to store next to the posted ticket.

    A new entry starts with its own ticket, so its first sync is not taken
    for a rename. Only mirrored entries carry the key across saves, and only
    while the ticket is unchanged (posted as internal or as primary key).
    """
    if ext_ticket:
        return ext_ticket
    if not ticket:
        return None
    if before.id is None:
        return ticket
    if project is None or not project.has_internal_jira_project_key():
        return None
    if stored_key and ticket in (before.ticket, stored_key):
        return stored_key
    return ticket


def alert_for(outcome: SyncOutcome) -> Optional[str]:
    """User-facing warning for an outcome, None when there is nothing to say."""
    if isinstance(outcome, NeedsReauthorization):
        return outcome.message
    if isinstance(outcome, Failed):
        return f"{outcome.message}. {MODIFIED_ANYWAY}"
    return None


@dataclass
class SaveResult:
    entry: Entry
    outcome: SyncOutcome
    alert: Optional[str] = None
    redirect_url: Optional[str] = None


@dataclass
class DeleteResult:
    deleted: bool
    outcome: SyncOutcome
    alert: Optional[str] = None
    redirect_url: Optional[str] = None


@dataclass
class BulkResult:
    entries: List[Entry] = field(default_factory=list)
    alerts: List[str] = field(default_factory=list)

    @property
    def message(self) -> str:
        return f"{len(self.entries)} entries have been added"


class EntryService:
    """Entry store operations. The local write always happens first."""

    def __init__(self, db: Session, coordinator: Optional[WorklogSyncCoordinator] = None):
        self.db = db
        self.coordinator = coordinator or WorklogSyncCoordinator(db)

    # Lookups

    def _get_entry(self, user: User, entry_id: int) -> Entry:
        entry = self.db.query(Entry).filter(Entry.id == entry_id).first()
        if entry is None:
            raise EntryNotFoundError(f"No entry for id {entry_id}.")
        if entry.user_id != user.id:
            raise EntryValidationError("You are not allowed to modify this entry.")
        return entry

    def _get_project(self, project_id: Optional[int]) -> Optional[Project]:
        if not project_id:
            return None
        project = self.db.query(Project).filter(Project.id == project_id).first()
        if project is None:
            raise EntryValidationError("Given project does not exist.")
        if not project.active:
            raise EntryValidationError("This project is inactive and cannot be used for booking.")
        return project

    def _get_customer(self, customer_id: Optional[int], project: Optional[Project]) -> Optional[Customer]:
        if not customer_id and project is not None:
            customer_id = project.customer_id
        if not customer_id:
            return None
        customer = self.db.query(Customer).filter(Customer.id == customer_id).first()
        if customer is None:
            raise EntryValidationError("Given customer does not exist.")
        if not customer.active:
            raise EntryValidationError("This customer is inactive and cannot be used for booking.")
        return customer

    def _get_activity(self, activity_id: Optional[int]) -> Optional[Activity]:
        if not activity_id:
            return None
        activity = self.db.query(Activity).filter(Activity.id == activity_id).first()
        if activity is None:
            raise EntryValidationError("Given activity does not exist.")
        return activity

    # Sync bookkeeping

    def _log_sync(self, entry_id: Optional[int], project, ticket: str, outcome: SyncOutcome, action: SyncAction):
        ticket_system = self.coordinator.resolver.configured(project)
        worklog_id = outcome.worklog_id if isinstance(outcome, Synced) else None
        log = SyncLog(
            entry_id=entry_id,
            ticket_system_id=ticket_system.id if ticket_system is not None else None,
            ticket=ticket or None,
            worklog_id=worklog_id,
            status=_STATUS_BY_OUTCOME[type(outcome)],
            action=action,
            message=outcome_message(outcome),
        )
        self.db.add(log)

    def sync_entry(
        self,
        entry: Entry,
        before: EntrySnapshot,
        user: User,
        action: SyncAction = SyncAction.SAVE,
    ) -> SyncOutcome:
        """Sync an already committed entry and persist whatever the sync rewrote."""
        outcome = self.coordinator.sync(EntrySnapshot.from_entry(entry), before, user, entry.project)
        if isinstance(outcome, (Synced, Skipped)) and outcome.entry is not None:
            outcome.entry.apply_to(entry)
        self._log_sync(entry.id, entry.project, entry.ticket, outcome, action)
        self.db.commit()
        return outcome

    # Flows

    def save(self, user: User, data: Dict[str, Any]) -> SaveResult:
        """Create or update an entry, then push its work log."""
        entry_id = data.get("id")
        if entry_id:
            entry = self._get_entry(user, entry_id)
            before = EntrySnapshot.from_entry(entry)
        else:
            entry = Entry(user_id=user.id)
            before = EntrySnapshot(user_id=user.id)

        project = self._get_project(data.get("project_id"))
        customer = self._get_customer(data.get("customer_id"), project)
        activity = self._get_activity(data.get("activity_id"))

        ticket = normalize_ticket(data.get("ticket"))
        ext_ticket = normalize_ticket(data.get("ext_ticket"))

        if user.type == UserType.DEV.value and activity is not None and activity.needs_ticket and not ticket:
            raise EntryValidationError(f"For the activity '{activity.name}' you must specify a ticket.")

        if project is not None:
            validate_ticket_for_project(project, ticket)
        elif ticket and not check_format(ticket):
            raise EntryValidationError(f"The ticket's format is not recognized: {ticket}")

        start = data.get("start")
        end = data.get("end")
        if start is None or end is None or end <= start:
            raise EntryValidationError("Duration must be greater than 0!")

        entry.project = project
        entry.customer = customer
        entry.activity = activity
        entry.ticket = ticket
        entry.internal_jira_ticket_original_key = original_ticket_key(
            project, before, entry.internal_jira_ticket_original_key, ticket, ext_ticket
        )
        entry.description = data.get("description") or ""
        entry.day = data.get("day") or date.today()
        entry.start = start
        entry.end = end
        entry.calc_duration()
        entry.synced_to_ticketsystem = False

        logger.info(f"Tracking data: {entry.to_dict()}")

        if entry.id is None:
            self.db.add(entry)
        self.db.commit()
        self.db.refresh(entry)

        outcome = self.sync_entry(entry, before, user)
        result = SaveResult(entry=entry, outcome=outcome, alert=alert_for(outcome))
        if isinstance(outcome, NeedsReauthorization):
            result.redirect_url = outcome.redirect_url
        return result

    def delete(self, user: User, entry_id: int) -> DeleteResult:
        """Remove the remote work log, then the entry.

        The entry is kept when the user first has to re-authorize, so the
        work log can still be removed afterwards.
        """
        entry = self._get_entry(user, entry_id)
        snapshot = EntrySnapshot.from_entry(entry)
        project = entry.project

        outcome = self.coordinator.remove(snapshot, user, project)
        self._log_sync(entry.id, project, entry.ticket, outcome, SyncAction.DELETE)

        if isinstance(outcome, NeedsReauthorization):
            self.db.commit()
            return DeleteResult(
                deleted=False,
                outcome=outcome,
                alert=outcome.message,
                redirect_url=outcome.redirect_url,
            )

        self.db.delete(entry)
        self.db.commit()
        logger.info(f"Deleted entry {entry_id} of user {user.username}")
        return DeleteResult(deleted=True, outcome=outcome, alert=alert_for(outcome))

    def bulk_create(self, user: User, data: Dict[str, Any]) -> BulkResult:
        """One ticket-less entry per day in the range, same times every day."""
        project = self._get_project(data.get("project_id"))
        customer = self._get_customer(data.get("customer_id"), project)
        activity = self._get_activity(data.get("activity_id"))

        start_date: date = data["start_date"]
        end_date: date = data.get("end_date") or start_date
        if end_date < start_date:
            raise EntryValidationError("End date has to be greater than the start date.")

        start: time = data["start"]
        end: time = data["end"]
        if end <= start:
            raise EntryValidationError("Duration must be greater than 0!")

        skip_weekend = bool(data.get("skip_weekend"))
        result = BulkResult()

        day = start_date
        for _ in range(BULK_MAX_DAYS):
            if day > end_date:
                break
            if skip_weekend and day.weekday() >= 5:
                day += timedelta(days=1)
                continue

            entry = Entry(
                user_id=user.id,
                project=project,
                customer=customer,
                activity=activity,
                ticket="",
                description=data.get("description") or "",
                day=day,
                start=start,
                end=end,
                synced_to_ticketsystem=False,
            )
            entry.calc_duration()
            self.db.add(entry)
            self.db.commit()
            self.db.refresh(entry)
            result.entries.append(entry)

            outcome = self.sync_entry(entry, EntrySnapshot(user_id=user.id), user)
            alert = alert_for(outcome)
            if alert:
                result.alerts.append(alert)

            day += timedelta(days=1)

        logger.info(f"Bulk created {len(result.entries)} entries for {user.username}")
        return result
