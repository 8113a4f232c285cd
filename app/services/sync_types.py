"""Value types passed between the sync services.

Entries travel through the sync as immutable `EntrySnapshot` values: the
state before the local save and the state after it. Steps that rewrite an
entry (the internal mirror, the work log sync) return new snapshots instead
of mutating the ORM object; the caller applies the final snapshot.

Every step that may hit an expired or missing OAuth grant returns a
`NeedsReauthorization` value instead of raising, so callers have to handle it.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time
from typing import Optional, Union


@dataclass(frozen=True)
class EntrySnapshot:
    """The fields of an entry the sync reads or writes."""

    id: Optional[int] = None
    user_id: Optional[int] = None
    project_id: Optional[int] = None
    ticket: str = ""
    internal_original_ticket_key: Optional[str] = None
    description: str = ""
    activity_name: Optional[str] = None
    day: Optional[date] = None
    start: Optional[time] = None
    duration: int = 0
    worklog_id: Optional[int] = None
    synced_to_ticketsystem: bool = False

    @classmethod
    def from_entry(cls, entry) -> "EntrySnapshot":
        activity = getattr(entry, "activity", None)
        return cls(
            id=entry.id,
            user_id=entry.user_id,
            project_id=entry.project_id,
            ticket=entry.ticket or "",
            internal_original_ticket_key=entry.internal_jira_ticket_original_key,
            description=entry.description or "",
            activity_name=activity.name if activity is not None else None,
            day=entry.day,
            start=entry.start,
            duration=int(entry.duration or 0),
            worklog_id=entry.worklog_id,
            synced_to_ticketsystem=bool(entry.synced_to_ticketsystem),
        )

    @property
    def is_original_ticket(self) -> bool:
        """True while the entry still holds its un-rewritten ticket key."""
        return self.internal_original_ticket_key == self.ticket

    def apply_to(self, entry) -> None:
        """Write the sync-owned fields back onto an ORM entry."""
        entry.ticket = self.ticket
        entry.internal_jira_ticket_original_key = self.internal_original_ticket_key
        entry.worklog_id = self.worklog_id
        entry.synced_to_ticketsystem = self.synced_to_ticketsystem


@dataclass(frozen=True)
class RemoteTicket:
    key: str
    summary: Optional[str] = None


@dataclass(frozen=True)
class RemoteWorklog:
    id: int
    started: Optional[str] = None
    time_spent_seconds: Optional[int] = None
    comment: Optional[str] = None


@dataclass(frozen=True)
class Synced:
    # None when the remote work log was removed (entry delete).
    worklog_id: Optional[int]
    entry: Optional[EntrySnapshot] = None


@dataclass(frozen=True)
class Skipped:
    reason: str
    # Set when the entry was still rewritten (internal mirror, dropped work log).
    entry: Optional[EntrySnapshot] = None


@dataclass(frozen=True)
class NeedsReauthorization:
    redirect_url: str

    @property
    def message(self) -> str:
        return f"401 - Unauthorized. Please authorize: {self.redirect_url}"


@dataclass(frozen=True)
class Failed:
    message: str


@dataclass(frozen=True)
class AuthorizationFailed:
    message: str


SyncOutcome = Union[Synced, Skipped, NeedsReauthorization, Failed]
