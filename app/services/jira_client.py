"""Jira REST client wrapper used for work log sync"""
import functools
import logging
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Union
from zoneinfo import ZoneInfo

import requests
from jira import JIRA, JIRAError

from app.config import settings
from app.services.exceptions import (
    JiraApiError,
    JiraResourceNotFoundError,
    JiraUnauthorizedError,
    RemoteUnavailable,
    RemoteValidationError,
)
from app.services.sync_types import EntrySnapshot, NeedsReauthorization, RemoteTicket, RemoteWorklog

logger = logging.getLogger(__name__)

JIRA_STARTED_FORMAT = "%Y-%m-%dT%H:%M:%S.000%z"


def build_worklog_comment(entry: EntrySnapshot) -> str:
    activity = entry.activity_name or "no activity specified"
    description = entry.description or "no description given"
    return f"#{entry.id}: {activity}: {description}"


def worklog_started(entry: EntrySnapshot, timezone_name: str) -> datetime:
    """Entry day and start time (minute precision) as an aware datetime."""
    if entry.day is None or entry.start is None:
        raise RemoteValidationError(f"Entry {entry.id} has no day/start time")
    start = entry.start.replace(second=0, microsecond=0)
    return datetime.combine(entry.day, start).replace(tzinfo=ZoneInfo(timezone_name))


def _reauthorize_on_401(method):
    """Turn a 401 from Jira into a returned NeedsReauthorization value."""

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        try:
            return method(self, *args, **kwargs)
        except JiraUnauthorizedError as e:
            logger.warning(f"Jira {self.url} rejected the OAuth token: {e}")
            return self.on_unauthorized()

    return wrapper


class JiraClient:
    """Authorized access to one Jira ticket system for one user.

    Public methods either return their result or a NeedsReauthorization value
    when Jira answers 401. Other failures raise JiraApiError subclasses.
    """

    def __init__(
        self,
        url: str,
        jira: JIRA,
        on_unauthorized: Callable[[], NeedsReauthorization],
        timezone_name: Optional[str] = None,
    ):
        self.url = url
        self.jira = jira
        self.on_unauthorized = on_unauthorized
        self.timezone_name = timezone_name or settings.worklog_timezone

    @staticmethod
    def _translate_error(exc: JIRAError, context: str) -> JiraApiError:
        status = getattr(exc, "status_code", None)
        text = getattr(exc, "text", None) or str(exc)
        message = f"{context}: {text}"
        if status == 401:
            return JiraUnauthorizedError(message, status)
        if status == 404:
            return JiraResourceNotFoundError(message, status)
        if status == 400:
            return RemoteValidationError(message, status)
        return RemoteUnavailable(message, status)

    def _call(self, fn, context: str):
        """Run one Jira request, mapping library errors to our taxonomy."""
        try:
            return fn()
        except JIRAError as e:
            error = self._translate_error(e, context)
            if not isinstance(error, (JiraResourceNotFoundError, JiraUnauthorizedError)):
                logger.error(f"Jira request failed ({context}): {e}")
            raise error from e
        except requests.RequestException as e:
            logger.error(f"Jira {self.url} unreachable ({context}): {e}")
            raise RemoteUnavailable(f"{context}: {e}") from e

    @_reauthorize_on_401
    def ticket_exists(self, key: str) -> Union[bool, NeedsReauthorization]:
        try:
            self._call(lambda: self.jira.issue(key, fields="key"), f"get ticket {key}")
        except JiraResourceNotFoundError:
            return False
        return True

    @_reauthorize_on_401
    def search_tickets(
        self,
        jql: str,
        fields: Iterable[str] = ("key", "summary"),
        max_results: int = 1,
    ) -> Union[List[RemoteTicket], NeedsReauthorization]:
        issues = self._call(
            lambda: self.jira.search_issues(jql, fields=",".join(fields), maxResults=max_results),
            f"search '{jql}'",
        )
        tickets = []
        for issue in issues:
            summary = getattr(getattr(issue, "fields", None), "summary", None)
            tickets.append(RemoteTicket(key=issue.key, summary=summary))
        return tickets

    @_reauthorize_on_401
    def create_ticket(
        self,
        entry: EntrySnapshot,
        project_key: str,
        description: Optional[str] = None,
    ) -> Union[RemoteTicket, NeedsReauthorization]:
        """Create a Task whose summary is the entry's original ticket key."""
        summary = entry.internal_original_ticket_key or entry.ticket
        if not project_key or not summary:
            raise RemoteValidationError(
                f"Cannot create a ticket for entry {entry.id}: project key and ticket are required"
            )
        fields = {
            "project": {"key": project_key},
            "summary": summary,
            "description": description if description is not None else summary,
            "issuetype": {"name": "Task"},
        }
        issue = self._call(lambda: self.jira.create_issue(fields=fields), f"create ticket in {project_key}")
        logger.info(f"Created ticket {issue.key} for {summary} in {self.url}")
        return RemoteTicket(key=issue.key, summary=summary)

    @_reauthorize_on_401
    def get_worklog(self, entry: EntrySnapshot) -> Union[Optional[RemoteWorklog], NeedsReauthorization]:
        """Remote work log of the entry, or None if it has none (any more)."""
        if not entry.ticket or not entry.worklog_id:
            return None
        try:
            worklog = self._fetch_worklog(entry)
        except JiraResourceNotFoundError:
            return None
        raw = getattr(worklog, "raw", None) or {}
        seconds = raw.get("timeSpentSeconds")
        return RemoteWorklog(
            id=int(worklog.id),
            started=raw.get("started"),
            time_spent_seconds=int(seconds) if seconds is not None else None,
            comment=raw.get("comment"),
        )

    def _fetch_worklog(self, entry: EntrySnapshot):
        return self._call(
            lambda: self.jira.worklog(entry.ticket, str(entry.worklog_id)),
            f"get work log {entry.worklog_id} of {entry.ticket}",
        )

    @_reauthorize_on_401
    def create_or_update_worklog(self, entry: EntrySnapshot) -> Union[int, NeedsReauthorization]:
        """Write the entry as a work log; returns the remote work log id.

        A stored work log id that no longer exists remotely is dropped and a
        new work log is created instead.
        """
        if not entry.ticket:
            raise RemoteValidationError(f"Entry {entry.id} has no ticket")

        started = worklog_started(entry, self.timezone_name)
        comment = build_worklog_comment(entry)
        seconds = int(entry.duration) * 60

        if entry.worklog_id:
            try:
                worklog = self._fetch_worklog(entry)
            except JiraResourceNotFoundError:
                logger.info(
                    f"Work log {entry.worklog_id} of {entry.ticket} is gone, creating a new one"
                )
            else:
                self._call(
                    lambda: worklog.update(
                        fields={
                            "comment": comment,
                            "started": started.strftime(JIRA_STARTED_FORMAT),
                            "timeSpentSeconds": seconds,
                        }
                    ),
                    f"update work log {entry.worklog_id} of {entry.ticket}",
                )
                return int(entry.worklog_id)

        worklog = self._call(
            lambda: self.jira.add_worklog(
                entry.ticket,
                timeSpentSeconds=str(seconds),
                started=started,
                comment=comment,
            ),
            f"add work log to {entry.ticket}",
        )
        logger.info(f"Created work log {worklog.id} on {entry.ticket} for entry {entry.id}")
        return int(worklog.id)

    @_reauthorize_on_401
    def delete_worklog(self, entry: EntrySnapshot) -> Optional[NeedsReauthorization]:
        """Remove the entry's work log; missing work logs are not an error."""
        if not entry.ticket or not entry.worklog_id:
            return None
        try:
            worklog = self._fetch_worklog(entry)
            self._call(worklog.delete, f"delete work log {entry.worklog_id} of {entry.ticket}")
        except JiraResourceNotFoundError:
            logger.info(f"Work log {entry.worklog_id} of {entry.ticket} already removed")
            return None
        logger.info(f"Deleted work log {entry.worklog_id} of {entry.ticket}")
        return None
