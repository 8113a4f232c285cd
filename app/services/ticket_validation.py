"""Ticket key format and project prefix rules"""
import re
from typing import Optional

from app.services.exceptions import EntryValidationError

TICKET_PATTERN = re.compile(r"^[A-Z]+[0-9A-Z]*-[0-9]+$", re.IGNORECASE)


def check_format(ticket: str) -> bool:
    """True if the ticket looks like PROJECT-123."""
    return bool(TICKET_PATTERN.match(ticket or ""))


def get_prefix(ticket: str) -> Optional[str]:
    """Project part of a well-formed ticket key."""
    if not check_format(ticket):
        return None
    return ticket.split("-", 1)[0]


def validate_ticket_for_project(project, ticket: str) -> None:
    """Reject tickets that cannot belong to the project.

    Raises EntryValidationError; never talks to a remote system.
    """
    if not ticket:
        return

    if not check_format(ticket):
        raise EntryValidationError(
            f"The ticket's format is not recognized: {ticket}"
        )

    prefixes = project.jira_prefixes()
    if not prefixes:
        return

    prefix = get_prefix(ticket)
    if prefix in prefixes or project.matches_internal_jira_project(prefix):
        return

    raise EntryValidationError(
        f"The ticket's Jira ID '{prefix}' does not match the project's Jira ID '{project.jira_id}'."
    )
