"""Mirror tickets into an internal Jira project"""
import logging
from dataclasses import replace
from typing import Optional, Tuple, Union

from app.services.jira_client import JiraClient
from app.services.sync_types import EntrySnapshot, NeedsReauthorization

logger = logging.getLogger(__name__)


def canonical_ticket(entry: EntrySnapshot) -> str:
    """Primary ticket key of an entry, even after it was rewritten."""
    return entry.internal_original_ticket_key or entry.ticket


def build_search_jql(project_key: str, ticket: str) -> str:
    escaped = ticket.replace("\\", "\\\\").replace('"', '\\"')
    return f'project = {project_key} AND summary ~ "{escaped}"'


class InternalTicketMirror:
    """Get-or-create of an internal ticket named after the entry's ticket.

    The entry is rewritten to point at the internal ticket. Its previous
    state is rewritten too when it names the same primary ticket, so ticket
    comparisons downstream stay meaningful.
    """

    def mirror(
        self,
        client: JiraClient,
        before: EntrySnapshot,
        after: EntrySnapshot,
        project_key: str,
        primary_ticket_system=None,
    ) -> Union[Tuple[EntrySnapshot, EntrySnapshot], NeedsReauthorization]:
        if not after.ticket or not project_key:
            return before, after

        canonical = canonical_ticket(after)
        old_canonical = canonical_ticket(before)

        found = client.search_tickets(build_search_jql(project_key, canonical), ("key", "summary"), 1)
        if isinstance(found, NeedsReauthorization):
            return found

        if found:
            key = found[0].key
            logger.debug(f"Reusing internal ticket {key} for {canonical}")
        else:
            ticket = client.create_ticket(
                replace(after, internal_original_ticket_key=canonical),
                project_key,
                description=self._description(canonical, primary_ticket_system),
            )
            if isinstance(ticket, NeedsReauthorization):
                return ticket
            key = ticket.key
            logger.info(f"Created internal ticket {key} for {canonical} in {project_key}")

        if old_canonical and old_canonical.upper() == canonical.upper():
            before = replace(before, ticket=key, internal_original_ticket_key=old_canonical)
        # A previous state naming another primary ticket keeps its own key.
        return before, replace(after, ticket=key, internal_original_ticket_key=canonical)

    @staticmethod
    def _description(canonical: str, primary_ticket_system) -> Optional[str]:
        if primary_ticket_system is None:
            return canonical
        return primary_ticket_system.issue_link(canonical)
