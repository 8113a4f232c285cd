import unittest
from unittest.mock import Mock


class _FakeRemote:
    """Tiny in-memory internal Jira: summary search and ticket creation."""

    def __init__(self):
        self.tickets = []
        self.created = 0

    def search_tickets(self, jql, fields, max_results):
        from app.services.sync_types import RemoteTicket

        needle = jql.split("summary ~ ", 1)[1].strip('"').lower()
        hits = [RemoteTicket(key=k, summary=s) for k, s in self.tickets if needle in s.lower()]
        return hits[:max_results]

    def create_ticket(self, entry, project_key, description=None):
        from app.services.sync_types import RemoteTicket

        self.created += 1
        key = f"{project_key}-{self.created}"
        summary = entry.internal_original_ticket_key or entry.ticket
        self.tickets.append((key, summary))
        return RemoteTicket(key=key, summary=summary)


class InternalTicketMirrorTests(unittest.TestCase):
    def test_search_jql_quotes_the_ticket(self):
        from app.services.internal_ticket_mirror import build_search_jql

        self.assertEqual(build_search_jql("INT", "FOO-1"), 'project = INT AND summary ~ "FOO-1"')

    def test_existing_ticket_is_reused_and_both_snapshots_rewritten(self):
        from app.services.internal_ticket_mirror import InternalTicketMirror
        from app.services.sync_types import EntrySnapshot, RemoteTicket

        client = Mock()
        client.search_tickets.return_value = [RemoteTicket(key="INT-5", summary="FOO-1")]

        before = EntrySnapshot(id=1, ticket="foo-1", internal_original_ticket_key=None)
        after = EntrySnapshot(id=1, ticket="FOO-1", internal_original_ticket_key="FOO-1")

        new_before, new_after = InternalTicketMirror().mirror(client, before, after, "INT")

        client.create_ticket.assert_not_called()
        client.search_tickets.assert_called_once_with(
            'project = INT AND summary ~ "FOO-1"', ("key", "summary"), 1
        )
        self.assertEqual(new_after.ticket, "INT-5")
        self.assertEqual(new_after.internal_original_ticket_key, "FOO-1")
        self.assertEqual(new_before.ticket, "INT-5")
        self.assertEqual(new_before.internal_original_ticket_key, "foo-1")
        # inputs are left alone
        self.assertEqual(after.ticket, "FOO-1")

    def test_previous_state_of_another_primary_ticket_keeps_its_internal_key(self):
        from app.services.internal_ticket_mirror import InternalTicketMirror
        from app.services.sync_types import EntrySnapshot, RemoteTicket

        client = Mock()
        client.search_tickets.return_value = [RemoteTicket(key="INT-6", summary="FOO-2")]

        before = EntrySnapshot(id=1, ticket="INT-5", internal_original_ticket_key="FOO-1", worklog_id=10)
        after = EntrySnapshot(id=1, ticket="FOO-2", internal_original_ticket_key="FOO-2", worklog_id=10)

        new_before, new_after = InternalTicketMirror().mirror(client, before, after, "INT")

        self.assertIs(new_before, before)
        self.assertEqual(new_after.ticket, "INT-6")
        self.assertEqual(new_after.internal_original_ticket_key, "FOO-2")

    def test_missing_ticket_is_created_with_primary_issue_link(self):
        from app.models import TicketSystem
        from app.services.internal_ticket_mirror import InternalTicketMirror
        from app.services.sync_types import EntrySnapshot, RemoteTicket

        client = Mock()
        client.search_tickets.return_value = []
        client.create_ticket.return_value = RemoteTicket(key="INT-9", summary="FOO-1")
        primary = TicketSystem(ticket_url="https://jira.customer/browse/%s")

        after = EntrySnapshot(id=1, ticket="FOO-1", internal_original_ticket_key="FOO-1")
        _, new_after = InternalTicketMirror().mirror(client, EntrySnapshot(), after, "INT", primary)

        args, kwargs = client.create_ticket.call_args
        self.assertEqual(args[1], "INT")
        self.assertEqual(kwargs["description"], "https://jira.customer/browse/FOO-1")
        self.assertEqual(new_after.ticket, "INT-9")

    def test_get_or_create_is_idempotent(self):
        from app.services.internal_ticket_mirror import InternalTicketMirror
        from app.services.sync_types import EntrySnapshot

        remote = _FakeRemote()
        mirror = InternalTicketMirror()
        fresh = EntrySnapshot(id=1, ticket="FOO-1", internal_original_ticket_key="FOO-1")

        _, first = mirror.mirror(remote, fresh, fresh, "INT")
        _, second = mirror.mirror(remote, fresh, fresh, "INT")
        # an already mirrored entry finds the same ticket again
        _, third = mirror.mirror(remote, first, first, "INT")

        self.assertEqual(remote.created, 1)
        self.assertEqual(first.ticket, second.ticket)
        self.assertEqual(third.ticket, first.ticket)
        self.assertEqual(third.internal_original_ticket_key, "FOO-1")

    def test_needs_reauthorization_is_passed_through(self):
        from app.services.internal_ticket_mirror import InternalTicketMirror
        from app.services.sync_types import EntrySnapshot, NeedsReauthorization

        client = Mock()
        client.search_tickets.return_value = NeedsReauthorization("https://jira/authorize")

        after = EntrySnapshot(ticket="FOO-1")
        result = InternalTicketMirror().mirror(client, after, after, "INT")
        self.assertEqual(result, NeedsReauthorization("https://jira/authorize"))
        client.create_ticket.assert_not_called()

    def test_entry_without_ticket_is_passed_through(self):
        from app.services.internal_ticket_mirror import InternalTicketMirror
        from app.services.sync_types import EntrySnapshot

        client = Mock()
        snap = EntrySnapshot(ticket="")
        self.assertEqual(InternalTicketMirror().mirror(client, snap, snap, "INT"), (snap, snap))
        client.search_tickets.assert_not_called()


if __name__ == "__main__":
    unittest.main()
