import logging
import unittest
from datetime import date, time
from unittest.mock import Mock

logging.disable(logging.CRITICAL)


def _session():
    from sqlalchemy import create_engine
    from sqlalchemy.orm import sessionmaker
    from sqlalchemy.pool import StaticPool

    from app.models.base import init_db

    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    init_db(bind=engine)
    return sessionmaker(bind=engine, autoflush=False)()


class WorklogResyncServiceTests(unittest.TestCase):
    def setUp(self):
        from app.models import Project, TicketSystem, User

        self.db = _session()
        self.jira = TicketSystem(name="Customer Jira", type="JIRA", book_time=True, url="https://a.example")
        self.other = TicketSystem(name="Other Jira", type="JIRA", book_time=True, url="https://b.example")
        self.db.add_all([self.jira, self.other])
        self.db.commit()

        self.project = Project(name="Shop", jira_id="FOO", ticket_system_id=self.jira.id)
        self.other_project = Project(name="Ops", jira_id="OPS", ticket_system_id=self.other.id)
        self.alice = User(username="alice", type="DEV")
        self.bob = User(username="bob", type="DEV")
        self.db.add_all([self.project, self.other_project, self.alice, self.bob])
        self.db.commit()

        self.client = Mock()
        self.client.ticket_exists.return_value = True
        self.client.delete_worklog.return_value = None
        self.client.create_or_update_worklog.side_effect = lambda entry: 1000 + entry.id

        self.sessions = Mock()
        self.sessions.check_user_ticket_system.return_value = True
        self.sessions.get_authorized_client.return_value = self.client

    def tearDown(self):
        self.db.close()

    def _service(self):
        from app.services.entry_service import EntryService
        from app.services.ticket_system_resolver import TicketSystemResolver
        from app.services.worklog_resync import WorklogResyncService
        from app.services.worklog_sync import WorklogSyncCoordinator

        coordinator = WorklogSyncCoordinator(
            self.db, sessions=self.sessions, resolver=TicketSystemResolver(self.db)
        )
        return WorklogResyncService(self.db, EntryService(self.db, coordinator))

    def _entry(self, user, project, ticket, day, synced=False):
        from app.models import Entry

        entry = Entry(
            user_id=user.id,
            project_id=project.id,
            ticket=ticket,
            internal_jira_ticket_original_key=ticket or None,
            day=day,
            start=time(9, 0),
            end=time(10, 0),
            duration=60,
            synced_to_ticketsystem=synced,
        )
        self.db.add(entry)
        self.db.commit()
        return entry

    def test_update_entries_limited_takes_newest_pending_entries_of_that_system(self):
        old = self._entry(self.alice, self.project, "FOO-1", date(2024, 1, 1))
        new = self._entry(self.alice, self.project, "FOO-2", date(2024, 1, 3))
        self._entry(self.alice, self.project, "FOO-3", date(2024, 1, 4), synced=True)
        self._entry(self.alice, self.project, "", date(2024, 1, 5))
        self._entry(self.alice, self.other_project, "OPS-1", date(2024, 1, 6))
        self._entry(self.bob, self.project, "FOO-4", date(2024, 1, 7))

        outcomes = self._service().update_entries_limited(self.alice, self.jira, limit=1)

        self.assertEqual(len(outcomes), 1)
        written = self.client.create_or_update_worklog.call_args[0][0]
        self.assertEqual(written.ticket, "FOO-2")
        self.db.refresh(new)
        self.db.refresh(old)
        self.assertTrue(new.synced_to_ticketsystem)
        self.assertEqual(new.worklog_id, 1000 + new.id)
        self.assertFalse(old.synced_to_ticketsystem)

    def test_update_entries_limited_respects_opt_out(self):
        self._entry(self.alice, self.project, "FOO-1", date(2024, 1, 1))
        self.sessions.check_user_ticket_system.return_value = False

        self.assertEqual(self._service().update_entries_limited(self.alice, self.jira), [])
        self.client.create_or_update_worklog.assert_not_called()

    def test_update_entries_limited_stops_on_reauthorization(self):
        from app.services.sync_types import NeedsReauthorization

        self._entry(self.alice, self.project, "FOO-1", date(2024, 1, 1))
        self._entry(self.alice, self.project, "FOO-2", date(2024, 1, 2))
        self.sessions.get_authorized_client.return_value = NeedsReauthorization("https://a.example/authorize")

        outcomes = self._service().update_entries_limited(self.alice, self.jira)
        self.assertEqual(len(outcomes), 1)

    def test_resync_all_reports_every_pair_independently(self):
        from app.services.exceptions import RemoteUnavailable
        from app.services.sync_types import NeedsReauthorization

        self._entry(self.alice, self.project, "FOO-1", date(2024, 1, 1))
        self._entry(self.alice, self.other_project, "OPS-1", date(2024, 1, 1))
        self._entry(self.bob, self.project, "FOO-2", date(2024, 1, 1))

        broken = Mock()
        broken.ticket_exists.side_effect = RemoteUnavailable("Other Jira is down")

        def authorized(user, ticket_system):
            if ticket_system.id == self.other.id:
                return broken
            if user.username == "bob":
                return NeedsReauthorization("https://a.example/authorize?oauth_token=t")
            return self.client

        self.sessions.get_authorized_client.side_effect = authorized

        results = self._service().resync_all()

        self.assertEqual(
            results,
            {
                "Customer Jira | alice": "success",
                "Other Jira | alice": "error (Other Jira is down)",
                "Customer Jira | bob": "error (401 - Unauthorized. Please authorize: https://a.example/authorize?oauth_token=t)",
                "Other Jira | bob": "success",
            },
        )

    def test_resync_all_survives_unexpected_errors(self):
        self._entry(self.alice, self.project, "FOO-1", date(2024, 1, 1))

        def check(user, ticket_system):
            if ticket_system.id == self.other.id:
                raise RuntimeError("boom")
            return True

        self.sessions.check_user_ticket_system.side_effect = check

        results = self._service().resync_all()

        self.assertEqual(results["Other Jira | alice"], "error (boom)")
        self.assertEqual(results["Customer Jira | alice"], "success")


if __name__ == "__main__":
    unittest.main()
