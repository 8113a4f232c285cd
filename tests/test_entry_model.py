import unittest
from datetime import date, time
from types import SimpleNamespace


class EntryModelTests(unittest.TestCase):
    def test_normalize_ticket_uppercases_and_strips_all_blanks(self):
        from app.models.entry import normalize_ticket

        self.assertEqual(normalize_ticket(" foo - 12 "), "FOO-12")
        self.assertEqual(normalize_ticket(None), "")

    def test_calc_duration_in_minutes(self):
        from app.models import Entry

        entry = Entry(start=time(9, 15), end=time(11, 0))
        self.assertEqual(entry.calc_duration(), 105)
        self.assertEqual(entry.duration_string, "01:45")

    def test_calc_duration_without_times_is_zero(self):
        from app.models import Entry

        entry = Entry(start=None, end=time(11, 0))
        self.assertEqual(entry.calc_duration(), 0)

    def test_to_dict_exposes_sync_fields(self):
        from app.models import Entry

        entry = Entry(
            id=3,
            user_id=1,
            project_id=2,
            ticket="INT-5",
            internal_jira_ticket_original_key="FOO-1",
            description="work",
            day=date(2024, 3, 7),
            start=time(8, 0),
            end=time(9, 30),
            duration=90,
            worklog_id=77,
            synced_to_ticketsystem=True,
        )
        data = entry.to_dict()
        self.assertEqual(data["date"], "07/03/2024")
        self.assertEqual(data["start"], "08:00")
        self.assertEqual(data["ticket"], "INT-5")
        self.assertEqual(data["extTicket"], "FOO-1")
        self.assertEqual(data["durationString"], "01:30")
        self.assertEqual(data["worklogId"], 77)
        self.assertTrue(data["syncedToTicketsystem"])


class TicketSystemModelTests(unittest.TestCase):
    def test_issue_link_uses_template(self):
        from app.models import TicketSystem

        ts = TicketSystem(ticket_url="https://jira.example/browse/%s")
        self.assertEqual(ts.issue_link("FOO-1"), "https://jira.example/browse/FOO-1")

    def test_issue_link_without_template_is_the_ticket(self):
        from app.models import TicketSystem

        self.assertEqual(TicketSystem(ticket_url=None).issue_link("FOO-1"), "FOO-1")

    def test_unknown_type_is_not_work_log_capable(self):
        from app.models import TicketSystem, TicketSystemType

        self.assertIs(TicketSystem(type="jira").system_type, TicketSystemType.JIRA)
        self.assertIs(TicketSystem(type="REDMINE").system_type, TicketSystemType.UNKNOWN)
        self.assertFalse(TicketSystem(type="OTRS").system_type.supports_time_tracking)


class EntrySnapshotTests(unittest.TestCase):
    def test_from_entry_and_apply_to_round_trip_sync_fields(self):
        from app.models import Entry
        from app.services.sync_types import EntrySnapshot

        entry = Entry(
            id=1,
            user_id=2,
            project_id=3,
            ticket="FOO-1",
            internal_jira_ticket_original_key="FOO-1",
            description="",
            day=date(2024, 1, 2),
            start=time(9, 0),
            duration=30,
            worklog_id=None,
            synced_to_ticketsystem=False,
        )
        entry.activity = None
        snap = EntrySnapshot.from_entry(entry)
        self.assertTrue(snap.is_original_ticket)
        self.assertIsNone(snap.activity_name)

        target = SimpleNamespace()
        EntrySnapshot(ticket="INT-5", internal_original_ticket_key="FOO-1", worklog_id=9,
                      synced_to_ticketsystem=True).apply_to(target)
        self.assertEqual(target.ticket, "INT-5")
        self.assertEqual(target.internal_jira_ticket_original_key, "FOO-1")
        self.assertEqual(target.worklog_id, 9)
        self.assertTrue(target.synced_to_ticketsystem)


if __name__ == "__main__":
    unittest.main()
