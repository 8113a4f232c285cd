"""Seed a demo SQLite DB with sample WorklogBridge data.

Creates ticket systems, projects, users and a few entries for local demos.
It does NOT contact Jira; entries are left unsynced.

Usage:
  python scripts/seed_demo_data.py --db ./data/demo_worklogbridge.db --overwrite
"""

from __future__ import annotations

import argparse
import os
import sys
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from pathlib import Path


REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


def _sqlite_url_for_path(db_path: Path) -> str:
    # SQLAlchemy sqlite absolute path uses 4 slashes: sqlite:////abs/path
    p = db_path.expanduser().resolve()
    return f"sqlite:////{p}"


@dataclass(frozen=True)
class SeedResult:
    db_path: Path
    entries: int


def seed_demo_db(db_path: Path, overwrite: bool = False) -> SeedResult:
    db_path = db_path.expanduser().resolve()
    db_path.parent.mkdir(parents=True, exist_ok=True)

    if overwrite and db_path.exists():
        db_path.unlink()

    # IMPORTANT: DATABASE_URL must be set before importing app.* modules
    os.environ["DATABASE_URL"] = _sqlite_url_for_path(db_path)
    os.environ.setdefault("LOG_LEVEL", "WARNING")

    from app.models.base import init_db, SessionLocal  # noqa: WPS433
    from app.models import (  # noqa: WPS433
        Activity,
        Customer,
        Entry,
        Project,
        SyncLog,
        TicketSystem,
        User,
        UserTicketSystem,
    )
    from app.models.sync_log import SyncAction, SyncStatus  # noqa: WPS433

    init_db()

    now = datetime.utcnow()
    today = date.today()

    db = SessionLocal()
    try:
        # Ticket systems
        customer_jira = TicketSystem(
            name="Customer Jira",
            type="JIRA",
            book_time=True,
            url="https://jira.customer.example.com",
            ticket_url="https://jira.customer.example.com/browse/%s",
            oauth_consumer_key="worklogbridge-demo",
            oauth_consumer_secret="",
        )
        internal_jira = TicketSystem(
            name="Internal Jira",
            type="JIRA",
            book_time=True,
            url="https://jira.internal.example.com",
            ticket_url="https://jira.internal.example.com/browse/%s",
            oauth_consumer_key="worklogbridge-demo",
            oauth_consumer_secret="",
        )
        helpdesk = TicketSystem(
            name="Helpdesk",
            type="OTRS",
            book_time=False,
            url="https://otrs.example.com",
            login="demo",
            password="not-a-real-password",
        )
        db.add_all([customer_jira, internal_jira, helpdesk])
        db.commit()
        for ts in (customer_jira, internal_jira, helpdesk):
            db.refresh(ts)

        # Customers / projects
        acme = Customer(name="ACME Corp", active=True)
        globex = Customer(name="Globex", active=True)
        db.add_all([acme, globex])
        db.commit()
        db.refresh(acme)
        db.refresh(globex)

        shop = Project(
            name="ACME Shop",
            customer_id=acme.id,
            jira_id="SHOP,ACME",
            ticket_system_id=customer_jira.id,
        )
        # Time on Globex tickets is mirrored into the internal Jira.
        portal = Project(
            name="Globex Portal",
            customer_id=globex.id,
            jira_id="GLX",
            ticket_system_id=customer_jira.id,
            internal_jira_ticket_system=str(internal_jira.id),
            internal_jira_project_key="INT",
        )
        support = Project(
            name="Globex Support",
            customer_id=globex.id,
            jira_id="",
            ticket_system_id=helpdesk.id,
        )
        db.add_all([shop, portal, support])

        development = Activity(name="Development", needs_ticket=True)
        meeting = Activity(name="Meeting", needs_ticket=False)
        db.add_all([development, meeting])

        alice = User(username="alice", type="DEV")
        bob = User(username="bob", type="PL")
        db.add_all([alice, bob])
        db.commit()
        for obj in (shop, portal, support, development, meeting, alice, bob):
            db.refresh(obj)

        # Bob declined the OAuth grant for the internal Jira.
        db.add(
            UserTicketSystem(
                user_id=bob.id,
                ticket_system_id=internal_jira.id,
                access_token="",
                token_secret="",
                avoid_connection=True,
            )
        )

        # Entries for the last few working days
        samples = [
            (alice, shop, development, "SHOP-12", "Checkout rounding bug", time(9, 0), time(11, 30)),
            (alice, portal, development, "GLX-7", "Login page redesign", time(12, 0), time(15, 0)),
            (alice, shop, meeting, "", "Sprint planning", time(15, 0), time(16, 0)),
            (bob, portal, meeting, "GLX-7", "Review with customer", time(10, 0), time(10, 45)),
            (bob, support, meeting, "", "Helpdesk rotation", time(13, 0), time(14, 0)),
        ]
        entries = []
        for offset, (user, project, activity, ticket, description, start, end) in enumerate(samples):
            day = today - timedelta(days=offset // 2)
            entry = Entry(
                user_id=user.id,
                project_id=project.id,
                customer_id=project.customer_id,
                activity_id=activity.id,
                ticket=ticket,
                internal_jira_ticket_original_key=ticket or None,
                description=description,
                day=day,
                start=start,
                end=end,
                synced_to_ticketsystem=False,
            )
            entry.calc_duration()
            entries.append(entry)
        db.add_all(entries)
        db.commit()

        db.add_all(
            [
                SyncLog(
                    entry_id=entries[0].id,
                    ticket_system_id=customer_jira.id,
                    ticket=entries[0].ticket,
                    status=SyncStatus.NEEDS_REAUTHORIZATION,
                    action=SyncAction.SAVE,
                    message="401 - Unauthorized. Please authorize: https://jira.customer.example.com/...",
                    created_at=now - timedelta(hours=3),
                ),
                SyncLog(
                    entry_id=entries[2].id,
                    ticket_system_id=customer_jira.id,
                    status=SyncStatus.SKIPPED,
                    action=SyncAction.SAVE,
                    message="no ticket",
                    created_at=now - timedelta(hours=2),
                ),
            ]
        )
        db.commit()

    finally:
        db.close()

    return SeedResult(db_path=db_path, entries=len(samples))


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed a demo WorklogBridge SQLite DB")
    parser.add_argument(
        "--db",
        default="./data/demo_worklogbridge.db",
        help="Path to SQLite DB file to create (default: ./data/demo_worklogbridge.db)",
    )
    parser.add_argument(
        "--overwrite",
        action="store_true",
        help="Delete existing DB file first",
    )
    args = parser.parse_args()

    result = seed_demo_db(Path(args.db), overwrite=bool(args.overwrite))
    print(f"Seeded demo DB with {result.entries} entries at: {result.db_path}")


if __name__ == "__main__":
    main()
