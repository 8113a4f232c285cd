"""Find the ticket system that receives an entry's work log"""
import logging
from typing import Optional

from sqlalchemy.orm import Session

from app.models import TicketSystem

logger = logging.getLogger(__name__)


class TicketSystemResolver:
    """Pure lookup: project -> ticket system with work log sync, or None."""

    def __init__(self, db: Session):
        self.db = db

    def internal_ticket_system(self, project) -> Optional[TicketSystem]:
        """The internal mirror system of a project, regardless of book_time."""
        if project is None or not project.has_internal_jira_project_key():
            return None
        ts_id = project.internal_ticket_system_id()
        if ts_id is None:
            logger.warning(
                f"Project {project.id} has an unusable internal ticket system id "
                f"'{project.internal_jira_ticket_system}'"
            )
            return None
        return self.db.query(TicketSystem).filter(TicketSystem.id == ts_id).first()

    def configured(self, project) -> Optional[TicketSystem]:
        """Internal system when the project mirrors, otherwise its primary one."""
        if project is None:
            return None
        if project.has_internal_jira_project_key():
            return self.internal_ticket_system(project)
        return project.ticket_system

    def resolve(self, project) -> Optional[TicketSystem]:
        ticket_system = self.configured(project)
        if ticket_system is None:
            return None
        if not ticket_system.book_time:
            return None
        if not ticket_system.system_type.supports_time_tracking:
            return None
        return ticket_system
