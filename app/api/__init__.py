"""API routes"""

from app.api import admin, jira_oauth, sync, tracking

__all__ = ["tracking", "jira_oauth", "admin", "sync"]
