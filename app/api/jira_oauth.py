"""Jira OAuth callback endpoint"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from app.api.deps import get_current_user
from app.config import settings
from app.models import TicketSystem, User
from app.models.base import get_db
from app.services.entry_service import EntryService
from app.services.jira_oauth import JiraOAuthSessionManager
from app.services.sync_types import AuthorizationFailed, NeedsReauthorization
from app.services.worklog_resync import WorklogResyncService
from app.services.worklog_sync import WorklogSyncCoordinator

logger = logging.getLogger(__name__)

router = APIRouter(tags=["oauth"])


@router.get("/jiraoauthcallback")
def jira_oauth_callback(
    tsid: int,
    oauth_token: str = Query(...),
    oauth_verifier: str = Query(...),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Finish the OAuth handshake and push the newest pending entries"""
    ticket_system = db.query(TicketSystem).filter(TicketSystem.id == tsid).first()
    if not ticket_system:
        raise HTTPException(status_code=404, detail="Ticket system not found")

    sessions = JiraOAuthSessionManager(db)
    result = sessions.complete_authorization(user, ticket_system, oauth_token, oauth_verifier)

    if isinstance(result, NeedsReauthorization):
        return RedirectResponse(result.redirect_url, status_code=302)
    if isinstance(result, AuthorizationFailed):
        if oauth_verifier == "denied":
            return RedirectResponse("/", status_code=302)
        raise HTTPException(status_code=502, detail=result.message)

    coordinator = WorklogSyncCoordinator(db, sessions=sessions)
    resync = WorklogResyncService(db, EntryService(db, coordinator))
    outcomes = resync.update_entries_limited(user, ticket_system, settings.oauth_callback_resync_limit)
    logger.info(f"Resynced {len(outcomes)} entries of {user.username} after OAuth handshake")

    return RedirectResponse("/", status_code=302)
