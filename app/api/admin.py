"""Administrative sync endpoints"""
from typing import Dict

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.api.deps import get_current_user
from app.models import User, UserType
from app.models.base import get_db
from app.services.worklog_resync import WorklogResyncService

router = APIRouter(tags=["admin"])


@router.get("/syncentries/jira", response_model=Dict[str, str])
def sync_entries_to_jira(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Resync unsynced entries of every user against every ticket system"""
    if user.type not in (UserType.PL.value, UserType.ADMIN.value):
        raise HTTPException(status_code=403, detail="You are not allowed to perform this action.")
    return WorklogResyncService(db).resync_all()
