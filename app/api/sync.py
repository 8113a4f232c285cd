"""Sync log endpoints"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional
from pydantic import BaseModel
from datetime import datetime

from app.models.base import get_db
from app.models import SyncLog

router = APIRouter(prefix="/api/sync", tags=["sync"])


class SyncLogResponse(BaseModel):
    id: int
    entry_id: Optional[int] = None
    ticket_system_id: Optional[int] = None
    ticket: Optional[str] = None
    worklog_id: Optional[int] = None
    status: str
    action: str
    message: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


@router.get("/logs", response_model=List[SyncLogResponse])
def list_sync_logs(
    limit: int = 100,
    entry_id: int = None,
    ticket_system_id: int = None,
    db: Session = Depends(get_db)
):
    """List sync logs"""
    query = db.query(SyncLog).order_by(SyncLog.created_at.desc())
    if entry_id:
        query = query.filter(SyncLog.entry_id == entry_id)
    if ticket_system_id:
        query = query.filter(SyncLog.ticket_system_id == ticket_system_id)
    logs = query.limit(limit).all()
    return logs
