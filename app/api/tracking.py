"""Time entry endpoints"""
from datetime import date, time
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.api.deps import get_current_user
from app.models import User
from app.models.base import get_db
from app.services.entry_service import EntryService
from app.services.exceptions import EntryNotFoundError, EntryValidationError

router = APIRouter(prefix="/tracking", tags=["tracking"])


class EntrySave(BaseModel):
    id: Optional[int] = None
    day: date
    start: time
    end: time
    project_id: Optional[int] = None
    customer_id: Optional[int] = None
    activity_id: Optional[int] = None
    ticket: str = ""
    # Primary ticket key of an entry whose ticket was mirrored internally.
    ext_ticket: Optional[str] = None
    description: str = ""


class EntryDelete(BaseModel):
    id: int


class BulkEntry(BaseModel):
    start_date: date
    end_date: Optional[date] = None
    start: time
    end: time
    project_id: Optional[int] = None
    customer_id: Optional[int] = None
    activity_id: Optional[int] = None
    description: str = ""
    skip_weekend: bool = False


class SaveResponse(BaseModel):
    result: Dict[str, Any]
    alert: Optional[str] = None
    redirect_url: Optional[str] = None


class DeleteResponse(BaseModel):
    success: bool
    alert: Optional[str] = None


class BulkResponse(BaseModel):
    success: bool
    message: str
    entries: List[Dict[str, Any]]
    alerts: List[str] = []


@router.post("/save", response_model=SaveResponse)
def save_entry(
    payload: EntrySave,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Create or update an entry; the remote work log follows best-effort"""
    try:
        result = EntryService(db).save(user, payload.model_dump())
    except EntryNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except EntryValidationError as e:
        raise HTTPException(status_code=406, detail=str(e))

    return SaveResponse(
        result=result.entry.to_dict(),
        alert=result.alert,
        redirect_url=result.redirect_url,
    )


@router.post("/delete", response_model=DeleteResponse)
def delete_entry(
    payload: EntryDelete,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Delete an entry and its remote work log"""
    try:
        result = EntryService(db).delete(user, payload.id)
    except EntryNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except EntryValidationError as e:
        raise HTTPException(status_code=406, detail=str(e))

    if not result.deleted:
        # Re-authorize first so the remote work log can still be removed.
        raise HTTPException(
            status_code=403,
            detail={"message": result.alert, "redirect_url": result.redirect_url},
        )
    return DeleteResponse(success=True, alert=result.alert)


@router.post("/bulkentry", response_model=BulkResponse)
def bulk_entry(
    payload: BulkEntry,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Book the same time span on every day of a date range"""
    try:
        result = EntryService(db).bulk_create(user, payload.model_dump())
    except EntryValidationError as e:
        raise HTTPException(status_code=406, detail=str(e))

    return BulkResponse(
        success=True,
        message=result.message,
        entries=[entry.to_dict() for entry in result.entries],
        alerts=result.alerts,
    )
