"""Shared route dependencies"""
from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from app.models import User
from app.models.base import get_db
from app.security import request_username, unauthorized_headers


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    """Acting user, taken from the HTTP Basic username"""
    username = request_username(request)
    if username is None:
        raise HTTPException(status_code=401, detail="Unauthorized", headers=unauthorized_headers())

    user = db.query(User).filter(User.username == username).first()
    if user is None:
        raise HTTPException(status_code=401, detail="Unknown user", headers=unauthorized_headers())
    return user
