# backend/app/deps.py
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, status

from app.config import ADMIN_KEY
from app.errors import Unauthenticated
from app.services.booking import BookingEngine
from app.storage.base import Storage


def get_storage(request: Request) -> Storage:
    return request.app.state.storage


def get_booking_engine(request: Request, storage: Storage = Depends(get_storage)) -> BookingEngine:
    return BookingEngine(storage, request.app.state.locks)


def current_user_id(request: Request) -> Optional[int]:
    return request.session.get("user_id")


def require_user_id(user_id: Optional[int] = Depends(current_user_id)) -> int:
    if user_id is None:
        raise Unauthenticated()
    return user_id


def require_admin(x_admin_key: Optional[str] = Header(None)):
    if x_admin_key is None or x_admin_key != ADMIN_KEY:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="admin auth required")
