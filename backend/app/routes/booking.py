from typing import List, Optional

from fastapi import APIRouter, Depends, status

from app.deps import current_user_id, get_booking_engine, get_storage, require_user_id
from app.errors import NotFound
from app.schemas import Booking, BookingRequest
from app.services.booking import BookingEngine
from app.storage.base import Storage


router = APIRouter(prefix="/api")


@router.post("/bookings", response_model=Booking, status_code=status.HTTP_201_CREATED)
async def post_booking(
    req: BookingRequest,
    engine: BookingEngine = Depends(get_booking_engine),
    user_id: Optional[int] = Depends(current_user_id),
):
    return await engine.create_booking(
        movie_id=req.movie_id,
        showtime_id=req.showtime_id,
        seat_ids=req.seat_ids,
        user_id=user_id,
    )


@router.get("/bookings/{booking_id}", response_model=Booking)
async def get_booking(booking_id: str, storage: Storage = Depends(get_storage)):
    booking = await storage.get_booking(booking_id)
    if not booking:
        raise NotFound("booking not found")
    return booking


@router.get("/my-bookings", response_model=List[Booking])
async def my_bookings(user_id: int = Depends(require_user_id), storage: Storage = Depends(get_storage)):
    return await storage.list_bookings_for_user(user_id)
