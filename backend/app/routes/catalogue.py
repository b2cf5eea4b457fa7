from typing import List

from fastapi import APIRouter, Depends

from app.deps import get_storage
from app.errors import NotFound
from app.schemas import Movie, Seat, Showtime
from app.storage.base import Storage


router = APIRouter(prefix="/api")


@router.get("/movies", response_model=List[Movie])
async def list_movies(storage: Storage = Depends(get_storage)):
    return await storage.list_movies()


@router.get("/movies/{movie_id}", response_model=Movie)
async def get_movie(movie_id: int, storage: Storage = Depends(get_storage)):
    movie = await storage.get_movie(movie_id)
    if not movie:
        raise NotFound("movie not found")
    return movie


@router.get("/showtimes", response_model=List[Showtime])
async def list_showtimes(storage: Storage = Depends(get_storage)):
    return await storage.list_showtimes()


@router.get("/showtimes/{movie_id}", response_model=List[Showtime])
async def list_showtimes_for_movie(movie_id: int, storage: Storage = Depends(get_storage)):
    return await storage.list_showtimes_for_movie(movie_id)


@router.get("/seats/{showtime_id}", response_model=List[Seat])
async def list_seats(showtime_id: int, storage: Storage = Depends(get_storage)):
    return await storage.list_seats_for_showtime(showtime_id)
