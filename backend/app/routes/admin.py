from fastapi import APIRouter, Depends, status

from app.deps import get_storage, require_admin
from app.errors import NotFound
from app.schemas import Movie, MovieCreate, Showtime, ShowtimeCreate
from app.storage.base import Storage


# Admin routes
router = APIRouter(prefix="/admin", dependencies=[Depends(require_admin)])


@router.post("/seed_demo_data", status_code=status.HTTP_201_CREATED)
async def seed_demo(storage: Storage = Depends(get_storage)):
    """
    Idempotent seed endpoint for demos.
    - Loads the sample catalogue only if no movies exist yet.
    """
    created = await storage.initialize_data()
    movies = await storage.list_movies()
    return {"created": created, "movies": len(movies)}


@router.post("/movies", response_model=Movie, status_code=status.HTTP_201_CREATED)
async def create_movie(payload: MovieCreate, storage: Storage = Depends(get_storage)):
    return await storage.create_movie(payload)


@router.post("/showtimes", response_model=Showtime, status_code=status.HTTP_201_CREATED)
async def create_showtime(payload: ShowtimeCreate, storage: Storage = Depends(get_storage)):
    if not await storage.get_movie(payload.movie_id):
        raise NotFound("movie not found")
    # seats for the new showtime are generated with it
    return await storage.create_showtime_with_seats(payload)
