from fastapi import APIRouter, Depends, Request, status

from app.deps import get_storage, require_user_id
from app.errors import InvalidRequest, Unauthenticated
from app.schemas import UserCreate, UserOut
from app.services.auth import authenticate, register_user
from app.storage.base import Storage


router = APIRouter(prefix="/api")


@router.post("/register", response_model=UserOut, status_code=status.HTTP_201_CREATED)
async def register(payload: UserCreate, request: Request, storage: Storage = Depends(get_storage)):
    if not payload.username.strip():
        raise InvalidRequest("username must not be blank")
    user = await register_user(storage, payload.username, payload.password)
    request.session["user_id"] = user.id
    return user


@router.post("/login", response_model=UserOut)
async def login(payload: UserCreate, request: Request, storage: Storage = Depends(get_storage)):
    user = await authenticate(storage, payload.username, payload.password)
    if user is None:
        raise Unauthenticated("invalid username or password")
    request.session["user_id"] = user.id
    return user


@router.post("/logout")
async def logout(request: Request):
    request.session.clear()
    return {"status": "ok"}


@router.get("/user", response_model=UserOut)
async def current_user(request: Request, user_id: int = Depends(require_user_id), storage: Storage = Depends(get_storage)):
    user = await storage.get_user(user_id)
    if not user:
        # session refers to a user this storage no longer knows
        request.session.clear()
        raise Unauthenticated()
    return user
