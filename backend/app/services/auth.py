# backend/app/services/auth.py
from typing import Optional

from werkzeug.security import check_password_hash, generate_password_hash

from app.errors import DuplicateKey
from app.schemas import User, UserCreate
from app.storage.base import Storage


async def register_user(storage: Storage, username: str, password: str) -> User:
    username = username.strip()
    # Fast pre-check to provide nicer error, then rely on the unique key for races
    if await storage.get_user_by_username(username):
        raise DuplicateKey("username already registered", key=username)
    return await storage.create_user(UserCreate(username=username, password=generate_password_hash(password)))


async def authenticate(storage: Storage, username: str, password: str) -> Optional[User]:
    user = await storage.get_user_by_username(username.strip())
    if user is None or not check_password_hash(user.password, password):
        return None
    return user
