# backend/app/main.py
import asyncio
import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware

from app.config import DATABASE_URL, LOG_LEVEL, PORT, SESSION_SECRET
from app.db import Database
from app.errors import ShowtixError
from app.locks import ShowtimeLocks
from app.routes.admin import router as admin_router
from app.routes.auth import router as auth_router
from app.routes.booking import router as bookings_router
from app.routes.catalogue import router as catalogue_router
from app.storage.base import Storage
from app.storage.hybrid import HybridStorage
from app.storage.memory import MemoryStorage
from app.storage.sql import SqlStorage

logger = logging.getLogger("app")


def configure_logging(level: str = LOG_LEVEL) -> None:
    logging.basicConfig(level=level.upper(), format="%(asctime)s %(levelname)s [%(name)s] %(message)s")


def build_storage(database_url: Optional[str] = DATABASE_URL) -> Storage:
    if not database_url:
        logger.info("DATABASE_URL not set, using in-memory storage")
        return MemoryStorage()
    logger.info("using database storage with in-memory fallback")
    return HybridStorage(SqlStorage(Database(database_url)), MemoryStorage())


async def prepare_storage(storage: Storage) -> None:
    if isinstance(storage, HybridStorage):
        if isinstance(storage.primary, SqlStorage):
            db = storage.primary.db
            if not await db.ping():
                # unreachable database: the first storage call demotes to memory
                logger.warning("database unreachable at startup, tables not created")
            else:
                try:
                    await db.create_all()
                except Exception as exc:
                    logger.warning("could not create tables: %s", exc)
        await storage.start()
    await storage.initialize_data()


def storage_mode(storage: Optional[Storage]) -> str:
    if isinstance(storage, HybridStorage):
        return storage.mode.value
    if isinstance(storage, MemoryStorage):
        return "memory"
    return "unknown"


def _log_loop_exception(loop, context):
    # Keep serving when a background task fails; just record it
    logger.error("unhandled exception in event loop: %s", context.get("message"), exc_info=context.get("exception"))


@asynccontextmanager
async def lifespan(app: FastAPI):
    asyncio.get_running_loop().set_exception_handler(_log_loop_exception)
    if app.state.storage is None:
        app.state.storage = build_storage()
    await prepare_storage(app.state.storage)
    yield
    storage = app.state.storage
    if isinstance(storage, HybridStorage) and isinstance(storage.primary, SqlStorage):
        await storage.primary.db.dispose()
    await app.state.locks.close()


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ShowtixError)
    async def showtix_error(request: Request, exc: ShowtixError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def invalid_request(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": "invalid request data", "errors": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception):
        logger.exception("unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": "Internal Server Error"})


def create_app(storage: Optional[Storage] = None, locks: Optional[ShowtimeLocks] = None) -> FastAPI:
    """
    Build the application around an explicit storage instance.

    Without one, storage is chosen from DATABASE_URL when the app starts.
    """
    configure_logging()
    app = FastAPI(title="Showtix - Backend", lifespan=lifespan)
    app.state.storage = storage
    app.state.locks = locks if locks is not None else ShowtimeLocks.from_url()

    app.add_middleware(SessionMiddleware, secret_key=SESSION_SECRET, same_site="lax")

    @app.middleware("http")
    async def log_api_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        if request.url.path.startswith("/api"):
            duration_ms = (time.perf_counter() - start) * 1000
            logger.info("%s %s %s in %dms", request.method, request.url.path, response.status_code, duration_ms)
        return response

    register_error_handlers(app)

    @app.get("/health")
    async def health(request: Request):
        return {"status": "ok", "storage": storage_mode(request.app.state.storage)}

    app.include_router(catalogue_router)
    app.include_router(bookings_router)
    app.include_router(auth_router)
    # Register admin routes after the public API
    app.include_router(admin_router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=PORT)
