import logging
import os

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import errors
from .database import Base, SessionLocal, engine
from .models import Game
from .routes import games, groups, sessions, statistics, templates, users

log_level = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Game Night League API",
    version="1.0.0",
    description=(
        "Board-game session tracking for groups, with league points, "
        "leaderboards and personal statistics."
    ),
)

cors_origins = os.getenv(
    "CORS_ORIGINS",
    "http://localhost:3000,http://127.0.0.1:3000",
)
allow_origins = [origin.strip() for origin in cors_origins.split(",") if origin.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


async def integrity_error_handler(request: Request, exc: errors.IntegrityError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)})


async def storage_unavailable_handler(request: Request, exc: errors.StorageUnavailableError) -> JSONResponse:
    logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content={"detail": str(exc)})


app.add_exception_handler(errors.IntegrityError, integrity_error_handler)
app.add_exception_handler(errors.StorageUnavailableError, storage_unavailable_handler)

Base.metadata.create_all(bind=engine)


def should_auto_seed() -> bool:
    value = os.getenv("AUTO_SEED_ON_EMPTY", "true").strip().lower()
    return value in {"1", "true", "yes", "on"}


def seed_if_empty() -> None:
    if not should_auto_seed():
        return

    db = SessionLocal()
    try:
        has_games = db.query(Game.id).first() is not None
    finally:
        db.close()

    if has_games:
        return

    from seed import seed

    logger.info("Empty database, seeding demo data")
    seed()


seed_if_empty()


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


app.include_router(users.router, prefix="/users")
app.include_router(groups.router, prefix="/groups")
app.include_router(games.router, prefix="/games")
app.include_router(templates.router, prefix="/templates")
app.include_router(sessions.router, prefix="/sessions")
app.include_router(statistics.router, prefix="/statistics")
