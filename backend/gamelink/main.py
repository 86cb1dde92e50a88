"""FastAPI application entry point."""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from gamelink.clients.neynar import NeynarError
from gamelink.config import settings
from gamelink.database import Base, engine

# Import routers
from gamelink.routers import admin, chats, events, farcaster, groups, history, notifications, participants, profiles, scheduler

# Import all models so Base.metadata knows about them
from gamelink.models.profile import Profile                     # noqa: F401
from gamelink.models.group import Group, GroupMember, GroupInvitation  # noqa: F401
from gamelink.models.chat import Chat, ChatParticipant, Message  # noqa: F401
from gamelink.models.event import Event                         # noqa: F401
from gamelink.models.participant import EventParticipant         # noqa: F401
from gamelink.models.notification import NotificationPreferences, NotificationToken  # noqa: F401

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="GameLink",
    description="Gaming events, groups and chats for Farcaster users",
    version="0.1.0",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ())[1:])
    message = f"{field}: {first.get('msg')}" if field else first.get("msg", "Invalid request")
    return JSONResponse(
        status_code=400,
        content={"error": message, "details": [{"loc": list(e["loc"]), "msg": e["msg"]} for e in errors]},
    )


@app.exception_handler(NeynarError)
async def neynar_exception_handler(request: Request, exc: NeynarError):
    logger.error("Neynar request failed on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=502, content={"error": "Farcaster data is temporarily unavailable", "details": str(exc)})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


# Register routers; history must precede events so /history is not read as an event id
app.include_router(profiles.router, prefix="/api/profiles", tags=["Profiles"])
app.include_router(history.router, prefix="/api/events/history", tags=["History"])
app.include_router(events.router, prefix="/api/events", tags=["Events"])
app.include_router(participants.router, prefix="/api/events", tags=["Participants"])
app.include_router(chats.router, prefix="/api/chats", tags=["Chats"])
app.include_router(groups.router, prefix="/api/groups", tags=["Groups"])
app.include_router(notifications.router, prefix="/api/notifications", tags=["Notifications"])
app.include_router(notifications.webhook_router, prefix="/api/webhook", tags=["Webhook"])
app.include_router(farcaster.router, prefix="/api/farcaster", tags=["Farcaster"])
app.include_router(scheduler.router, prefix="/api/scheduler", tags=["Scheduler"])
app.include_router(admin.router, prefix="/api/admin", tags=["Admin"])


@app.on_event("startup")
def on_startup():
    """Create database tables on startup (for SQLite dev mode)."""
    if settings.DATABASE_URL.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)


@app.get("/api/health")
def health_check():
    return {"status": "ok"}
