# practice admin backend api
# fastapi app over async mongodb: patients, sessions, calendar, finances and content

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from practice_admin.config import settings
from practice_admin.services.backend import BackendQueryError, RecordNotFoundError
from practice_admin.services.db import db
from practice_admin.services.google_calendar_service import GoogleCalendarError, GoogleNotConnectedError
from practice_admin.routers import auth, patients, sessions, calendar, finances, content

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """startup: connect to mongodb. shutdown: close connection."""
    logger.info("Starting practice admin backend...")
    await db.connect()
    logger.info("Practice admin backend ready")
    yield
    logger.info("Shutting down practice admin backend...")
    await db.close()


app = FastAPI(
    title="Practice Admin API",
    description="Backend API for the practice admin: patients, sessions, calendar, finances and content",
    version="0.1.0",
    lifespan=lifespan,
)

# cors: allow frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL, "http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# backend and provider failures

@app.exception_handler(RecordNotFoundError)
async def record_not_found_handler(request: Request, exc: RecordNotFoundError):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": f"Not found in {exc.table}"})


@app.exception_handler(BackendQueryError)
async def backend_error_handler(request: Request, exc: BackendQueryError):
    logger.error(f"Backend error on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content={"detail": exc.message})


@app.exception_handler(GoogleNotConnectedError)
async def google_not_connected_handler(request: Request, exc: GoogleNotConnectedError):
    return JSONResponse(status_code=status.HTTP_401_UNAUTHORIZED, content={"detail": str(exc)})


@app.exception_handler(GoogleCalendarError)
async def google_error_handler(request: Request, exc: GoogleCalendarError):
    logger.error(f"Google Calendar error on {request.url.path}: {exc}")
    return JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content={"detail": str(exc)})


# register routers
app.include_router(auth.router)
app.include_router(patients.router)
app.include_router(sessions.router)
app.include_router(calendar.router)
app.include_router(finances.router)
app.include_router(content.router)


@app.get("/health")
async def health_check():
    """basic health check endpoint"""
    return {"status": "ok", "service": "practice-admin-api"}
