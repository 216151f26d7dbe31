import logging
import os
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from .config import settings
from .database import init_db
from .exceptions import AppError
from .routers import (
    admin,
    auth,
    complaints,
    contests,
    entries,
    leaderboard,
    models,
    payments,
    prize_requests,
    uploads,
    votes,
)
from .services.scheduler import start_scheduler, stop_scheduler
from .utils.file_handler import UPLOAD_URL_PREFIX

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Model Contest API",
    description="API for model photo contests, voting and vote packages",
    version="1.0.0",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Uploaded images
os.makedirs(settings.upload_dir, exist_ok=True)
app.mount(
    UPLOAD_URL_PREFIX,
    StaticFiles(directory=settings.upload_dir),
    name="uploads",
)

# Include routers
app.include_router(auth.router)
app.include_router(models.router)
app.include_router(contests.router)
app.include_router(entries.router)
app.include_router(votes.router)
app.include_router(leaderboard.router)
app.include_router(payments.router)
app.include_router(prize_requests.router)
app.include_router(complaints.router)
app.include_router(uploads.router)
app.include_router(admin.router)


@app.exception_handler(AppError)
def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, **exc.extra},
    )


@app.exception_handler(Exception)
def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url)
    return JSONResponse(
        status_code=500, content={"detail": "Internal server error"}
    )


@app.on_event("startup")
def on_startup():
    init_db()
    if settings.scheduler_enabled:
        start_scheduler()


@app.on_event("shutdown")
def on_shutdown():
    stop_scheduler()


@app.get("/")
def root():
    return {"message": "Model Contest API is running"}
