from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from contextlib import asynccontextmanager
import logging
import os
import time

from .core.config import settings
from .core.database import AsyncSessionLocal, close_db_connections
from .core.cache import cache
from .core.error_handlers import register_exception_handlers
from .core.logging import setup_logging
from .services.auth_service import bootstrap_super_admin

from .routers import (
    health, auth, schools, users, academics, people, parent_portal, attendance,
    exams, elearning, library, hostel, inventory, transport, notices, messaging,
    departments, notifications, leaves, finance, tally, radio, uploads,
)

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting School ERP API ({settings.environment})")

    await cache.connect()
    async with AsyncSessionLocal() as session:
        await bootstrap_super_admin(session)

    yield

    logger.info("Shutting down School ERP API")
    await cache.disconnect()
    await close_db_connections()
    logger.info("Shutdown complete")


app = FastAPI(
    title="School ERP API",
    description="Multi-tenant school management: academics, attendance, exams, library, hostel, "
                "inventory, transport, messaging, finance with Tally sync and school radio",
    version=settings.app_version,
    lifespan=lifespan,
)


@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)
    logger.info(f"{request.method} {request.url.path} - {response.status_code} - {process_time:.3f}s")
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "HEAD", "PUT", "PATCH", "POST", "DELETE"],
    allow_headers=["*"],
    max_age=3600,
)

register_exception_handlers(app)

os.makedirs(settings.upload_dir, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=settings.upload_dir), name="uploads")

# Include all routers
app.include_router(health.router)
app.include_router(auth.router)
app.include_router(schools.router)
app.include_router(users.router)
app.include_router(academics.router)
app.include_router(parent_portal.router)
app.include_router(people.router)
app.include_router(attendance.router)
app.include_router(exams.router)
for content_router in elearning.routers:
    app.include_router(content_router)
app.include_router(library.router)
app.include_router(hostel.router)
app.include_router(inventory.router)
app.include_router(transport.router)
app.include_router(notices.router)
app.include_router(messaging.router)
app.include_router(departments.router)
app.include_router(notifications.router)
app.include_router(leaves.router)
app.include_router(finance.router)
app.include_router(tally.router)
app.include_router(radio.router)
app.include_router(uploads.router)


@app.get("/")
async def root():
    return {
        "message": "School ERP API",
        "version": settings.app_version,
        "features": ["Multi-tenant", "Attendance geofence", "Leave gate passes", "Tally sync", "School radio"],
        "status": "active",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("school_erp.main:app", host="0.0.0.0", port=8000, reload=True)
