"""FastAPI application entry point."""
import logging
import uuid
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from familysync import runtime
from familysync.config import settings

# Import routers
from familysync.routers import discovery, join_requests, sync

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Family Sync",
    description="Local-network family discovery and admin-approved device join",
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

# Register routers
app.include_router(discovery.router, prefix="/api/discovery", tags=["Discovery"])
app.include_router(join_requests.router, prefix="/api/join-requests", tags=["JoinRequests"])
app.include_router(sync.router, prefix="/api/sync", tags=["Sync"])


@app.on_event("startup")
def on_startup():
    """Bind the device identity and start feeding the sync status."""
    service = runtime.discovery_service
    if not service.is_initialized:
        # No persisted identity here: without DEVICE_ID every start is a new device
        service.initialize(settings.DEVICE_ID or str(uuid.uuid4()))
    runtime.sync_status.bind(service)


@app.on_event("shutdown")
def on_shutdown():
    runtime.discovery_service.destroy()


@app.get("/api/health")
def health_check():
    return {"status": "ok"}
