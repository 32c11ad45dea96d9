# muster/main.py
"""
Application entrypoint. Includes routers and mounts.
"""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from muster.api.routers import admin, groups, overrides, players, time_slots
from muster.config.settings import settings

logging.basicConfig(level=settings.LOG_LEVEL)

app = FastAPI(title="Muster Group Formation Backend")

# Basic CORS (adjust origins in production)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# include routers
app.include_router(groups.router, prefix="/api/v1/alliances", tags=["groups"])
app.include_router(players.router, prefix="/api/v1/alliances", tags=["players"])
app.include_router(overrides.router, prefix="/api/v1/alliances", tags=["overrides"])
app.include_router(time_slots.router, prefix="/api/v1/alliances", tags=["time-slots"])
app.include_router(admin.router, prefix="/api/v1/admin", tags=["admin"])


@app.get("/")
def index():
    """Health / basic info endpoint."""
    return {"status": "ok", "service": "muster-backend", "env": settings.ENV, "alliances": settings.ALLIANCES}
