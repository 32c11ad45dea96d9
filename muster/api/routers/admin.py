# muster/api/routers/admin.py
"""
Admin utilities: init database, store reconnection.
"""
from fastapi import APIRouter, Depends

from muster.api.deps import get_service, require_admin
from muster.infrastructure.db.session import Base, engine
from muster.services.event_service import EventService

router = APIRouter(dependencies=[Depends(require_admin)])


@router.post("/init_db", summary="Create all tables in DB")
def init_db():
    """
    Create missing tables.

    WARNING:
        This does not drop existing tables.
    """
    Base.metadata.create_all(bind=engine)
    return {"status": "ok", "message": "Database initialized"}


@router.post("/alliances/{alliance}/reconnect", summary="Re-sync from the store, dropping local-only state")
def reconnect(service: EventService = Depends(get_service)):
    connected = service.reconnect()
    return {
        "status": "ok" if connected else "local",
        "connected": connected,
        "error": str(service.last_error) if service.last_error else None,
    }
