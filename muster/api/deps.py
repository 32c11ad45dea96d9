# muster/api/deps.py
"""
Shared router dependencies: per-alliance services, admin check, error mapping.
"""
import logging
from typing import Callable, Dict, Optional

from fastapi import Depends, Header, HTTPException

from muster.config.settings import settings
from muster.domain.errors import (
    AlreadyIsolated,
    CapacityExceeded,
    MusterError,
    UnknownGroup,
    UnknownParticipant,
    ValidationError,
)
from muster.infrastructure.repositories.participant_repo import ParticipantRepo
from muster.infrastructure.store import RecordStore
from muster.services.event_service import EventService

logger = logging.getLogger(__name__)


def sql_store_factory(alliance: str) -> RecordStore:
    return ParticipantRepo(alliance)


class ServiceRegistry:
    """One EventService per alliance, kept alive so local-only state survives between requests."""

    def __init__(self, store_factory: Callable[[str], RecordStore] = sql_store_factory, config=settings):
        self.store_factory = store_factory
        self.config = config
        self._services: Dict[str, EventService] = {}

    def get(self, alliance: str) -> EventService:
        key = alliance.upper()
        if key not in {a.upper() for a in self.config.ALLIANCES}:
            raise HTTPException(status_code=404, detail=f"Unknown alliance: {alliance}")
        if key not in self._services:
            self._services[key] = EventService.from_settings(self.store_factory(key), self.config, key)
        return self._services[key]


registry = ServiceRegistry()


def get_registry() -> ServiceRegistry:
    return registry


def get_service(alliance: str, registry: ServiceRegistry = Depends(get_registry)) -> EventService:
    return registry.get(alliance)


def is_admin(x_admin_token: Optional[str] = Header(None)) -> bool:
    return bool(settings.ADMIN_TOKEN) and x_admin_token == settings.ADMIN_TOKEN


def require_admin(admin: bool = Depends(is_admin)) -> bool:
    if not admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return True


def http_error(e: MusterError) -> HTTPException:
    if isinstance(e, (UnknownParticipant, UnknownGroup)):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, (CapacityExceeded, AlreadyIsolated)):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, ValidationError):
        return HTTPException(status_code=400, detail=str(e))
    logger.exception("Unhandled muster error")
    return HTTPException(status_code=500, detail=str(e))
