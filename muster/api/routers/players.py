# muster/api/routers/players.py
"""
Player endpoints: registration, leaving, and admin recovery (restore / purge).
"""
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from muster.api.deps import get_service, http_error, is_admin, require_admin
from muster.domain.errors import MusterError
from muster.domain.models import ParticipantRecord
from muster.services.event_service import EventService
from muster.services.recovery import DAY_MS

router = APIRouter()


class RegisterReq(BaseModel):
    name: str
    capacity: int
    time_tag: Optional[str] = None


class DeletedPlayer(BaseModel):
    name: str
    record: ParticipantRecord


class CleanupReq(BaseModel):
    older_than_days: Optional[int] = None


@router.post("/{alliance}/players", summary="Register a player")
def register(req: RegisterReq, service: EventService = Depends(get_service)):
    try:
        record = service.register(req.name, req.capacity, req.time_tag)
    except MusterError as e:
        raise http_error(e)
    return {"name": req.name.strip(), "record": record}


@router.delete("/{alliance}/players/{name}", summary="Remove a player (soft delete)")
def remove(name: str, service: EventService = Depends(get_service), admin: bool = Depends(is_admin)):
    try:
        service.remove(name, is_admin=admin)
    except MusterError as e:
        raise http_error(e)
    return {"status": "ok", "removed": name}


@router.delete("/{alliance}/players", summary="Remove all players", dependencies=[Depends(require_admin)])
def clear_all(service: EventService = Depends(get_service)):
    service.clear_all()
    return {"status": "ok"}


@router.get(
    "/{alliance}/deleted",
    response_model=List[DeletedPlayer],
    summary="Soft-deleted players, most recent first",
    dependencies=[Depends(require_admin)],
)
def deleted(service: EventService = Depends(get_service)):
    return [DeletedPlayer(name=name, record=record) for name, record in service.deleted()]


@router.post("/{alliance}/deleted/{name}/restore", dependencies=[Depends(require_admin)])
def restore(name: str, service: EventService = Depends(get_service)):
    try:
        service.restore(name)
    except MusterError as e:
        raise http_error(e)
    return {"status": "ok", "restored": name}


@router.delete("/{alliance}/deleted/{name}", summary="Purge a player", dependencies=[Depends(require_admin)])
def purge(name: str, service: EventService = Depends(get_service)):
    try:
        service.purge(name)
    except MusterError as e:
        raise http_error(e)
    return {"status": "ok", "purged": name}


@router.post("/{alliance}/deleted/cleanup", summary="Purge old soft-deleted players", dependencies=[Depends(require_admin)])
def cleanup(req: CleanupReq, service: EventService = Depends(get_service)):
    age_ms = None
    if req.older_than_days is not None:
        age_ms = req.older_than_days * DAY_MS
    purged = service.purge_older_than(age_ms)
    return {"status": "ok", "purged": purged}
