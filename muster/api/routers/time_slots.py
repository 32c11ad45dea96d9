# muster/api/routers/time_slots.py
"""
Time slot catalog endpoints. Reading is public, changes require admin.
"""
from fastapi import APIRouter, Depends
from pydantic import BaseModel

from muster.api.deps import get_service, http_error, require_admin
from muster.domain.errors import MusterError
from muster.services.event_service import EventService

router = APIRouter()


class TimeSlotReq(BaseModel):
    label: str


class RenameTimeSlotReq(BaseModel):
    old: str
    new: str


@router.get("/{alliance}/time-slots")
def list_time_slots(service: EventService = Depends(get_service)):
    return {"default": service.catalog.default_label, "time_slots": service.time_slots()}


@router.post("/{alliance}/time-slots", dependencies=[Depends(require_admin)])
def add_time_slot(req: TimeSlotReq, service: EventService = Depends(get_service)):
    try:
        service.add_time_slot(req.label)
    except MusterError as e:
        raise http_error(e)
    return {"time_slots": service.time_slots()}


@router.put("/{alliance}/time-slots", dependencies=[Depends(require_admin)])
def rename_time_slot(req: RenameTimeSlotReq, service: EventService = Depends(get_service)):
    try:
        service.rename_time_slot(req.old, req.new)
    except MusterError as e:
        raise http_error(e)
    return {"time_slots": service.time_slots()}


@router.delete("/{alliance}/time-slots/{label:path}", dependencies=[Depends(require_admin)])
def delete_time_slot(label: str, service: EventService = Depends(get_service)):
    try:
        moved = service.delete_time_slot(label)
    except MusterError as e:
        raise http_error(e)
    return {"time_slots": service.time_slots(), "moved_to_default": moved}


@router.post("/{alliance}/time-slots/reset", dependencies=[Depends(require_admin)])
def reset_time_slots(service: EventService = Depends(get_service)):
    service.reset_time_slots()
    return {"time_slots": service.time_slots()}
