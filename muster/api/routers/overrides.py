# muster/api/routers/overrides.py
"""
Admin overrides: force-join, force-new-group, swap, rename / reset group name.

All routes require admin. Group positions are the 1-based Group.index of the
view the client last rendered; the service recomputes before validating.
"""
from fastapi import APIRouter, Depends
from pydantic import BaseModel

from muster.api.deps import get_service, http_error, require_admin
from muster.domain.errors import MusterError
from muster.services.event_service import EventService

router = APIRouter(dependencies=[Depends(require_admin)])


class ForceJoinReq(BaseModel):
    player: str
    group_index: int


class NewGroupReq(BaseModel):
    player: str


class SwapReq(BaseModel):
    player_a: str
    player_b: str


class RenameReq(BaseModel):
    label: str


@router.post("/{alliance}/overrides/join", summary="Move a player into a group")
def force_join(req: ForceJoinReq, service: EventService = Depends(get_service)):
    try:
        service.force_join(req.player, req.group_index)
    except MusterError as e:
        raise http_error(e)
    return {"status": "ok", "groups": service.groups()}


@router.post("/{alliance}/overrides/new-group", summary="Split a player into a new group")
def force_new_group(req: NewGroupReq, service: EventService = Depends(get_service)):
    try:
        service.force_new_group(req.player)
    except MusterError as e:
        raise http_error(e)
    return {"status": "ok", "groups": service.groups()}


@router.post("/{alliance}/overrides/swap", summary="Swap the positions of two players")
def swap(req: SwapReq, service: EventService = Depends(get_service)):
    try:
        service.swap(req.player_a, req.player_b)
    except MusterError as e:
        raise http_error(e)
    return {"status": "ok", "groups": service.groups()}


@router.put("/{alliance}/groups/{group_index}/name", summary="Rename a group")
def rename_group(group_index: int, req: RenameReq, service: EventService = Depends(get_service)):
    try:
        service.rename_group(group_index, req.label)
    except MusterError as e:
        raise http_error(e)
    return {"status": "ok", "groups": service.groups()}


@router.delete("/{alliance}/groups/{group_index}/name", summary="Reset a group name to default")
def reset_group_name(group_index: int, service: EventService = Depends(get_service)):
    try:
        service.reset_group_name(group_index)
    except MusterError as e:
        raise http_error(e)
    return {"status": "ok", "groups": service.groups()}
