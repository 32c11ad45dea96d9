# muster/api/routers/groups.py
"""
Group endpoints: the derived group view, search and stats.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends

from muster.api.deps import get_service, http_error
from muster.domain.errors import MusterError
from muster.domain.models import Group
from muster.services.event_service import EventService

router = APIRouter()


@router.get("/{alliance}/groups", response_model=List[Group], summary="Current groups (recomputed)")
def list_groups(q: Optional[str] = None, service: EventService = Depends(get_service)):
    try:
        return service.search(q) if q else service.groups()
    except MusterError as e:
        raise http_error(e)


@router.get("/{alliance}/stats", summary="Player / group counts")
def stats(service: EventService = Depends(get_service)):
    try:
        data = service.stats()
    except MusterError as e:
        raise http_error(e)
    data.update({"alliance": service.alliance, "connected": service.connected})
    return data
