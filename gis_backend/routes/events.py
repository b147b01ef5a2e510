# gis_backend/routes/events.py

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.orm import Session

from gis_backend.db import get_db
from gis_backend.models.event import Event
from gis_backend.schemas.common import SuccessOut
from gis_backend.schemas.event import EventOut
from gis_backend.services.auth import require_admin
from gis_backend.services.resource_service import EventService
from gis_backend.services.uploads import Submission, submission_for
from gis_backend.util.pagination import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from gis_backend.util.time import from_db_utc_naive

router = APIRouter(prefix="/api/events", tags=["events"])


def _serialize(ev: Event) -> dict:
    return {
        "id": ev.id,
        "title": ev.title,
        "date": from_db_utc_naive(ev.date),
        "time": ev.time,
        "location": ev.location,
        "type": ev.type,
        "participants": ev.participants,
        "description": ev.description,
        "poster": ev.poster,
        "registrationLink": ev.registration_link,
        "createdAt": from_db_utc_naive(ev.created_at),
        "updatedAt": from_db_utc_naive(ev.updated_at),
    }


def get_event_service(request: Request, db: Session = Depends(get_db)) -> EventService:
    state = request.app.state
    return EventService(db, state.assets, state.upload_policy, defaults=state.config.event_defaults())


@router.get("", response_model=List[EventOut])
def list_events(
    response: Response,
    type: Optional[str] = Query(default=None, description="upcoming|previous"),
    q: Optional[str] = Query(default=None, description="Search in title, description, location"),
    page: Optional[int] = Query(default=None, ge=1),
    page_size: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    svc: EventService = Depends(get_event_service),
):
    kind = (type or "").strip().lower() or None
    result = svc.browse(kind=kind, query=q, page=page, page_size=page_size)
    if page is not None:
        response.headers["X-Total-Count"] = str(result.total)
        response.headers["X-Total-Pages"] = str(result.total_pages)
    return [_serialize(e) for e in result.items]


@router.get("/{event_id}", response_model=EventOut)
def get_event(event_id: int, svc: EventService = Depends(get_event_service)):
    return _serialize(svc.get(event_id))


@router.post("", response_model=EventOut, dependencies=[Depends(require_admin)])
def create_event(
    submission: Submission = Depends(submission_for("poster")),
    svc: EventService = Depends(get_event_service),
):
    ev = svc.create(submission.fields, submission.upload)
    return _serialize(ev)


@router.put("/{event_id}", response_model=EventOut, dependencies=[Depends(require_admin)])
def update_event(
    event_id: int,
    submission: Submission = Depends(submission_for("poster")),
    svc: EventService = Depends(get_event_service),
):
    ev = svc.update(event_id, submission.fields, submission.upload)
    return _serialize(ev)


@router.delete("/{event_id}", response_model=SuccessOut, dependencies=[Depends(require_admin)])
def delete_event(event_id: int, svc: EventService = Depends(get_event_service)):
    svc.delete(event_id)
    return {"success": True}
