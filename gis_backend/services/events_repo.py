# services/events_repo.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from gis_backend.models.event import Event
from gis_backend.services.errors import NotFoundError, ValidationError
from gis_backend.util.time import utcnow_db

EVENT_KINDS = ("upcoming", "previous")

_COLUMNS = {
    "title",
    "date",
    "time",
    "location",
    "type",
    "participants",
    "description",
    "poster",
    "registration_link",
}


def _check_columns(fields: dict[str, Any]) -> None:
    unknown = set(fields) - _COLUMNS
    if unknown:
        raise ValueError(f"Unknown Event fields: {sorted(unknown)}")


def create_event(db: Session, **fields: Any) -> Event:
    _check_columns(fields)
    ev = Event(**fields)
    db.add(ev)
    db.commit()
    db.refresh(ev)
    return ev


def get_event(db: Session, event_id: int) -> Event:
    ev = db.get(Event, event_id)
    if ev is None:
        raise NotFoundError("Event not found")
    return ev


def list_events(
    db: Session,
    *,
    kind: Optional[str] = None,
    now: Optional[datetime] = None,
) -> list[Event]:
    """
    kind=None       -> all, date ascending
    kind=upcoming   -> date >= now, ascending
    kind=previous   -> date < now, descending
    """
    now = now or utcnow_db()
    q = select(Event)
    if kind is None:
        q = q.order_by(Event.date.asc(), Event.id.asc())
    elif kind == "upcoming":
        q = q.where(Event.date >= now).order_by(Event.date.asc(), Event.id.asc())
    elif kind == "previous":
        q = q.where(Event.date < now).order_by(Event.date.desc(), Event.id.desc())
    else:
        raise ValidationError(f"type must be one of {', '.join(EVENT_KINDS)}")
    return list(db.execute(q).scalars().all())


def update_event(db: Session, event_id: int, **fields: Any) -> Event:
    _check_columns(fields)
    ev = get_event(db, event_id)
    for k, v in fields.items():
        setattr(ev, k, v)
    db.add(ev)
    db.commit()
    db.refresh(ev)
    return ev


def delete_event(db: Session, event_id: int) -> None:
    ev = get_event(db, event_id)
    db.delete(ev)
    db.commit()


def count_events(
    db: Session,
    *,
    upcoming_from: Optional[datetime] = None,
    poster: Optional[str] = None,
    exclude_id: Optional[int] = None,
) -> int:
    q = select(func.count(Event.id))
    if upcoming_from is not None:
        q = q.where(Event.date >= upcoming_from)
    if poster is not None:
        q = q.where(Event.poster == poster)
    if exclude_id is not None:
        q = q.where(Event.id != exclude_id)
    return int(db.execute(q).scalar_one())
