# services/resource_service.py
"""
Create/update/delete for Events and News, keeping each record's image
reference and the AssetStore in step.

Binding rule: a poster/image value under the store prefix (/uploads/...) must
name a file that exists for as long as the record points at it. Replaced or
orphaned store files are removed best-effort after the row change commits:

    update: store new file -> update row -> delete old file
    delete: delete file -> delete row

A failed file removal is logged and never fails the request. Values that are
not store-owned (external URLs, null) are never touched on disk. A store file
belongs to at most one record across events and news; a path another record
already holds is rejected, and a file still referenced is never removed.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from gis_backend.models.event import Event
from gis_backend.models.news import News
from gis_backend.services import events_repo, news_repo
from gis_backend.services.asset_store import AssetStore
from gis_backend.services.errors import ValidationError
from gis_backend.services.uploads import StagedUpload, UploadPolicy
from gis_backend.util.log import get_logger, log_event
from gis_backend.util.pagination import DEFAULT_PAGE_SIZE, Page, paginate, text_matcher
from gis_backend.util.time import TimePolicyError, parse_datetime_input

logger = get_logger("resources")


def _as_text(value: Any, name: str) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    raise ValidationError(f"{name} must be a string")


def _required_text(fields: Dict[str, Any], name: str) -> str:
    value = _as_text(fields.get(name), name)
    if value is None or not value.strip():
        raise ValidationError(f"{name} is required")
    return value.strip()


def _parse_date(value: Any, name: str) -> datetime:
    try:
        return parse_datetime_input(value, name)
    except TimePolicyError as e:
        raise ValidationError(str(e)) from None


def _reference_count(
    db: Session,
    path: str,
    *,
    event_id: Optional[int] = None,
    news_id: Optional[int] = None,
) -> int:
    """Rows across events and news pointing at path, minus the given record."""
    return (
        events_repo.count_events(db, poster=path, exclude_id=event_id)
        + news_repo.count_news(db, image=path, exclude_id=news_id)
    )


class ResourceService:
    """Shared lifecycle; subclasses bind a repository and field rules."""

    label = "Resource"
    asset_field = "image"
    model: Any = None
    # keyword naming this resource in _reference_count
    ref_key = ""

    def __init__(self, db: Session, assets: AssetStore, policy: UploadPolicy):
        self.db = db
        self.assets = assets
        self.policy = policy

    # --- repository hooks ---
    def _get(self, record_id: int):
        raise NotImplementedError

    def _create(self, **values: Any):
        raise NotImplementedError

    def _update(self, record_id: int, **values: Any):
        raise NotImplementedError

    def _delete(self, record_id: int) -> None:
        raise NotImplementedError

    # --- field rules ---
    def clean_create(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        raise NotImplementedError

    def clean_update(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        raise NotImplementedError

    def _check_lengths(self, values: Dict[str, Any]) -> None:
        columns = self.model.__table__.columns
        for name, value in values.items():
            limit = getattr(columns[name].type, "length", None) if name in columns else None
            if limit and isinstance(value, str) and len(value) > limit:
                raise ValidationError(f"{name} must be at most {limit} characters")

    # --- asset handling ---
    def _references(self, path: str, record_id: Optional[int] = None) -> int:
        return _reference_count(self.db, path, **{self.ref_key: record_id})

    def _checked_reference(self, value: Any, record_id: Optional[int] = None) -> Optional[str]:
        text = _as_text(value, self.asset_field)
        if text is None or not text.strip():
            return None
        text = text.strip()
        if self.assets.is_store_owned(text):
            if not self.assets.exists(text):
                raise ValidationError(f"{self.asset_field} refers to a missing upload")
            if self._references(text, record_id):
                raise ValidationError(f"{self.asset_field} is already used by another record")
        return text

    def _store(self, upload: StagedUpload) -> str:
        category = self.policy.category_for(upload.field)
        return self.assets.put(category, upload.data, upload.extension)

    def _discard(self, path: Optional[str], *, record_id: Optional[int] = None) -> None:
        if not self.assets.is_store_owned(path):
            return
        if self._references(path, record_id):
            log_event(logger, level="WARN", event="asset_kept", msg="upload still referenced; not deleted",
                      resource=self.label, record_id=record_id, path=path)
            return
        try:
            self.assets.delete(path)
        except OSError as e:
            log_event(
                logger,
                level="WARN",
                event="asset_delete_failed",
                msg="could not delete upload; continuing",
                resource=self.label,
                record_id=record_id,
                path=path,
                error=str(e),
            )

    # --- lifecycle ---
    def get(self, record_id: int):
        return self._get(record_id)

    def create(self, fields: Dict[str, Any], upload: Optional[StagedUpload] = None):
        values = self.clean_create(fields)
        self._check_lengths(values)

        new_path = None
        if upload is not None:
            new_path = self._store(upload)
            values[self.asset_field] = new_path
        else:
            values[self.asset_field] = self._checked_reference(values.get(self.asset_field))

        try:
            record = self._create(**values)
        except Exception:
            self.db.rollback()
            self._discard(new_path)
            raise

        log_event(logger, level="INFO", event="created", msg=f"{self.label} created",
                  resource=self.label, record_id=record.id)
        return record

    def update(self, record_id: int, fields: Dict[str, Any], upload: Optional[StagedUpload] = None):
        existing = self._get(record_id)
        old_path = getattr(existing, self.asset_field)

        values = self.clean_update(fields)
        self._check_lengths(values)

        new_path = None
        if upload is not None:
            new_path = self._store(upload)
            values[self.asset_field] = new_path
        elif self.asset_field in values:
            values[self.asset_field] = self._checked_reference(values[self.asset_field], record_id)

        try:
            record = self._update(record_id, **values)
        except Exception:
            self.db.rollback()
            self._discard(new_path, record_id=record_id)
            raise

        if self.asset_field in values and values[self.asset_field] != old_path:
            self._discard(old_path, record_id=record_id)

        log_event(logger, level="INFO", event="updated", msg=f"{self.label} updated",
                  resource=self.label, record_id=record_id, replaced_asset=new_path is not None)
        return record

    def delete(self, record_id: int) -> None:
        existing = self._get(record_id)
        self._discard(getattr(existing, self.asset_field), record_id=record_id)
        self._delete(record_id)
        log_event(logger, level="INFO", event="deleted", msg=f"{self.label} deleted",
                  resource=self.label, record_id=record_id)


class EventService(ResourceService):
    label = "Event"
    asset_field = "poster"
    model = Event
    ref_key = "event_id"

    # API name -> column
    _TEXT_FIELDS = {
        "title": "title",
        "time": "time",
        "location": "location",
        "type": "type",
        "participants": "participants",
        "description": "description",
        "registrationLink": "registration_link",
        "registration_link": "registration_link",
    }
    _DEFAULTED = ("time", "type", "participants")

    def __init__(self, db: Session, assets: AssetStore, policy: UploadPolicy,
                 defaults: Optional[Dict[str, str]] = None):
        super().__init__(db, assets, policy)
        self.defaults = {"time": "00:00", "type": "Webinar", "participants": "-"}
        self.defaults.update(defaults or {})

    def _get(self, record_id: int):
        return events_repo.get_event(self.db, record_id)

    def _create(self, **values: Any):
        return events_repo.create_event(self.db, **values)

    def _update(self, record_id: int, **values: Any):
        return events_repo.update_event(self.db, record_id, **values)

    def _delete(self, record_id: int) -> None:
        events_repo.delete_event(self.db, record_id)

    def _collect(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        values: Dict[str, Any] = {}
        for api_name, column in self._TEXT_FIELDS.items():
            if api_name in fields:
                values[column] = _as_text(fields[api_name], api_name)
        for column in self._DEFAULTED:
            if column in values and not (values[column] or "").strip():
                values[column] = self.defaults[column]
        if "date" in fields:
            values["date"] = _parse_date(fields["date"], "date")
        if self.asset_field in fields:
            values[self.asset_field] = fields[self.asset_field]
        return values

    def clean_create(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        values = self._collect(fields)
        values["title"] = _required_text(fields, "title")
        if "date" not in values:
            raise ValidationError("date is required")
        for column in self._DEFAULTED:
            values.setdefault(column, self.defaults[column])
        return values

    def clean_update(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        values = self._collect(fields)
        if "title" in fields:
            values["title"] = _required_text(fields, "title")
        return values

    def browse(
        self,
        *,
        kind: Optional[str] = None,
        query: Optional[str] = None,
        page: Optional[int] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> Page:
        rows = events_repo.list_events(self.db, kind=kind)
        return paginate(
            rows,
            predicate=text_matcher(query, ("title", "description", "location")),
            page=page,
            page_size=page_size,
        )


class NewsService(ResourceService):
    label = "News"
    asset_field = "image"
    model = News
    ref_key = "news_id"

    _REQUIRED = ("title", "content", "author")

    def _get(self, record_id: int):
        return news_repo.get_news(self.db, record_id)

    def _create(self, **values: Any):
        return news_repo.create_news(self.db, **values)

    def _update(self, record_id: int, **values: Any):
        return news_repo.update_news(self.db, record_id, **values)

    def _delete(self, record_id: int) -> None:
        news_repo.delete_news(self.db, record_id)

    def clean_create(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        values: Dict[str, Any] = {name: _required_text(fields, name) for name in self._REQUIRED}
        if self.asset_field in fields:
            values[self.asset_field] = fields[self.asset_field]
        return values

    def clean_update(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        values: Dict[str, Any] = {
            name: _required_text(fields, name) for name in self._REQUIRED if name in fields
        }
        if self.asset_field in fields:
            values[self.asset_field] = fields[self.asset_field]
        return values

    def browse(
        self,
        *,
        since: Optional[datetime] = None,
        query: Optional[str] = None,
        page: Optional[int] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> Page:
        rows = news_repo.list_news(self.db, since=since)
        return paginate(
            rows,
            predicate=text_matcher(query, ("title", "content", "author")),
            page=page,
            page_size=page_size,
        )
