# services/news_repo.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from gis_backend.models.news import News
from gis_backend.services.errors import NotFoundError

_COLUMNS = {"title", "content", "author", "image"}


def _check_columns(fields: dict[str, Any]) -> None:
    unknown = set(fields) - _COLUMNS
    if unknown:
        raise ValueError(f"Unknown News fields: {sorted(unknown)}")


def create_news(db: Session, **fields: Any) -> News:
    _check_columns(fields)
    item = News(**fields)
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


def get_news(db: Session, news_id: int) -> News:
    item = db.get(News, news_id)
    if item is None:
        raise NotFoundError("News not found")
    return item


def list_news(db: Session, *, since: Optional[datetime] = None) -> list[News]:
    q = select(News)
    if since is not None:
        q = q.where(News.created_at >= since)
    q = q.order_by(News.created_at.desc(), News.id.desc())
    return list(db.execute(q).scalars().all())


def update_news(db: Session, news_id: int, **fields: Any) -> News:
    _check_columns(fields)
    item = get_news(db, news_id)
    for k, v in fields.items():
        setattr(item, k, v)
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


def delete_news(db: Session, news_id: int) -> None:
    item = get_news(db, news_id)
    db.delete(item)
    db.commit()


def count_news(
    db: Session,
    *,
    created_since: Optional[datetime] = None,
    image: Optional[str] = None,
    exclude_id: Optional[int] = None,
) -> int:
    q = select(func.count(News.id))
    if created_since is not None:
        q = q.where(News.created_at >= created_since)
    if image is not None:
        q = q.where(News.image == image)
    if exclude_id is not None:
        q = q.where(News.id != exclude_id)
    return int(db.execute(q).scalar_one())
