# gis_backend/routes/news.py

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.orm import Session

from gis_backend.db import get_db
from gis_backend.models.news import News
from gis_backend.schemas.common import SuccessOut
from gis_backend.schemas.news import NewsOut
from gis_backend.services.auth import require_admin
from gis_backend.services.errors import ValidationError
from gis_backend.services.resource_service import NewsService
from gis_backend.services.uploads import Submission, submission_for
from gis_backend.util.pagination import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from gis_backend.util.time import TimePolicyError, from_db_utc_naive, parse_last_param_to_since

router = APIRouter(prefix="/api/news", tags=["news"])


def _serialize(item: News) -> dict:
    return {
        "id": item.id,
        "title": item.title,
        "content": item.content,
        "author": item.author,
        "image": item.image,
        "createdAt": from_db_utc_naive(item.created_at),
        "updatedAt": from_db_utc_naive(item.updated_at),
    }


def get_news_service(request: Request, db: Session = Depends(get_db)) -> NewsService:
    return NewsService(db, request.app.state.assets, request.app.state.upload_policy)


@router.get("", response_model=List[NewsOut])
def list_news(
    response: Response,
    last: Optional[str] = Query(default=None, description="Only news created within e.g. 7d, 24h"),
    q: Optional[str] = Query(default=None, description="Search in title, content, author"),
    page: Optional[int] = Query(default=None, ge=1),
    page_size: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    svc: NewsService = Depends(get_news_service),
):
    since = None
    if last:
        try:
            since = parse_last_param_to_since(last)
        except TimePolicyError as e:
            raise ValidationError(str(e)) from None

    result = svc.browse(since=since, query=q, page=page, page_size=page_size)
    if page is not None:
        response.headers["X-Total-Count"] = str(result.total)
        response.headers["X-Total-Pages"] = str(result.total_pages)
    return [_serialize(n) for n in result.items]


@router.get("/{news_id}", response_model=NewsOut)
def get_news(news_id: int, svc: NewsService = Depends(get_news_service)):
    return _serialize(svc.get(news_id))


@router.post("", response_model=NewsOut, dependencies=[Depends(require_admin)])
def create_news(
    submission: Submission = Depends(submission_for("image")),
    svc: NewsService = Depends(get_news_service),
):
    return _serialize(svc.create(submission.fields, submission.upload))


@router.put("/{news_id}", response_model=NewsOut, dependencies=[Depends(require_admin)])
def update_news(
    news_id: int,
    submission: Submission = Depends(submission_for("image")),
    svc: NewsService = Depends(get_news_service),
):
    return _serialize(svc.update(news_id, submission.fields, submission.upload))


@router.delete("/{news_id}", response_model=SuccessOut, dependencies=[Depends(require_admin)])
def delete_news(news_id: int, svc: NewsService = Depends(get_news_service)):
    svc.delete(news_id)
    return {"success": True}
