# services/stats.py
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from gis_backend.config.app_config import AppConfig
from gis_backend.services.events_repo import count_events
from gis_backend.services.news_repo import count_news
from gis_backend.util.time import utcnow_db


def dashboard_stats(db: Session, cfg: AppConfig, *, now: Optional[datetime] = None) -> dict:
    """Read-only counts for the admin dashboard. `now` is naive UTC."""
    now = now or utcnow_db()
    recent_since = now - timedelta(days=cfg.recent_news_days())

    return {
        "eventsCount": count_events(db),
        "upcomingEventsCount": count_events(db, upcoming_from=now),
        "newsCount": count_news(db),
        "recentNewsCount": count_news(db, created_since=recent_since),
        "systemStatus": cfg.system_status(),
        "version": cfg.version(),
    }
