# models/event.py
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from gis_backend.db import Base
from gis_backend.util.time import utcnow_db


class Event(Base):
    __tablename__ = "events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(300), nullable=False)

    # naive UTC
    date: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    time: Mapped[str] = mapped_column(String(20), nullable=False, default="00:00")
    location: Mapped[Optional[str]] = mapped_column(String(300), nullable=True)
    type: Mapped[str] = mapped_column(String(50), nullable=False, default="Webinar")
    participants: Mapped[str] = mapped_column(String(200), nullable=False, default="-")
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Asset Store path (/uploads/...), external URL or data URL
    poster: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    registration_link: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow_db)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow_db, onupdate=utcnow_db
    )


Index("ix_events_date", Event.date)
