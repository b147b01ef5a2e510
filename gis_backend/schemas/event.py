from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class EventOut(BaseModel):
    id: int = Field(..., description="Event id")
    title: str
    date: datetime
    time: str = "00:00"
    location: Optional[str] = None
    type: str = "Webinar"
    participants: str = "-"
    description: Optional[str] = None
    poster: Optional[str] = None  # /uploads/events/... or external URL
    registrationLink: Optional[str] = None
    createdAt: datetime
    updatedAt: datetime
