from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class NewsOut(BaseModel):
    id: int = Field(..., description="News id")
    title: str
    content: str
    author: str
    image: Optional[str] = None
    createdAt: datetime
    updatedAt: datetime
