from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from gis_backend.db import get_db
from gis_backend.schemas.common import DashboardStats
from gis_backend.services.stats import dashboard_stats

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@router.get("/stats", response_model=DashboardStats)
def get_stats(request: Request, db: Session = Depends(get_db)):
    return dashboard_stats(db, request.app.state.config)
