from pydantic import BaseModel


class HealthOut(BaseModel):
    status: str = "ok"


class SuccessOut(BaseModel):
    success: bool = True


class UploadOut(BaseModel):
    url: str


class LoginIn(BaseModel):
    username: str = ""
    password: str = ""


class LoginOut(BaseModel):
    success: bool
    token: str


class DashboardStats(BaseModel):
    eventsCount: int
    upcomingEventsCount: int
    newsCount: int
    recentNewsCount: int
    systemStatus: str
    version: str
