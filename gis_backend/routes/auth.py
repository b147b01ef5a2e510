from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from gis_backend.schemas.common import LoginIn, LoginOut
from gis_backend.util.log import get_logger, log_event

router = APIRouter(prefix="/api/auth", tags=["auth"])

logger = get_logger("api")


@router.post("/login", response_model=LoginOut)
def login(payload: LoginIn, request: Request):
    token = request.app.state.auth.login(payload.username, payload.password)
    if token is None:
        log_event(logger, level="WARN", event="login_failed", msg="invalid credentials",
                  username=payload.username)
        return JSONResponse(status_code=401, content={"success": False, "error": "Invalid credentials"})
    return {"success": True, "token": token}
