from fastapi import APIRouter, Depends, Request

from gis_backend.schemas.common import UploadOut
from gis_backend.services.auth import require_admin
from gis_backend.services.errors import ValidationError
from gis_backend.services.uploads import Submission, submission_for

router = APIRouter(prefix="/api", tags=["uploads"])


@router.post("/upload", response_model=UploadOut, dependencies=[Depends(require_admin)])
def upload_image(request: Request, submission: Submission = Depends(submission_for("image"))):
    """
    Stores a standalone image and returns its public path. The path can then be
    sent as an event `poster` or news `image` value.
    """
    up = submission.upload
    if up is None:
        raise ValidationError("No file uploaded")

    state = request.app.state
    path = state.assets.put(state.upload_policy.category_for(up.field), up.data, up.extension)
    return {"url": path}
