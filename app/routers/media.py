import mimetypes
import os

from fastapi import APIRouter
from fastapi.responses import FileResponse

from app.core.errors import NotFound
from app.services.storage import resolve_key

router = APIRouter(tags=["media"])


@router.get("/media/{key:path}")
def get_media(key: str):
    abs_path = resolve_key(key)
    if not os.path.isfile(abs_path):
        raise NotFound("File missing on server")

    media_type = mimetypes.guess_type(abs_path)[0] or "application/octet-stream"
    return FileResponse(path=abs_path, media_type=media_type, filename=os.path.basename(abs_path))
