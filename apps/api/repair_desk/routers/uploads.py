from fastapi import APIRouter, HTTPException
from fastapi.responses import FileResponse, RedirectResponse

from ..core.storage import LocalStorage, get_presigned_get_url, is_object_storage

router = APIRouter(prefix="/uploads", tags=["uploads"])


@router.get("/{key:path}")
def serve_upload(key: str):
    if is_object_storage():
        return RedirectResponse(get_presigned_get_url(key=key))
    try:
        path = LocalStorage().path_for_key(key)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid path")
    if not path.exists():
        raise HTTPException(status_code=404, detail="Not found")
    return FileResponse(str(path))
