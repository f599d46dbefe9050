from typing import List
from fastapi import APIRouter, Depends, File, UploadFile

from ..core.exceptions import ValidationError
from ..core.permissions import get_current_user
from ..models.user import User
from ..utils.uploads import save_upload

router = APIRouter(prefix="/api", tags=["Uploads"])

MAX_FILES_PER_REQUEST = 10


@router.post("/upload")
async def upload_file(
    image: UploadFile = File(...),
    user: User = Depends(get_current_user),
):
    saved = await save_upload(image)
    return {"url": saved.url, "filename": saved.filename, "size": saved.size}


@router.post("/upload-multiple")
async def upload_files(
    images: List[UploadFile] = File(...),
    user: User = Depends(get_current_user),
):
    if len(images) > MAX_FILES_PER_REQUEST:
        raise ValidationError(f"At most {MAX_FILES_PER_REQUEST} files per request", field="images")
    urls = []
    for image in images:
        urls.append((await save_upload(image)).url)
    return {"urls": urls}
