"""Plant image upload to local disk."""
import logging
import os
import shutil
from uuid import uuid4

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from waterlog.auth import get_current_user
from waterlog.config import settings
from waterlog.models import User
from waterlog.schemas import UploadResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["uploads"])

ALLOWED_CONTENT_TYPES = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
}


@router.post("/upload", response_model=UploadResponse, status_code=201)
def upload_image(
    image: UploadFile = File(...),
    current_user: User = Depends(get_current_user)
):
    """Store a plant photo and return its public URL."""
    ext = ALLOWED_CONTENT_TYPES.get(image.content_type or "")
    if ext is None:
        raise HTTPException(status_code=400, detail="Unsupported image type")

    image.file.seek(0, os.SEEK_END)
    size = image.file.tell()
    image.file.seek(0)
    if size == 0:
        raise HTTPException(status_code=400, detail="No file uploaded")
    if size > settings.max_upload_bytes:
        raise HTTPException(status_code=413, detail="File too large")

    os.makedirs(settings.upload_dir, exist_ok=True)
    filename = f"{uuid4().hex}{ext}"
    path = os.path.join(settings.upload_dir, filename)
    with open(path, "wb") as out:
        shutil.copyfileobj(image.file, out)

    logger.info(f"User {current_user.id} uploaded {filename} ({size} bytes)")
    return {"image_url": f"/uploads/{filename}"}
