# backend/utils/storage.py
import logging
import shutil
import uuid
from pathlib import Path
from typing import Iterable, List

from fastapi import HTTPException, UploadFile

from config import settings

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/png", "image/webp"}


def upload_dir() -> Path:
    path = Path(settings.UPLOAD_DIR)
    path.mkdir(parents=True, exist_ok=True)
    return path


def save_images(files: Iterable[UploadFile]) -> List[str]:
    """Store uploaded product images and return their file ids (stored file names).

    Every file is type-checked before anything is written; if a write fails the
    files already stored by this call are removed.
    """
    uploads = [file for file in files if file and file.filename]
    for file in uploads:
        if file.content_type not in ALLOWED_IMAGE_TYPES:
            raise HTTPException(status_code=400, detail=f"Invalid file type: {file.filename}")

    ids = []
    for file in uploads:
        ext = file.filename.rsplit(".", 1)[-1].lower() if "." in file.filename else "bin"
        file_id = f"{uuid.uuid4().hex}.{ext}"
        try:
            with open(upload_dir() / file_id, "wb") as buffer:
                shutil.copyfileobj(file.file, buffer)
        except OSError as e:
            delete_images(ids + [file_id])
            raise HTTPException(status_code=500, detail=f"File save error: {e}")
        finally:
            file.file.close()
        ids.append(file_id)
    return ids


def delete_images(file_ids: Iterable[str]) -> List[str]:
    """Remove stored images, best-effort. Returns the ids that could not be removed."""
    failed = []
    base = upload_dir().resolve()
    for file_id in file_ids:
        path = (base / file_id).resolve()
        # Only files directly inside the upload directory
        if path.parent != base:
            failed.append(file_id)
            continue
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Could not delete image %s: %s", file_id, e)
            failed.append(file_id)
    return failed
