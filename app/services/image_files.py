# app/services/image_files.py
import logging
import os
import shutil
import uuid

from fastapi import UploadFile

from app.errors import ValidationFailed

log = logging.getLogger("recipes_api.images")

MIME_TYPE_MAP = {
    "image/png": "png",
    "image/jpeg": "jpeg",
    "image/jpg": "jpg",
}


def save_image(upload: UploadFile, directory: str) -> str:
    """Write the uploaded image to ``directory`` under a fresh name and return its path."""
    ext = MIME_TYPE_MAP.get(upload.content_type or "")
    if not ext:
        raise ValidationFailed("Invalid mime type!")

    os.makedirs(directory, exist_ok=True)
    path = os.path.join(directory, f"{uuid.uuid4()}.{ext}")
    with open(path, "wb") as out:
        shutil.copyfileobj(upload.file, out)
    return path


def discard_image(path: str) -> None:
    """Best-effort removal; the database is already final when this runs."""
    if not path:
        return
    try:
        os.remove(path)
    except OSError as e:
        log.warning("could not remove image %s: %s", path, e)
