"""
Local object storage. Files are laid out as
`<UPLOAD_DIR>/<bucket>/<user_id>/<unix-ms>-<random>.<ext>` and served
read-only through the static mount at `PUBLIC_FILES_PREFIX`.
"""
import os
import secrets
import time

from fastapi import HTTPException, UploadFile, status
from loguru import logger

from souqote.config import settings


BUCKETS = {
    "rfq-attachments": {".pdf", ".doc", ".docx", ".xls", ".xlsx", ".csv", ".png", ".jpg", ".jpeg", ".dwg", ".zip"},
    "message-attachments": {".pdf", ".doc", ".docx", ".xls", ".xlsx", ".png", ".jpg", ".jpeg", ".txt"},
    "vendor-documents": {".pdf", ".png", ".jpg", ".jpeg"},
    "avatars": {".png", ".jpg", ".jpeg", ".webp"},
}


def bucket_dir(bucket: str) -> str:
    return os.path.join(settings.UPLOAD_DIR, bucket)


def public_url(relative_path: str) -> str:
    return f"{settings.PUBLIC_FILES_PREFIX.rstrip('/')}/{relative_path.replace(os.sep, '/')}"


def build_object_name(user_id: int, filename: str) -> str:
    ext = os.path.splitext(filename or "")[1].lower()
    stamp = int(time.time() * 1000)
    return f"{user_id}/{stamp}-{secrets.token_hex(6)}{ext}"


def store_upload(bucket: str, user_id: int, upload: UploadFile) -> dict:
    if bucket not in BUCKETS:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown bucket '{bucket}'")

    ext = os.path.splitext(upload.filename or "")[1].lower()
    if ext not in BUCKETS[bucket]:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"File type '{ext or 'unknown'}' is not allowed in {bucket}",
        )

    max_bytes = settings.MAX_UPLOAD_MB * 1024 * 1024
    # One byte past the limit is enough to tell an oversized file
    content = upload.file.read(max_bytes + 1)
    if not content:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Uploaded file is empty")

    if len(content) > max_bytes:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"File exceeds the {settings.MAX_UPLOAD_MB} MB limit",
        )

    object_name = build_object_name(user_id, upload.filename)
    relative_path = os.path.join(bucket, object_name)
    full_path = os.path.join(settings.UPLOAD_DIR, relative_path)
    os.makedirs(os.path.dirname(full_path), exist_ok=True)

    with open(full_path, "wb") as f:
        f.write(content)

    logger.info(f"Stored {upload.filename} for user {user_id} at {relative_path}")
    return {
        "bucket": bucket,
        "path": relative_path.replace(os.sep, "/"),
        "filename": upload.filename,
        "size": len(content),
        "public_url": public_url(relative_path),
    }


def ensure_buckets():
    for bucket in BUCKETS:
        os.makedirs(bucket_dir(bucket), exist_ok=True)
