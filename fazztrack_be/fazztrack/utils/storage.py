from pathlib import Path
import os
import uuid
import shutil
import logging
from typing import Optional
from fastapi import UploadFile
from sqlalchemy import event
from sqlalchemy.orm import Session

from fazztrack.config import get_settings
from fazztrack.core.exceptions import ValidationFailed
from fazztrack.models.design import FileAttachment

logger = logging.getLogger(__name__)

MEDIA_ROOT: Path = get_settings().MEDIA_ROOT

# session.info key holding media URLs to unlink once the transaction commits
PENDING_DELETES = "media_pending_delete"


def _ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def _upload_size(upload_file: UploadFile) -> int:
    f = upload_file.file
    f.seek(0, os.SEEK_END)
    size = f.tell()
    f.seek(0)
    return size


def save_upload_file(upload_file: UploadFile, subdir: str = "attachments") -> str:
    """Save a single UploadFile to media/subdir and return its URL path (/media/subdir/filename)."""
    if not upload_file or not upload_file.filename:
        raise ValidationFailed("file", "No file provided")
    max_bytes = get_settings().MAX_UPLOAD_MB * 1024 * 1024
    if _upload_size(upload_file) > max_bytes:
        raise ValidationFailed("file", f"File exceeds the {get_settings().MAX_UPLOAD_MB}MB limit")
    ext = os.path.splitext(upload_file.filename)[1].lower()
    filename = f"{uuid.uuid4().hex}{ext}"
    dst_dir = MEDIA_ROOT / subdir
    _ensure_dir(dst_dir)
    file_path = dst_dir / filename
    with file_path.open("wb") as buffer:
        shutil.copyfileobj(upload_file.file, buffer)
    return f"/media/{subdir}/{filename}"


def media_path(rel_url: Optional[str]) -> Optional[Path]:
    """Resolve a stored /media/<subdir>/<file> URL to a path inside MEDIA_ROOT."""
    if not rel_url or not isinstance(rel_url, str) or not rel_url.startswith("/media/"):
        return None
    parts = rel_url.strip("/").split("/")  # [media, subdir, filename]
    if len(parts) < 3 or ".." in parts:
        return None
    return MEDIA_ROOT / "/".join(parts[1:])


def delete_media_file(rel_url: Optional[str]) -> bool:
    """Delete a single media file by its stored relative URL. Returns True if removed.

    Only operates inside MEDIA_ROOT and silently ignores missing files.
    """
    target_path = media_path(rel_url)
    if target_path is None:
        return False
    try:
        if target_path.is_file():
            target_path.unlink()
            return True
    except OSError as e:
        logger.warning("Could not delete media file %s: %s", rel_url, e)
    return False


def create_attachment(db: Session, upload_file: UploadFile, subdir: str = "attachments") -> FileAttachment:
    url = save_upload_file(upload_file, subdir=subdir)
    attachment = FileAttachment(file_path=url, file_name=upload_file.filename)
    db.add(attachment)
    db.flush()
    logger.info("Stored %s as attachment %s", upload_file.filename, attachment.file_id)
    return attachment


def delete_attachment(db: Session, attachment: Optional[FileAttachment]) -> None:
    """Delete the attachment row. Its file is unlinked only after the session commits."""
    if attachment is None:
        return
    db.info.setdefault(PENDING_DELETES, []).append(attachment.file_path)
    db.delete(attachment)


@event.listens_for(Session, "after_commit")
def _unlink_deleted_media(session: Session) -> None:
    for rel_url in session.info.pop(PENDING_DELETES, []):
        delete_media_file(rel_url)


@event.listens_for(Session, "after_soft_rollback")
def _keep_media_on_rollback(session: Session, previous_transaction) -> None:
    if previous_transaction.nested:
        return
    dropped = session.info.pop(PENDING_DELETES, [])
    if dropped:
        logger.info("Rollback kept %d media file(s) on disk", len(dropped))
