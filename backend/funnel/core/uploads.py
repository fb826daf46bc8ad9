import logging
import uuid
from pathlib import Path

from starlette.datastructures import UploadFile

from funnel.core.config import settings

logger = logging.getLogger(__name__)


def _safe_filename(filename: str | None) -> str:
    name = Path(filename or "").name.strip()
    return name.replace(" ", "_") or "upload"


async def save_uploads(files: list[UploadFile], *, upload_dir: str | None = None) -> list[str]:
    """
    Write uploaded photos to disk and return their public URLs.

    A file that cannot be written is logged and left out; the others are kept.
    Files already on disk are never removed, even if the request fails later.
    """
    target = Path(upload_dir or settings.UPLOAD_DIR)
    urls: list[str] = []
    for upload in files:
        stored_name = f"{uuid.uuid4()}-{_safe_filename(upload.filename)}"
        try:
            target.mkdir(parents=True, exist_ok=True)
            data = await upload.read()
            (target / stored_name).write_bytes(data)
        except OSError as exc:
            logger.warning("Skipping upload %s: %s", upload.filename, exc)
            continue
        logger.info("Stored upload %s as %s (%s bytes)", upload.filename, stored_name, len(data))
        urls.append(f"{settings.UPLOAD_URL_PREFIX.rstrip('/')}/{stored_name}")
    return urls
