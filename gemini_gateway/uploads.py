"""Staging of multipart uploads on local disk.

Uploaded files are written to the upload directory before the model call,
encoded from there, and removed once the request has been answered.
"""

import asyncio
import base64
import logging
from dataclasses import dataclass
from pathlib import Path
from uuid import uuid4

from starlette.datastructures import UploadFile

from gemini_gateway.schemas import EncodedPayload

_logger = logging.getLogger(__name__)


class MissingUploadError(ValueError):
    def __init__(self, field: str) -> None:
        super().__init__(f"No file uploaded in field '{field}'")
        self.field = field


@dataclass(frozen=True)
class StagedUpload:
    path: Path
    content_type: str
    filename: str
    size: int = 0


async def stage_upload(upload: object, upload_dir: str | Path, field: str) -> StagedUpload:
    # Plain text form values arrive as str, not UploadFile.
    if not isinstance(upload, UploadFile) or not upload.filename:
        raise MissingUploadError(field)

    directory = Path(upload_dir)
    directory.mkdir(parents=True, exist_ok=True)
    destination = directory / f"{uuid4().hex}{Path(upload.filename).suffix}"

    content = await upload.read()
    await asyncio.to_thread(destination.write_bytes, content)

    staged = StagedUpload(
        path=destination,
        content_type=upload.content_type or "application/octet-stream",
        filename=upload.filename,
        size=len(content),
    )
    _logger.info(
        "upload_staged",
        extra={
            "upload_field": field,
            "upload_bytes": staged.size,
            "mime_type": staged.content_type,
        },
    )
    return staged


def detect_image_mime_type(path: str | Path) -> str:
    # Only .png is recognised; every other image is sent as jpeg.
    return "image/png" if Path(path).suffix == ".png" else "image/jpeg"


async def encode_file(path: str | Path, mime_type: str) -> EncodedPayload:
    raw = await asyncio.to_thread(Path(path).read_bytes)
    return EncodedPayload(data=base64.b64encode(raw).decode("utf-8"), mime_type=mime_type)


def discard_upload(staged: StagedUpload) -> None:
    staged.path.unlink()
