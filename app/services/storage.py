from __future__ import annotations

import logging
import re
import secrets
import string
import time
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/gif": "gif",
}

_BASE36 = string.digits + string.ascii_lowercase
_FOLDER_RE = re.compile(r"^[A-Za-z0-9_-]+(/[A-Za-z0-9_-]+)*$")


class UploadError(Exception):
    pass


@dataclass
class StoredFile:
    path: str
    url: str


def save_upload(
    *,
    root: str,
    folder: str,
    filename: str,
    content_type: str,
    content: bytes,
    max_bytes: int,
    url_prefix: str = "/storage",
) -> StoredFile:
    if content_type not in ALLOWED_CONTENT_TYPES:
        raise UploadError("Invalid file type. Only JPEG, PNG, WebP, and GIF are allowed.")
    if len(content) > max_bytes:
        raise UploadError(f"File too large. Maximum size is {max_bytes // (1024 * 1024)}MB.")

    folder = (folder or "uploads").strip("/")
    if not _FOLDER_RE.match(folder):
        raise UploadError("Invalid folder name")

    suffix = "".join(secrets.choice(_BASE36) for _ in range(6))
    rel_path = f"{folder}/{int(time.time() * 1000)}_{suffix}.{ALLOWED_CONTENT_TYPES[content_type]}"

    target = Path(root) / rel_path
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(content)

    logger.info("Stored upload %s as %s (%s bytes)", filename, rel_path, len(content))
    return StoredFile(path=rel_path, url=f"{url_prefix}/{rel_path}")
