# Overview: Product image uploads stored on local disk and served under /uploads.

from __future__ import annotations

import os
import secrets
import time
from urllib.parse import quote

from flask import current_app
from werkzeug.datastructures import FileStorage

from ..errors import BadRequestError

MAX_FILE_SIZE_BYTES = 5 * 1024 * 1024
# Stored extension always comes from the accepted type, never the client filename
EXTENSIONS_BY_MIME_TYPE = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
}
ALLOWED_MIME_TYPES = set(EXTENSIONS_BY_MIME_TYPE)


def uploads_dir() -> str:
    path = current_app.config.get("UPLOADS_DIR") or os.path.join(os.getcwd(), "uploads")
    os.makedirs(path, exist_ok=True)
    return path


def _generated_name(mime_type: str) -> str:
    return f"{int(time.time() * 1000)}-{secrets.token_hex(12)}{EXTENSIONS_BY_MIME_TYPE[mime_type]}"


def public_url(filename: str) -> str:
    """
    Absolute URL when API_BASE_URL or SITE_URL is configured, otherwise the
    relative /uploads path. A trailing "/" or "/api" on the base is dropped.
    """
    base = (current_app.config.get("API_BASE_URL") or current_app.config.get("SITE_URL") or "").strip()
    base = base.rstrip("/")
    if base.endswith("/api"):
        base = base[: -len("/api")]
    relative = f"/uploads/{quote(filename)}"
    return f"{base}{relative}" if base else relative


def save_product_image(file: FileStorage | None) -> dict:
    """
    Validate and store an uploaded product image.

    Raises BadRequestError when the file is missing, over 5 MB or not
    jpeg/png/webp.
    """
    if file is None or not file.filename:
        raise BadRequestError("File is required")
    if file.mimetype not in ALLOWED_MIME_TYPES:
        raise BadRequestError("Only jpg, png or webp images can be uploaded")

    data = file.stream.read(MAX_FILE_SIZE_BYTES + 1)
    if len(data) > MAX_FILE_SIZE_BYTES:
        raise BadRequestError("File exceeds the 5 MB limit")

    filename = _generated_name(file.mimetype)
    with open(os.path.join(uploads_dir(), filename), "wb") as fh:
        fh.write(data)

    current_app.logger.info("Stored product image %s (%d bytes)", filename, len(data))
    return {"url": public_url(filename)}
