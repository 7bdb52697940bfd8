# Overview: Flask API routes for product image uploads and serving stored files.

from flask import Blueprint, request, send_from_directory

from ..decorators import require_auth, require_roles
from ..responses import ok
from ..services import upload_service

uploads_bp = Blueprint("uploads", __name__)


@uploads_bp.post("/api/uploads/product-image")
@require_auth
@require_roles("ADMIN")
def upload_product_image():
    """Multipart field "file"; jpeg/png/webp up to 5 MB. Returns {"url": ...}."""
    result = upload_service.save_product_image(request.files.get("file"))
    return ok(result, 201)


@uploads_bp.get("/uploads/<path:filename>")
def serve_upload(filename: str):
    return send_from_directory(upload_service.uploads_dir(), filename)
