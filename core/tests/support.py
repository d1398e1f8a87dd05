from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

from creations_core.gallery.models import GalleryFormData, ImageFile
from creations_core.session import Session

BACKEND_URL = "http://backend.test"
ACCESS_TOKEN = "backend-token"


def png_image(size: int = 2 * 1024 * 1024, filename: str = "photo.png") -> ImageFile:
    header = b"\x89PNG\r\n\x1a\n"
    return ImageFile(
        filename=filename,
        content_type="image/png",
        content=header + b"\x00" * max(size - len(header), 0),
    )


def valid_form(**overrides: Any) -> GalleryFormData:
    values: dict[str, Any] = {
        "title_en": "Sunrise",
        "description_en": "A quiet sunrise over the bay",
        "image": png_image(),
    }
    values.update(overrides)
    return GalleryFormData(**values)


def make_session(access_token: str = ACCESS_TOKEN) -> Session:
    return Session(
        subject="admin",
        access_token=access_token,
        expires_at=datetime.now(UTC) + timedelta(hours=1),
    )


def gallery_item(item_id: str, **overrides: Any) -> dict[str, Any]:
    item: dict[str, Any] = {
        "_id": item_id,
        "title_en": "Harbour lights",
        "description_en": "Boats in the harbour after dusk",
        "title_ta": "துறைமுக விளக்குகள்",
        "image": f"https://cdn.example.com/{item_id}.jpg",
        "status": "inactive",
        "order": 4,
        "link": "https://example.com/harbour",
        "createdAt": "2024-05-01T10:00:00.000Z",
        "updatedAt": "2024-05-02T10:00:00.000Z",
    }
    item.update(overrides)
    return item
