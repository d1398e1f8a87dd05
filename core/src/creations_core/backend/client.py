from __future__ import annotations

import json
import logging
from typing import Any
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from creations_core.errors import BackendRejected, TransportFailure
from creations_core.gallery.models import GalleryItem, ImageFile

logger = logging.getLogger(__name__)

GALLERY_PATH = "/api/gallery"
ADMIN_LIST_PATH = "/api/gallery/admin/all"

# One multipart part: (name, (filename, content[, content_type])).
MultipartPart = tuple[str, tuple[Any, ...]]


def build_multipart(fields: dict[str, str], image: ImageFile | None) -> list[MultipartPart]:
    """Encode text fields and the optional image as multipart parts.

    Text values go out as filename-less parts, which keeps the body
    multipart/form-data even when no image is attached.
    """

    parts: list[MultipartPart] = [
        (name, (None, value.encode("utf-8"))) for name, value in fields.items()
    ]
    if image is not None:
        parts.append(("image", (image.filename, image.content, image.content_type)))
    return parts


def _error_message(response: httpx.Response, fallback: str) -> str:
    try:
        body = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return fallback
    if isinstance(body, dict):
        message = body.get("message")
        if isinstance(message, str) and message.strip():
            return message
    return fallback


class GalleryBackendClient:
    """Thin async client for the gallery REST backend."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            headers={"Accept": "application/json"},
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    @staticmethod
    def _auth_headers(access_token: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {access_token}"}

    async def _send(
        self,
        method: str,
        url: str,
        *,
        access_token: str,
        fallback_message: str,
        files: list[MultipartPart] | None = None,
    ) -> Any:
        try:
            response = await self._client.request(
                method,
                url,
                headers=self._auth_headers(access_token),
                files=files,
            )
        except httpx.HTTPError as e:
            logger.warning("Backend %s %s failed: %s", method, url, e)
            raise TransportFailure(str(e) or fallback_message) from e

        if not response.is_success:
            message = _error_message(response, fallback_message)
            logger.warning(
                "Backend %s %s rejected with %s: %s", method, url, response.status_code, message
            )
            raise BackendRejected(message, status_code=response.status_code)

        if not response.content:
            return {}
        try:
            return response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise TransportFailure("Backend returned an invalid JSON body") from e

    async def create_item(
        self,
        *,
        access_token: str,
        fields: dict[str, str],
        image: ImageFile | None,
    ) -> Any:
        return await self._send(
            "POST",
            GALLERY_PATH,
            access_token=access_token,
            fallback_message="Failed to create gallery item",
            files=build_multipart(fields, image),
        )

    async def update_item(
        self,
        *,
        access_token: str,
        item_id: str,
        fields: dict[str, str],
        image: ImageFile | None,
    ) -> Any:
        return await self._send(
            "PATCH",
            f"{GALLERY_PATH}/{quote(item_id, safe='')}",
            access_token=access_token,
            fallback_message="Failed to update gallery item",
            files=build_multipart(fields, image),
        )

    async def list_admin_items(self, *, access_token: str) -> list[GalleryItem]:
        body = await self._send(
            "GET",
            ADMIN_LIST_PATH,
            access_token=access_token,
            fallback_message="Failed to fetch gallery items",
        )

        raw_items = body.get("gallery") if isinstance(body, dict) else None
        if not isinstance(raw_items, list):
            raise TransportFailure("Backend listing is missing the gallery array")

        # A malformed row is skipped so it cannot hide the rest of the gallery.
        items: list[GalleryItem] = []
        for raw in raw_items:
            try:
                items.append(GalleryItem.model_validate(raw))
            except ValidationError as e:
                raw_id = raw.get("_id") if isinstance(raw, dict) else None
                logger.warning(
                    "Skipping malformed gallery item %s: %s", raw_id, e.error_count()
                )
        return items
