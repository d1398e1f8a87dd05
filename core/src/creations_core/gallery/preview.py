from __future__ import annotations

import asyncio
import base64

from creations_core.gallery.models import MAX_IMAGE_BYTES, ImageFile


def to_data_url(image: ImageFile) -> str:
    encoded = base64.b64encode(image.content).decode("ascii")
    content_type = image.content_type or "application/octet-stream"
    return f"data:{content_type};base64,{encoded}"


class ImagePreviewLoader:
    """Single-slot preview for the most recently selected image.

    Encoding runs off the event loop. Each call takes a new generation number;
    a read that finishes after a newer selection is dropped, so the slot always
    reflects the latest file.
    """

    def __init__(self) -> None:
        self._generation = 0
        self._preview: str | None = None

    @property
    def preview(self) -> str | None:
        return self._preview

    def clear(self) -> None:
        self._generation += 1
        self._preview = None

    async def load(self, image: ImageFile | None) -> str | None:
        self._generation += 1
        generation = self._generation

        # Oversized files fail validation anyway; they are never inlined into the page.
        if image is None or image.size > MAX_IMAGE_BYTES:
            self._preview = None
            return None

        data_url = await asyncio.to_thread(to_data_url, image)
        if generation == self._generation:
            self._preview = data_url
        return data_url
