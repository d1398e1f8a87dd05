from __future__ import annotations

import logging

from creations_core.backend.client import GalleryBackendClient
from creations_core.errors import (
    BackendRejected,
    RecordLoadFailed,
    RecordNotFound,
    TransportFailure,
)
from creations_core.gallery.models import GalleryItem
from creations_core.session import Session

logger = logging.getLogger(__name__)


class RecordLoader:
    """Fetch the stored item an edit page starts from.

    The backend has no get-by-id route, so the admin listing is fetched and
    searched in memory.
    """

    def __init__(self, *, backend: GalleryBackendClient) -> None:
        self._backend = backend

    async def load(self, item_id: str | None, session: Session | None) -> GalleryItem | None:
        if session is None or not session.access_token or not item_id:
            return None

        try:
            items = await self._backend.list_admin_items(access_token=session.access_token)
        except (BackendRejected, TransportFailure) as e:
            logger.warning("Loading gallery item %s failed: %s", item_id, e.message)
            raise RecordLoadFailed(e.message) from e

        for item in items:
            if item.id == item_id:
                return item

        raise RecordNotFound(item_id)
