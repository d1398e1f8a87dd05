from __future__ import annotations

import logging
from typing import Any

from creations_core.backend.client import GalleryBackendClient
from creations_core.errors import SubmissionInProgress, Unauthenticated, ValidationFailed
from creations_core.gallery.models import FORM_FIELDS, FormMode, GalleryFormData
from creations_core.gallery.state import GalleryFormState
from creations_core.gallery.validation import validate
from creations_core.session import Session

logger = logging.getLogger(__name__)


def serialize_form(form: GalleryFormData) -> dict[str, str]:
    """Text parts of the multipart body; the image travels separately."""

    values: dict[str, str] = {
        "title_en": form.title_en,
        "description_en": form.description_en,
        "title_ta": form.title_ta,
        "description_ta": form.description_ta,
        "status": form.status.value,
        "order": str(form.order),
        "link": form.link,
    }
    return {name: values[name] for name in FORM_FIELDS}


class SubmissionCoordinator:
    """Validate, serialize and send one gallery form to the backend.

    One attempt per call and no retries. While an attempt is pending, further
    calls fail fast with SubmissionInProgress and never reach the network.
    """

    def __init__(
        self,
        *,
        backend: GalleryBackendClient,
        mode: FormMode,
        item_id: str | None = None,
    ) -> None:
        if mode is FormMode.EDIT and not item_id:
            raise ValueError("item_id is required in edit mode")
        self._backend = backend
        self._mode = mode
        self._item_id: str = item_id or ""
        self._in_flight = False

    @property
    def mode(self) -> FormMode:
        return self._mode

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    async def submit(self, state: GalleryFormState, session: Session | None) -> Any:
        if self._in_flight:
            raise SubmissionInProgress()

        errors = validate(state.form, self._mode)
        state.set_errors(errors)
        if errors:
            raise ValidationFailed(errors)

        if session is None or not session.access_token:
            raise Unauthenticated()

        self._in_flight = True
        try:
            fields = serialize_form(state.form)
            if self._mode is FormMode.CREATE:
                result = await self._backend.create_item(
                    access_token=session.access_token,
                    fields=fields,
                    image=state.form.image,
                )
            else:
                result = await self._backend.update_item(
                    access_token=session.access_token,
                    item_id=self._item_id,
                    fields=fields,
                    image=state.form.image,
                )
        finally:
            self._in_flight = False

        logger.info("Gallery item %s submitted (%s)", self._item_id or "new", self._mode.value)
        return result
