from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from creations_core.gallery.models import (
    TEXT_FIELDS,
    FieldErrors,
    GalleryFormData,
    GalleryItem,
    GalleryStatus,
    ImageFile,
)
from creations_core.gallery.preview import ImagePreviewLoader


def coerce_order(value: Any) -> int:
    """Parse a display order the way a number input does: junk becomes 0."""

    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        n = value
    else:
        try:
            n = int(str(value).strip())
        except (TypeError, ValueError):
            return 0
    return max(n, 0)


def coerce_status(value: Any) -> GalleryStatus:
    if isinstance(value, GalleryStatus):
        return value
    return GalleryStatus(str(value).strip().lower())


class GalleryFormState:
    """Current field values and inline errors for one create/edit page visit."""

    def __init__(
        self,
        form: GalleryFormData | None = None,
        *,
        preview_loader: ImagePreviewLoader | None = None,
    ) -> None:
        self._form = form if form is not None else GalleryFormData()
        self._errors: FieldErrors = {}
        self._preview_loader = preview_loader or ImagePreviewLoader()
        self.current_image_url: str | None = None

    @property
    def form(self) -> GalleryFormData:
        return self._form

    @property
    def errors(self) -> FieldErrors:
        return dict(self._errors)

    @property
    def preview(self) -> str | None:
        return self._preview_loader.preview

    def set_errors(self, errors: FieldErrors) -> None:
        self._errors = dict(errors)

    def clear_error(self, name: str) -> None:
        self._errors.pop(name, None)

    def set_field(self, name: str, value: Any) -> None:
        # Editing a field drops its error right away; it is only re-checked on submit.
        if name in TEXT_FIELDS:
            setattr(self._form, name, "" if value is None else str(value))
        elif name == "status":
            self._form.status = coerce_status(value)
        elif name == "order":
            self._form.order = coerce_order(value)
        elif name == "image":
            raise ValueError("image must be set with set_image()")
        else:
            raise ValueError(f"Unknown gallery field: {name}")
        self.clear_error(name)

    def apply(self, values: Mapping[str, Any]) -> None:
        for name, value in values.items():
            self.set_field(name, value)

    async def set_image(self, image: ImageFile | None) -> None:
        self._form.image = image
        self.clear_error("image")
        await self._preview_loader.load(image)

    def seed(self, item: GalleryItem) -> None:
        """Replace the form with a stored item; the new image stays unset."""

        try:
            status = coerce_status(item.status)
        except ValueError:
            status = GalleryStatus.ACTIVE

        self._form = GalleryFormData(
            title_en=item.title_en,
            description_en=item.description_en,
            title_ta=item.title_ta or "",
            description_ta=item.description_ta or "",
            status=status,
            image=None,
            order=item.order or 0,
            link=item.link or "",
        )
        self._errors = {}
        self._preview_loader.clear()
        self.current_image_url = item.image or None
