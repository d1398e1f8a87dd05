from __future__ import annotations

from creations_core.gallery.models import (
    ALLOWED_IMAGE_TYPES,
    MAX_IMAGE_BYTES,
    FieldErrors,
    FormMode,
    GalleryFormData,
)

MIN_TITLE_LENGTH = 3
MIN_DESCRIPTION_LENGTH = 10


def validate(form: GalleryFormData, mode: FormMode) -> FieldErrors:
    """Check a gallery form and return per-field error messages.

    Every rule runs. When two rules fire for the same field the later one wins,
    so a whitespace-only title reports the length message, and an oversized
    file of the wrong type reports the size message.
    """

    errors: FieldErrors = {}

    if not form.title_en or not form.title_en.strip():
        errors["title_en"] = "English title is required"

    if not form.description_en or not form.description_en.strip():
        errors["description_en"] = "English description is required"

    if mode is FormMode.CREATE and form.image is None:
        errors["image"] = "Image is required"

    if form.title_en and len(form.title_en.strip()) < MIN_TITLE_LENGTH:
        errors["title_en"] = "English title must be at least 3 characters long"

    if form.description_en and len(form.description_en.strip()) < MIN_DESCRIPTION_LENGTH:
        errors["description_en"] = "English description must be at least 10 characters long"

    # On edit an absent image keeps the stored one.
    if form.image is not None:
        if form.image.content_type not in ALLOWED_IMAGE_TYPES:
            errors["image"] = "Please select a valid image file (JPEG, PNG, GIF, WebP)"
        if form.image.size > MAX_IMAGE_BYTES:
            errors["image"] = "Image size must be less than 5MB"

    return errors
