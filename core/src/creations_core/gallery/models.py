from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Final

from pydantic import BaseModel, ConfigDict, Field

ALLOWED_IMAGE_TYPES: Final[frozenset[str]] = frozenset(
    {"image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp"}
)
MAX_IMAGE_BYTES: Final[int] = 5 * 1024 * 1024

TEXT_FIELDS: Final[tuple[str, ...]] = (
    "title_en",
    "description_en",
    "title_ta",
    "description_ta",
    "link",
)

# Multipart part order sent to the backend.
FORM_FIELDS: Final[tuple[str, ...]] = (
    "title_en",
    "description_en",
    "title_ta",
    "description_ta",
    "status",
    "order",
    "link",
)


class GalleryStatus(StrEnum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class FormMode(StrEnum):
    CREATE = "create"
    EDIT = "edit"


@dataclass(frozen=True)
class ImageFile:
    filename: str
    content_type: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass
class GalleryFormData:
    title_en: str = ""
    description_en: str = ""
    title_ta: str = ""
    description_ta: str = ""
    status: GalleryStatus = GalleryStatus.ACTIVE
    image: ImageFile | None = None
    order: int = 0
    link: str = ""


FieldErrors = dict[str, str]


class GalleryItem(BaseModel):
    """A creation as returned by the backend's admin listing."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(alias="_id")
    title_en: str = ""
    description_en: str = ""
    title_ta: str | None = None
    description_ta: str | None = None
    image: str | None = None
    status: str = GalleryStatus.ACTIVE.value
    order: int | None = None
    link: str | None = None
    created_at: str | None = Field(default=None, alias="createdAt")
    updated_at: str | None = Field(default=None, alias="updatedAt")


@dataclass
class WorkflowOutcome:
    """What the page should do after a workflow step.

    `alert` is a blocking user-facing message; `redirect_to` is the route to
    navigate to, if any. Inline field errors travel in `errors`.
    """

    ok: bool
    alert: str | None = None
    redirect_to: str | None = None
    errors: FieldErrors = field(default_factory=dict)
