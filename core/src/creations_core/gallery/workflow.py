from __future__ import annotations

import logging
import uuid
from collections import OrderedDict

from creations_core.backend.client import GalleryBackendClient
from creations_core.errors import (
    BackendRejected,
    RecordLoadError,
    SubmissionInProgress,
    TransportFailure,
    Unauthenticated,
    ValidationFailed,
)
from creations_core.gallery.loader import RecordLoader
from creations_core.gallery.models import FormMode, WorkflowOutcome
from creations_core.gallery.state import GalleryFormState
from creations_core.gallery.submission import SubmissionCoordinator
from creations_core.session import Session

logger = logging.getLogger(__name__)

LISTING_PATH = "/apps/creations"


class GalleryWorkflow:
    """One create or edit page visit: form state plus its submission attempt."""

    verb = ""
    past_tense = ""

    def __init__(self, *, coordinator: SubmissionCoordinator) -> None:
        self.form_id = uuid.uuid4().hex
        self.state = GalleryFormState()
        self.coordinator = coordinator

    @property
    def mode(self) -> FormMode:
        return self.coordinator.mode

    @property
    def submitting(self) -> bool:
        return self.coordinator.in_flight

    async def submit(self, session: Session | None) -> WorkflowOutcome:
        try:
            await self.coordinator.submit(self.state, session)
        except ValidationFailed as e:
            return WorkflowOutcome(ok=False, errors=e.errors)
        except Unauthenticated:
            return WorkflowOutcome(
                ok=False, alert=f"You must be logged in to {self.verb} a gallery item"
            )
        except SubmissionInProgress as e:
            return WorkflowOutcome(ok=False, alert=e.message)
        except (BackendRejected, TransportFailure) as e:
            logger.warning("Gallery item %s failed: %s", self.verb, e.message)
            return WorkflowOutcome(
                ok=False,
                alert=f"Failed to {self.verb} gallery item: {e.message or 'Please try again.'}",
            )

        return WorkflowOutcome(
            ok=True,
            alert=f"Gallery item {self.past_tense} successfully!",
            redirect_to=LISTING_PATH,
        )


class CreateWorkflow(GalleryWorkflow):
    verb = "create"
    past_tense = "created"

    def __init__(self, *, backend: GalleryBackendClient) -> None:
        super().__init__(
            coordinator=SubmissionCoordinator(backend=backend, mode=FormMode.CREATE)
        )


class EditWorkflow(GalleryWorkflow):
    verb = "update"
    past_tense = "updated"

    def __init__(self, *, backend: GalleryBackendClient, item_id: str) -> None:
        super().__init__(
            coordinator=SubmissionCoordinator(
                backend=backend, mode=FormMode.EDIT, item_id=item_id
            )
        )
        self.item_id = item_id
        self.loader = RecordLoader(backend=backend)
        self.loaded = False

    async def load(self, session: Session | None) -> WorkflowOutcome:
        """Seed the form from the stored item, or send the user back to the listing."""

        try:
            item = await self.loader.load(self.item_id, session)
        except RecordLoadError as e:
            return WorkflowOutcome(ok=False, alert=e.message, redirect_to=LISTING_PATH)

        if item is not None:
            self.state.seed(item)
            self.loaded = True
        return WorkflowOutcome(ok=True)


class FormSessionStore:
    """Live workflows keyed by form id, oldest evicted first."""

    def __init__(self, *, capacity: int = 256) -> None:
        self._capacity = capacity
        self._items: OrderedDict[str, GalleryWorkflow] = OrderedDict()

    def __len__(self) -> int:
        return len(self._items)

    def add(self, workflow: GalleryWorkflow) -> GalleryWorkflow:
        self._items[workflow.form_id] = workflow
        self._items.move_to_end(workflow.form_id)
        while len(self._items) > self._capacity:
            self._items.popitem(last=False)
        return workflow

    def get(self, form_id: str | None) -> GalleryWorkflow | None:
        if not form_id:
            return None
        workflow = self._items.get(form_id)
        if workflow is not None:
            self._items.move_to_end(form_id)
        return workflow

    def discard(self, form_id: str) -> None:
        self._items.pop(form_id, None)
