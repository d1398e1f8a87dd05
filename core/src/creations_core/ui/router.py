from __future__ import annotations

import logging
from pathlib import Path
from typing import Any
from urllib.parse import urlencode

from fastapi import APIRouter, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from pydantic import BaseModel
from starlette.datastructures import UploadFile as StarletteUploadFile
from starlette.responses import Response

from creations_core.api.models import ApiResponse, ok
from creations_core.auth import LOGIN_PATH
from creations_core.backend.client import GalleryBackendClient
from creations_core.errors import BackendRejected, TransportFailure
from creations_core.gallery.models import (
    FORM_FIELDS,
    MAX_IMAGE_BYTES,
    GalleryStatus,
    ImageFile,
    WorkflowOutcome,
)
from creations_core.gallery.preview import ImagePreviewLoader
from creations_core.gallery.workflow import (
    LISTING_PATH,
    CreateWorkflow,
    EditWorkflow,
    FormSessionStore,
    GalleryWorkflow,
)
from creations_core.session import SESSION_COOKIE, issue_session, session_from_request

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent
TEMPLATES_DIR = BASE_DIR / "templates"
STATIC_DIR = BASE_DIR / "static"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

auth_router = APIRouter(prefix="/auth", tags=["auth"])
router = APIRouter(prefix=LISTING_PATH, tags=["creations"])


def _flash_from_request(request: Request) -> dict[str, Any] | None:
    msg = request.query_params.get("msg")
    if not msg:
        return None
    kind = request.query_params.get("kind") or ""
    return {"message": msg, "kind": kind}


def _redirect(url: str, *, msg: str | None = None, kind: str = "ok") -> RedirectResponse:
    if msg:
        url = f"{url}?{urlencode({'msg': msg, 'kind': kind})}"
    return RedirectResponse(url=url, status_code=302)


def _get_backend(request: Request) -> GalleryBackendClient:
    backend = getattr(request.app.state, "backend_client", None)
    if backend is None:
        raise HTTPException(status_code=500, detail="Backend client not initialized")
    return backend


def _get_forms(request: Request) -> FormSessionStore:
    forms = getattr(request.app.state, "form_sessions", None)
    if forms is None:
        raise HTTPException(status_code=500, detail="Form sessions not initialized")
    return forms


def _get_auth_config(request: Request) -> Any:
    auth = getattr(getattr(request.app.state, "creations_config", None), "auth", None)
    if auth is None or not getattr(auth, "secret", None):
        raise HTTPException(status_code=500, detail="Server auth secret not initialized")
    return auth


async def _read_image(upload: StarletteUploadFile) -> ImageFile:
    # One byte past the limit is enough for the size check to reject the file.
    content = await upload.read(MAX_IMAGE_BYTES + 1)
    return ImageFile(
        filename=upload.filename or "image",
        content_type=upload.content_type or "",
        content=content,
    )


def _render_form(
    request: Request,
    workflow: GalleryWorkflow,
    *,
    alert: str | None = None,
    status_code: int = 200,
) -> HTMLResponse:
    is_edit = isinstance(workflow, EditWorkflow)
    action = (
        f"{LISTING_PATH}/edit/{workflow.item_id}" if is_edit else f"{LISTING_PATH}/add"
    )
    heading = "Edit Gallery Item" if is_edit else "Create New Gallery Item"
    return templates.TemplateResponse(
        request,
        "creations_form.html",
        {
            "title": f"{heading} • Creations",
            "active": "creations",
            "flash": _flash_from_request(request),
            "heading": heading,
            "action": action,
            "is_edit": is_edit,
            "form_id": workflow.form_id,
            "form": workflow.state.form,
            "errors": workflow.state.errors,
            "preview": workflow.state.preview,
            "current_image_url": workflow.state.current_image_url,
            "has_pending_image": workflow.state.form.image is not None,
            "statuses": [s.value for s in GalleryStatus],
            "alert": alert,
        },
        status_code=status_code,
    )


async def _handle_submit(request: Request, workflow: GalleryWorkflow) -> Response:
    forms = _get_forms(request)
    form = await request.form()

    values = {name: form.get(name) for name in FORM_FIELDS if name in form}
    try:
        workflow.state.apply(values)
    except ValueError as e:
        return _render_form(request, workflow, alert=str(e), status_code=400)

    upload = form.get("image")
    if isinstance(upload, StarletteUploadFile) and upload.filename:
        await workflow.state.set_image(await _read_image(upload))
    elif (form.get("clear_image") or "").strip().lower() == "true":
        await workflow.state.set_image(None)

    outcome: WorkflowOutcome = await workflow.submit(session_from_request(request))
    if outcome.ok:
        forms.discard(workflow.form_id)
        return _redirect(outcome.redirect_to or LISTING_PATH, msg=outcome.alert, kind="ok")

    status_code = 400 if outcome.errors else 200
    return _render_form(request, workflow, alert=outcome.alert, status_code=status_code)


def _workflow_for_post(
    request: Request, form_id: Any, *, item_id: str | None = None
) -> GalleryWorkflow:
    forms = _get_forms(request)
    workflow = forms.get(form_id if isinstance(form_id, str) else None)

    if item_id is None:
        if isinstance(workflow, CreateWorkflow):
            return workflow
        return forms.add(CreateWorkflow(backend=_get_backend(request)))

    if isinstance(workflow, EditWorkflow) and workflow.item_id == item_id:
        return workflow
    return forms.add(EditWorkflow(backend=_get_backend(request), item_id=item_id))


@auth_router.get("/cover-login", response_class=HTMLResponse)
async def ui_login(request: Request) -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        "login.html",
        {
            "title": "Login • Creations",
            "hide_nav": True,
            "active": None,
            "flash": _flash_from_request(request),
        },
    )


@auth_router.post("/cover-login", response_model=None)
async def ui_login_post(request: Request, access_token: str = Form(default="")) -> Response:
    auth = _get_auth_config(request)
    access_token = (access_token or "").strip()

    if not access_token:
        return templates.TemplateResponse(
            request,
            "login.html",
            {"title": "Login • Creations", "hide_nav": True, "error": "Missing token"},
            status_code=400,
        )

    session_token = issue_session(
        secret=auth.secret,
        access_token=access_token,
        max_age_s=auth.session_max_age_s,
    )
    resp = _redirect(LISTING_PATH, msg="Logged in", kind="ok")
    resp.set_cookie(
        SESSION_COOKIE,
        session_token,
        httponly=True,
        samesite="lax",
        max_age=auth.session_max_age_s,
    )
    logger.info("Session issued")
    return resp


@auth_router.post("/logout")
async def ui_logout() -> RedirectResponse:
    resp = _redirect(LOGIN_PATH, msg="Logged out", kind="ok")
    resp.delete_cookie(SESSION_COOKIE)
    return resp


@router.get("", response_class=HTMLResponse)
async def ui_creations_list(request: Request) -> HTMLResponse:
    backend = _get_backend(request)
    session = session_from_request(request)

    flash = _flash_from_request(request)
    items: list[dict[str, Any]] = []
    if session is not None:
        try:
            rows = await backend.list_admin_items(access_token=session.access_token)
        except (BackendRejected, TransportFailure) as e:
            flash = {"message": f"Failed to load gallery items: {e.message}", "kind": "bad"}
            rows = []

        items = [
            {
                "id": r.id,
                "title_en": r.title_en,
                "title_ta": r.title_ta or "",
                "image": r.image,
                "status": r.status,
                "order": r.order or 0,
                "link": r.link or "",
            }
            for r in rows
        ]
        items.sort(key=lambda x: x["order"])

    return templates.TemplateResponse(
        request,
        "creations_list.html",
        {
            "title": "Gallery • Creations",
            "active": "creations",
            "flash": flash,
            "items": items,
            "total": len(items),
        },
    )


@router.get("/add", response_class=HTMLResponse)
async def ui_creations_add(request: Request) -> HTMLResponse:
    workflow = _get_forms(request).add(CreateWorkflow(backend=_get_backend(request)))
    return _render_form(request, workflow)


@router.post("/add", response_model=None)
async def ui_creations_add_post(request: Request) -> Response:
    form = await request.form()
    workflow = _workflow_for_post(request, form.get("form_id"))
    return await _handle_submit(request, workflow)


@router.get("/edit/{item_id}", response_model=None)
async def ui_creations_edit(request: Request, item_id: str) -> Response:
    forms = _get_forms(request)
    workflow = EditWorkflow(backend=_get_backend(request), item_id=item_id)

    outcome = await workflow.load(session_from_request(request))
    if outcome.redirect_to:
        return _redirect(outcome.redirect_to, msg=outcome.alert, kind="bad")

    forms.add(workflow)
    return _render_form(request, workflow)


@router.post("/edit/{item_id}", response_model=None)
async def ui_creations_edit_post(request: Request, item_id: str) -> Response:
    form = await request.form()
    workflow = _workflow_for_post(request, form.get("form_id"), item_id=item_id)
    return await _handle_submit(request, workflow)


class PreviewResponse(BaseModel):
    preview: str | None


@router.post("/preview", response_model=ApiResponse[PreviewResponse])
async def ui_creations_preview(
    request: Request,
    image: UploadFile = File(...),  # noqa: B008
    form_id: str = Form(default=""),
) -> ApiResponse[PreviewResponse]:
    selected = await _read_image(image)

    workflow = _get_forms(request).get(form_id)
    if workflow is not None:
        await workflow.state.set_image(selected)
        return ok(PreviewResponse(preview=workflow.state.preview))

    preview = await ImagePreviewLoader().load(selected)
    return ok(PreviewResponse(preview=preview))
