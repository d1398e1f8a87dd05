from __future__ import annotations

import asyncio
import re
import threading

import httpx
from fastapi.testclient import TestClient
from support import ACCESS_TOKEN, gallery_item, png_image

from creations_core.app import create_app
from creations_core.gallery.models import MAX_IMAGE_BYTES
from creations_core.session import SESSION_COOKIE

FORM = {
    "title_en": "Sunrise",
    "description_en": "A quiet sunrise over the bay",
    "title_ta": "",
    "description_ta": "",
    "status": "active",
    "order": "0",
    "link": "",
}


def _login(client: TestClient) -> None:
    r = client.post(
        "/auth/cover-login", data={"access_token": ACCESS_TOKEN}, follow_redirects=False
    )
    assert r.status_code == 302
    assert r.headers["location"].startswith("/apps/creations")
    assert SESSION_COOKIE in r.cookies


def _png_upload(size: int = 2 * 1024 * 1024) -> dict[str, tuple[str, bytes, str]]:
    image = png_image(size)
    return {"image": (image.filename, image.content, image.content_type)}


def _form_id(html: str) -> str:
    match = re.search(r'name="form_id" value="([0-9a-f]+)"', html)
    assert match is not None
    return match.group(1)


def test_login_requires_token(creations_home, fake_backend) -> None:
    with TestClient(create_app(backend_transport=fake_backend.transport)) as client:
        r = client.post("/auth/cover-login", data={"access_token": "  "})
        assert r.status_code == 400
        assert "Missing token" in r.text


def test_logout_clears_session(creations_home, fake_backend) -> None:
    with TestClient(create_app(backend_transport=fake_backend.transport)) as client:
        _login(client)
        r = client.post("/auth/logout", follow_redirects=False)
        assert r.status_code == 302

        again = client.get("/apps/creations", follow_redirects=False)
        assert again.status_code == 307
        assert again.headers["location"] == "/auth/cover-login"


def test_create_posts_to_backend_and_returns_to_listing(creations_home, fake_backend) -> None:
    with TestClient(create_app(backend_transport=fake_backend.transport)) as client:
        _login(client)

        page = client.get("/apps/creations/add")
        assert page.status_code == 200
        assert "Create New Gallery Item" in page.text

        r = client.post(
            "/apps/creations/add",
            data={**FORM, "form_id": _form_id(page.text)},
            files=_png_upload(),
            follow_redirects=False,
        )
        assert r.status_code == 302
        assert r.headers["location"].startswith("/apps/creations?")
        assert "created+successfully" in r.headers["location"]

    posts = fake_backend.calls("POST", "/api/gallery")
    assert len(posts) == 1
    assert posts[0].headers["Authorization"] == f"Bearer {ACCESS_TOKEN}"
    assert b'name="image"; filename="photo.png"' in posts[0].content


def test_create_validation_errors_render_inline(creations_home, fake_backend) -> None:
    with TestClient(create_app(backend_transport=fake_backend.transport)) as client:
        _login(client)

        r = client.post(
            "/apps/creations/add",
            data={**FORM, "title_en": "ab", "description_en": "short"},
        )
        assert r.status_code == 400
        assert "English title must be at least 3 characters long" in r.text
        assert "English description must be at least 10 characters long" in r.text
        assert "Image is required" in r.text

    assert fake_backend.calls("POST", "/api/gallery") == []


def test_create_keeps_uploaded_image_across_retries(creations_home, fake_backend) -> None:
    with TestClient(create_app(backend_transport=fake_backend.transport)) as client:
        _login(client)
        page = client.get("/apps/creations/add")
        form_id = _form_id(page.text)

        first = client.post(
            "/apps/creations/add",
            data={**FORM, "title_en": "", "form_id": form_id},
            files=_png_upload(1024),
        )
        assert first.status_code == 400
        assert "data:image/png;base64," in first.text

        second = client.post(
            "/apps/creations/add",
            data={**FORM, "form_id": form_id},
            follow_redirects=False,
        )
        assert second.status_code == 302

    assert len(fake_backend.calls("POST", "/api/gallery")) == 1


def test_create_backend_rejection_shows_alert(creations_home, fake_backend) -> None:
    fake_backend.write_status = 400
    fake_backend.write_body = {"message": "Order already used"}

    with TestClient(create_app(backend_transport=fake_backend.transport)) as client:
        _login(client)
        r = client.post("/apps/creations/add", data=FORM, files=_png_upload(512))
        assert r.status_code == 200
        assert "Failed to create gallery item: Order already used" in r.text


def test_edit_missing_item_alerts_and_returns_to_listing(creations_home, fake_backend) -> None:
    fake_backend.gallery = [gallery_item("other")]

    with TestClient(create_app(backend_transport=fake_backend.transport)) as client:
        _login(client)
        r = client.get("/apps/creations/edit/abc123", follow_redirects=False)
        assert r.status_code == 302
        assert r.headers["location"] == "/apps/creations?msg=Gallery+item+not+found&kind=bad"

    assert fake_backend.calls("PATCH", "/api/gallery/abc123") == []


def test_edit_prefills_and_patches(creations_home, fake_backend) -> None:
    fake_backend.gallery = [gallery_item("abc123")]
    fake_backend.write_status = 200

    with TestClient(create_app(backend_transport=fake_backend.transport)) as client:
        _login(client)
        page = client.get("/apps/creations/edit/abc123")
        assert page.status_code == 200
        assert 'value="Harbour lights"' in page.text
        assert "https://cdn.example.com/abc123.jpg" in page.text

        r = client.post(
            "/apps/creations/edit/abc123",
            data={**FORM, "title_en": "Harbour lights at night", "form_id": _form_id(page.text)},
            follow_redirects=False,
        )
        assert r.status_code == 302
        assert "updated+successfully" in r.headers["location"]

    patches = fake_backend.calls("PATCH", "/api/gallery/abc123")
    assert len(patches) == 1
    assert b"Harbour lights at night" in patches[0].content
    assert b'name="image"' not in patches[0].content


def test_listing_renders_items_in_order(creations_home, fake_backend) -> None:
    fake_backend.gallery = [
        gallery_item("b", title_en="Second", order=2),
        gallery_item("a", title_en="First", order=1),
    ]

    with TestClient(create_app(backend_transport=fake_backend.transport)) as client:
        _login(client)
        r = client.get("/apps/creations")
        assert r.status_code == 200
        assert r.text.index("First") < r.text.index("Second")
        assert "/apps/creations/edit/a" in r.text


def test_preview_returns_data_url(creations_home, fake_backend) -> None:
    with TestClient(create_app(backend_transport=fake_backend.transport)) as client:
        _login(client)
        r = client.post("/apps/creations/preview", files=_png_upload(64))
        assert r.status_code == 200
        body = r.json()
        assert body["ok"] is True
        assert body["data"]["preview"].startswith("data:image/png;base64,")


def test_oversized_upload_is_rejected_without_inline_preview(
    creations_home, fake_backend
) -> None:
    with TestClient(create_app(backend_transport=fake_backend.transport)) as client:
        _login(client)
        r = client.post(
            "/apps/creations/add", data=FORM, files=_png_upload(MAX_IMAGE_BYTES + 1024)
        )
        assert r.status_code == 400
        assert "Image size must be less than 5MB" in r.text
        assert "data:image/png;base64," not in r.text

    assert fake_backend.calls("POST", "/api/gallery") == []


def test_second_post_of_pending_form_is_rejected(creations_home, fake_backend) -> None:
    entered = threading.Event()
    release = threading.Event()

    async def gated(request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            entered.set()
            while not release.is_set():
                await asyncio.sleep(0.01)
        return fake_backend.handler(request)

    app = create_app(backend_transport=httpx.MockTransport(gated))
    with TestClient(app) as client:
        _login(client)
        form_id = _form_id(client.get("/apps/creations/add").text)
        data = {**FORM, "form_id": form_id}
        files = _png_upload(512)

        responses: dict[str, httpx.Response] = {}

        def first_post() -> None:
            responses["first"] = client.post(
                "/apps/creations/add", data=data, files=files, follow_redirects=False
            )

        worker = threading.Thread(target=first_post)
        worker.start()
        try:
            assert entered.wait(timeout=5)
            second = client.post(
                "/apps/creations/add", data=data, files=files, follow_redirects=False
            )
        finally:
            release.set()
            worker.join(timeout=5)

    assert second.status_code == 200
    assert "Submission already in progress" in second.text
    assert responses["first"].status_code == 302
    assert "created+successfully" in responses["first"].headers["location"]
    assert len(fake_backend.calls("POST", "/api/gallery")) == 1
