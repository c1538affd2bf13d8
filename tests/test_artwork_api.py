import base64
import io

import httpx
import openai
from PIL import Image

from conftest import (
    analysis_response,
    function_call_response,
    make_image_bytes,
    sign_in,
    text_response,
    upload_jpeg,
    wait_for_status,
)


def test_upload_returns_placeholder_then_analysis_completes(client, fake_openai):
    sign_in(client)

    placeholder = upload_jpeg(client, size=(2000, 2000))

    assert placeholder["title"] == "Analyzing..."
    assert placeholder["analysisComplete"] is False
    assert placeholder["suggestedPrice"] == 0

    done = wait_for_status(client, placeholder["id"])
    assert done["analysisStatus"] == "complete"
    assert done["analysisComplete"] is True
    assert done["title"] == "Sunset Study"
    assert done["medium"] == "Oil on Canvas"
    assert done["condition"] == "Excellent"
    assert done["suggestedPrice"] == 30000
    assert done["tags"] == ["Impressionism", "Landscape", "Orange", "Blue"]

    # The model saw the normalized image, not the raw upload
    image_part = fake_openai.responses.calls[0]["input"][-1]["content"][0]
    sent = base64.b64decode(image_part["image_url"].split(",", 1)[1])
    assert Image.open(io.BytesIO(sent)).size == (2000, 2000)

    thumb = client.get(done["thumbnailUrl"])
    assert thumb.status_code == 200
    assert thumb.headers["content-type"] == "image/jpeg"
    assert max(Image.open(io.BytesIO(thumb.content)).size) <= 400

    primary = client.get(done["imageUrl"])
    assert primary.status_code == 200
    assert Image.open(io.BytesIO(primary.content)).format == "JPEG"


def test_record_stays_placeholder_while_analysis_runs(client, fake_openai, gate):
    sign_in(client)
    placeholder = upload_jpeg(client, size=(300, 300))

    during = client.get(f"/api/artworks/{placeholder['id']}").json()
    assert during["title"] == "Analyzing..."
    assert during["analysisComplete"] is False
    assert during["analysisStatus"] in ("pending", "analyzing")

    # A second analysis of the same artwork is refused while the first is running
    assert client.post(f"/api/artworks/{placeholder['id']}/analyze").status_code == 409

    gate.set()
    assert wait_for_status(client, placeholder["id"])["title"] == "Sunset Study"


def test_quota_failure_marks_artwork_failed(client, fake_openai):
    sign_in(client)
    fake_openai.responses.default = openai.RateLimitError(
        "quota",
        response=httpx.Response(429, request=httpx.Request("POST", "https://api.openai.com/v1/responses")),
        body={"code": "insufficient_quota"},
    )

    placeholder = upload_jpeg(client, size=(200, 200))
    failed = wait_for_status(client, placeholder["id"])

    assert failed["analysisStatus"] == "failed"
    assert failed["title"] == "Analysis Failed"
    assert failed["description"] == "OpenAI quota exceeded - please check billing"
    assert failed["analysisError"] == "quota_exceeded"
    assert failed["analysisComplete"] is False


def test_reanalyze_resets_and_completes(client, fake_openai):
    sign_in(client)
    placeholder = upload_jpeg(client, size=(200, 200))
    wait_for_status(client, placeholder["id"])
    fake_openai.responses.default = analysis_response(title="Evening Study", suggestedPrice=450)

    r = client.post(f"/api/artworks/{placeholder['id']}/analyze")

    assert r.status_code == 202
    assert r.json()["artwork"]["analysisComplete"] is False
    done = wait_for_status(client, placeholder["id"])
    assert done["title"] == "Evening Study"
    assert done["suggestedPrice"] == 45000


def test_upload_base64_with_additional_images(client):
    sign_in(client)
    primary = base64.b64encode(make_image_bytes(size=(100, 100), fmt="PNG")).decode("ascii")
    extra = "data:image/png;base64," + base64.b64encode(make_image_bytes(size=(80, 60), fmt="PNG")).decode("ascii")

    r = client.post(
        "/api/artworks/upload-base64",
        json={"imageData": primary, "mimeType": "image/png", "additionalImages": [extra], "description": "Study"},
    )

    assert r.status_code == 200, r.text
    body = r.json()
    assert body["additionalImageUrls"] == [f"/api/artworks/{body['id']}/images/0"]
    wait_for_status(client, body["id"])
    extra_image = client.get(body["additionalImageUrls"][0])
    assert extra_image.status_code == 200
    assert Image.open(io.BytesIO(extra_image.content)).size == (80, 60)
    assert client.get(f"/api/artworks/{body['id']}/images/5").status_code == 404


def test_invalid_uploads_are_rejected_without_records(client):
    sign_in(client)

    too_big = client.post(
        "/api/artworks/upload",
        files={"image": ("big.jpg", b"\xff" * (1024 * 1024 + 10), "image/jpeg")},
    )
    not_image = client.post("/api/artworks/upload", files={"image": ("notes.txt", b"hello", "text/plain")})
    corrupt = client.post("/api/artworks/upload", files={"image": ("bad.jpg", b"garbage", "image/jpeg")})
    bad_b64 = client.post("/api/artworks/upload-base64", json={"imageData": "%%%"})

    assert too_big.status_code == 413
    assert not_image.status_code == 400
    assert corrupt.status_code == 400
    assert bad_b64.status_code == 400
    assert client.get("/api/user/artworks").json() == []


def test_oversized_pixel_dimensions_are_rejected_without_records(client, monkeypatch):
    sign_in(client)
    raw = make_image_bytes(size=(100, 100), fmt="PNG")
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)

    r = client.post("/api/artworks/upload", files={"image": ("huge.png", raw, "image/png")})

    assert r.status_code == 400
    assert client.get("/api/user/artworks").json() == []


def test_upload_requires_sign_in(client):
    r = client.post("/api/artworks/upload", files={"image": ("a.jpg", make_image_bytes(size=(10, 10)), "image/jpeg")})
    assert r.status_code == 401


def test_other_users_cannot_touch_an_artwork(client):
    sign_in(client, "owner@example.com")
    artwork = upload_jpeg(client, size=(100, 100))
    wait_for_status(client, artwork["id"])
    assert client.patch(f"/api/artworks/{artwork['id']}", json={"visibility": "private"}).status_code == 200

    sign_in(client, "intruder@example.com")
    artwork_url = f"/api/artworks/{artwork['id']}"
    assert client.get(artwork_url).status_code == 404
    assert client.get(f"{artwork_url}/thumbnail").status_code == 404
    assert client.patch(artwork_url, json={"title": "Stolen"}).status_code == 404
    assert client.delete(artwork_url).status_code == 404
    assert client.post(f"{artwork_url}/analyze").status_code == 404
    assert client.get("/api/user/artworks").json() == []

    sign_in(client, "owner@example.com")
    assert client.get(artwork_url).json()["title"] == "Sunset Study"


def test_patch_edits_fields_and_rejects_unknown_ones(client):
    sign_in(client)
    artwork = upload_jpeg(client, size=(100, 100))
    wait_for_status(client, artwork["id"])
    url = f"/api/artworks/{artwork['id']}"

    r = client.patch(url, json={"title": "Renamed", "suggestedPrice": 12345, "tags": ["Portrait"]})
    assert r.status_code == 200
    body = r.json()
    assert body["title"] == "Renamed"
    assert body["suggestedPrice"] == 12345
    assert body["tags"] == ["Portrait"]
    assert body["analysisComplete"] is True

    assert client.patch(url, json={"analysisComplete": False}).status_code == 422
    assert client.patch(url, json={"visibility": "friends"}).status_code == 422
    assert client.patch(url, json={"suggestedPrice": 10**22}).status_code == 422
    assert client.patch(url, json={"title": None}).status_code == 400


def test_delete_removes_artwork(client):
    sign_in(client)
    artwork = upload_jpeg(client, size=(100, 100))
    wait_for_status(client, artwork["id"])

    r = client.delete(f"/api/artworks/{artwork['id']}")

    assert r.status_code == 200
    assert client.get(f"/api/artworks/{artwork['id']}").status_code == 404
    assert client.get("/api/artworks/9999").status_code == 404


def test_recent_showroom_and_search(client):
    sign_in(client)
    first = upload_jpeg(client, size=(100, 100))
    wait_for_status(client, first["id"])
    second = upload_jpeg(client, size=(100, 100))
    wait_for_status(client, second["id"])
    client.patch(f"/api/artworks/{second['id']}", json={"visibility": "private", "title": "Hidden Harbour"})

    mine = client.get("/api/artworks/recent", params={"limit": 6}).json()
    assert [a["id"] for a in mine] == [second["id"], first["id"]]
    assert [a["id"] for a in client.get("/api/showroom/artworks").json()] == [first["id"]]
    assert [a["id"] for a in client.get("/api/artworks/search", params={"q": "harbour"}).json()] == [second["id"]]
    assert [a["id"] for a in client.get("/api/artworks/search", params={"q": "impressionism"}).json()] == [
        second["id"],
        first["id"],
    ]
    assert client.get("/api/artworks/search", params={"q": " "}).status_code == 400

    client.post("/api/auth/logout")
    public = client.get("/api/artworks/recent").json()
    assert [a["id"] for a in public] == [first["id"]]
    assert client.get("/api/artworks/search", params={"q": "harbour"}).json() == []


def test_description_and_price_regeneration(client, fake_openai):
    sign_in(client)
    artwork = upload_jpeg(client, size=(100, 100))
    wait_for_status(client, artwork["id"])
    url = f"/api/artworks/{artwork['id']}"

    fake_openai.responses.outcomes = [
        text_response("A radiant evening scene."),
        function_call_response("suggest_artwork_price", {"price": 725.25}),
    ]
    description = client.post(f"{url}/description")
    price = client.post(f"{url}/price")

    assert description.json() == {"description": "A radiant evening scene."}
    assert price.json() == {"suggestedPrice": 72525}
    stored = client.get(url).json()
    assert stored["description"] == "A radiant evening scene."
    assert stored["suggestedPrice"] == 72525


def test_price_regeneration_surfaces_model_failures(client, fake_openai):
    sign_in(client)
    artwork = upload_jpeg(client, size=(100, 100))
    wait_for_status(client, artwork["id"])

    fake_openai.responses.default = openai.APITimeoutError(
        request=httpx.Request("POST", "https://api.openai.com/v1/responses")
    )
    r = client.post(f"/api/artworks/{artwork['id']}/price")

    assert r.status_code == 504
    assert client.get(f"/api/artworks/{artwork['id']}").json()["suggestedPrice"] == 30000


def test_health_reports_queue(client):
    body = client.get("/health").json()
    assert body["ok"] is True
    assert body["db_initialized"] is True
    assert body["openai_available"] is True
    assert body["analysis_queue"]["workers"] == 2
