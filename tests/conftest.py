"""Pytest fixtures: fake OpenAI client, per-test database directory, app client."""
import asyncio
import io
import json
import os
import threading
import time
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from PIL import Image, ImageDraw

# Must be set before the app modules read them at import time
os.environ.setdefault("OPENAI_API_KEY", "sk-test-dummy")
os.environ.setdefault("SESSION_SECRET", "test-session-secret")
os.environ.setdefault("UPLOAD_MAX_MB", "1")
os.environ.setdefault("ANALYSIS_RETRY_DELAY_SECONDS", "0")
os.environ.setdefault("ANALYSIS_MAX_ATTEMPTS", "1")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from main import create_app

SUNSET_ANALYSIS = {
    "title": "Sunset Study",
    "artist": None,
    "medium": "Oil on Canvas",
    "estimatedYear": "2019",
    "condition": "Excellent",
    "style": ["Impressionism"],
    "themes": ["Landscape"],
    "colors": ["Orange", "Blue"],
    "suggestedPrice": 300,
    "description": "A warm study of the sun setting over a quiet field.",
    "confidence": 0.9,
}


def function_call_response(name, arguments):
    """Responses API shaped object carrying one function call."""
    return SimpleNamespace(
        output=[SimpleNamespace(type="function_call", name=name, arguments=json.dumps(arguments))],
        output_text="",
        usage=SimpleNamespace(input_tokens=120, output_tokens=80),
    )


def text_response(text):
    return SimpleNamespace(output=[], output_text=text, usage=None)


def analysis_response(**overrides):
    return function_call_response("record_artwork_analysis", {**SUNSET_ANALYSIS, **overrides})


class FakeResponses:
    """Stand-in for `AsyncOpenAI().responses`.

    Queued outcomes are consumed in order; when the queue is empty the
    default outcome is used. Exceptions are raised instead of returned.
    Setting `gate` to a threading.Event holds every call until it is set.
    """

    def __init__(self):
        self.calls = []
        self.outcomes = []
        self.default = analysis_response()
        self.gate = None

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        outcome = self.outcomes.pop(0) if self.outcomes else self.default
        if self.gate is not None:
            await asyncio.to_thread(self.gate.wait, 10)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class FakeOpenAI:
    def __init__(self):
        self.responses = FakeResponses()


def make_image_bytes(size=(2000, 2000), fmt="JPEG", mode="RGB", color=(230, 120, 40)):
    img = Image.new(mode, size, color if mode == "RGB" else color + (255,))
    draw = ImageDraw.Draw(img)
    draw.rectangle([size[0] // 4, size[1] // 4, size[0] // 2, size[1] // 2], fill=(30, 60, 200) if mode == "RGB" else (30, 60, 200, 128))
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def fake_openai():
    return FakeOpenAI()


@pytest.fixture
def client(tmp_path, monkeypatch, fake_openai):
    """TestClient; the lifespan creates a fresh database under tmp_path."""
    monkeypatch.setenv("DATABASE_DIR", str(tmp_path / "data"))
    with TestClient(create_app(openai_client=fake_openai)) as c:
        yield c


def sign_in(client, email="artist@example.com", password="brushstrokes"):
    """Register (or log in) `email` and keep its session cookie on `client`."""
    client.cookies.clear()
    r = client.post("/api/auth/register", json={"email": email, "password": password})
    if r.status_code == 400:
        r = client.post("/api/auth/login", json={"email": email, "password": password})
    assert r.status_code == 200, r.text
    return r.json()


def upload_jpeg(client, **kwargs):
    files = {"image": ("artwork.jpg", make_image_bytes(**kwargs), "image/jpeg")}
    r = client.post("/api/artworks/upload", files=files)
    assert r.status_code == 200, r.text
    return r.json()


def wait_for_status(client, artwork_id, statuses=("complete", "failed"), timeout=5.0):
    """Poll the artwork until its analysisStatus is one of `statuses`."""
    deadline = time.time() + timeout
    while True:
        r = client.get(f"/api/artworks/{artwork_id}")
        assert r.status_code == 200, r.text
        body = r.json()
        if body["analysisStatus"] in statuses:
            return body
        if time.time() > deadline:
            raise AssertionError(f"artwork {artwork_id} stuck in {body['analysisStatus']}")
        time.sleep(0.05)


@pytest.fixture
def gate(client, fake_openai):
    """Hold every model call until the returned event is set; released before the app stops."""
    event = threading.Event()
    fake_openai.responses.gate = event
    yield event
    event.set()
