import os
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

# Keep tests deterministic and offline-safe.
os.environ["API_KEY"] = ""
os.environ["LOG_JSON"] = "false"

from fastapi.testclient import TestClient  # noqa: E402

from gemini_gateway.config import Settings  # noqa: E402
from gemini_gateway.main import app, get_genai_client  # noqa: E402


@pytest.fixture
def upload_dir(tmp_path: Path) -> Path:
    return tmp_path / "uploads"


@pytest.fixture
def fake_genai_client() -> SimpleNamespace:
    generate = AsyncMock(return_value=SimpleNamespace(text="hi there"))
    return SimpleNamespace(aio=SimpleNamespace(models=SimpleNamespace(generate_content=generate)))


@pytest.fixture
def client(monkeypatch, upload_dir: Path, fake_genai_client: SimpleNamespace):
    monkeypatch.setattr(
        "gemini_gateway.main.settings",
        Settings(upload_dir=str(upload_dir), gemini_model="test-model"),
    )
    app.dependency_overrides[get_genai_client] = lambda: fake_genai_client
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def sent_parts(fake_genai_client: SimpleNamespace):
    def _parts() -> list:
        kwargs = fake_genai_client.aio.models.generate_content.await_args.kwargs
        return kwargs["contents"][0].parts

    return _parts
