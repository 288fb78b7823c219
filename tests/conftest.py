# tests/conftest.py
import base64
import io
import sys
from pathlib import Path

import pytest
from PIL import Image

ROOT = Path(__file__).resolve().parents[1]  # repository root
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from fastapi.testclient import TestClient  # noqa: E402

from media_uploads.app.api import create_app  # noqa: E402
from media_uploads.services.upload_store import UploadStore  # noqa: E402


def make_image_bytes(size=(320, 200), fmt="PNG", mode="RGB", color=(200, 30, 60)) -> bytes:
    buffer = io.BytesIO()
    Image.new(mode, size, color).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture()
def image_factory():
    return make_image_bytes


@pytest.fixture()
def png_bytes() -> bytes:
    return make_image_bytes()


@pytest.fixture()
def png_base64(png_bytes) -> str:
    return base64.b64encode(png_bytes).decode("ascii")


@pytest.fixture()
def web_root(tmp_path) -> Path:
    return tmp_path / "wwwroot"


@pytest.fixture()
def store(web_root) -> UploadStore:
    return UploadStore(web_root)


@pytest.fixture()
def client(store):
    with TestClient(create_app(store)) as test_client:
        yield test_client
