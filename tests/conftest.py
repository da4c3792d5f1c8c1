import io
import os

os.environ.setdefault("CAREERS_ENVIRONMENT", "development")
os.environ.setdefault("CAREERS_MAIL_TRANSPORT", "smtp")

import pytest
from fastapi.testclient import TestClient
from starlette.datastructures import Headers, UploadFile

from careers_mailer.core.config import Settings
from careers_mailer.main import create_app
from helpers import PDF_MIME, RecordingTransport


@pytest.fixture()
def make_settings(tmp_path):
    def _make(**overrides) -> Settings:
        values = {
            "environment": "development",
            "email_user": "careers@example.com",
            "email_pass": "app-password",
            "receiver_email": "hr@example.com",
            "upload_dir": str(tmp_path / "uploads"),
        }
        values.update(overrides)
        return Settings(**values)

    return _make


@pytest.fixture()
def transport():
    return RecordingTransport()


@pytest.fixture()
def make_client(make_settings):
    def _make(transport, **overrides) -> TestClient:
        return TestClient(create_app(make_settings(**overrides), transport=transport))

    return _make


@pytest.fixture()
def make_upload():
    def _make(data: bytes, filename: str = "resume.pdf", content_type: str = PDF_MIME) -> UploadFile:
        return UploadFile(
            file=io.BytesIO(data),
            size=len(data),
            filename=filename,
            headers=Headers({"content-type": content_type}),
        )

    return _make
