from __future__ import annotations

import smtplib

import pytest

from careers_mailer.api.deps import MALFORMED_BODY_MESSAGE
from careers_mailer.middleware.body_limit import BODY_TOO_LARGE_MESSAGE
from helpers import PDF_MIME, VALID_FIELDS, RecordingTransport, pdf_bytes


def _resume(size: int = 50 * 1024, filename: str = "asha_resume.pdf", content_type: str = PDF_MIME):
    return {"resume": (filename, pdf_bytes(size), content_type)}


def test_scenario_a_valid_application_is_sent(make_client):
    transport = RecordingTransport()
    client = make_client(transport)

    response = client.post("/send-email", data=VALID_FIELDS, files=_resume())

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"].startswith("Application submitted successfully!")
    assert body["timestamp"].endswith("Z")
    (message,) = transport.sent
    assert len(message.attachments) == 1
    assert message.attachments[0].filename == "asha_resume.pdf"


def test_scenario_b_missing_required_resume(make_client):
    transport = RecordingTransport()
    response = make_client(transport).post("/send-email", data=VALID_FIELDS)

    assert response.status_code == 400
    assert response.json() == {
        "success": False,
        "message": "Resume file is required. Please upload your resume.",
    }
    assert transport.sent == []


def test_optional_resume_policy_sends_without_attachment(make_client):
    transport = RecordingTransport()
    response = make_client(transport, require_resume=False).post("/send-email", data=VALID_FIELDS)

    assert response.status_code == 200
    assert transport.sent[0].attachments == []


def test_scenario_c_oversized_resume(make_client):
    transport = RecordingTransport()
    response = make_client(transport).post("/send-email", data=VALID_FIELDS, files=_resume(size=5 * 1024 * 1024))

    assert response.status_code == 400
    assert response.json()["message"] == "File size exceeds 3MB limit. Please upload a smaller file."
    assert transport.sent == []


def test_scenario_d_missing_category(make_client):
    transport = RecordingTransport()
    fields = {k: v for k, v in VALID_FIELDS.items() if k != "category"}
    response = make_client(transport).post("/send-email", data=fields, files=_resume())

    assert response.status_code == 400
    assert response.json() == {
        "success": False,
        "message": "All fields are required. Please fill in all fields.",
    }
    assert transport.sent == []


def test_scenario_e_transport_failure_in_development(make_client):
    transport = RecordingTransport(error=smtplib.SMTPAuthenticationError(535, b"Username and Password not accepted"))
    response = make_client(transport).post("/send-email", data=VALID_FIELDS, files=_resume())

    assert response.status_code == 500
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "Failed to send application. Please try again later."
    assert "Username and Password not accepted" in body["error"]


def test_transport_failure_hides_detail_in_production(make_client):
    transport = RecordingTransport(error=smtplib.SMTPAuthenticationError(535, b"Username and Password not accepted"))
    response = make_client(transport, environment="production").post(
        "/send-email", data=VALID_FIELDS, files=_resume()
    )

    assert response.status_code == 500
    assert response.json()["error"] == "Internal server error"


def test_invalid_resume_type(make_client):
    transport = RecordingTransport()
    response = make_client(transport).post(
        "/send-email",
        data=VALID_FIELDS,
        files=_resume(filename="photo.png", content_type="image/png"),
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Invalid file type. Only PDF, DOC, and DOCX files are allowed."
    assert transport.sent == []


def test_alternate_route_behaves_the_same(make_client):
    transport = RecordingTransport()
    response = make_client(transport).post("/api/send-email", data=VALID_FIELDS, files=_resume())

    assert response.status_code == 200
    assert response.json()["success"] is True
    assert len(transport.sent) == 1


def test_repeated_submission_dispatches_twice(make_client):
    transport = RecordingTransport()
    client = make_client(transport)
    client.post("/send-email", data=VALID_FIELDS, files=_resume())
    client.post("/send-email", data=VALID_FIELDS, files=_resume())
    assert len(transport.sent) == 2


def test_disk_storage_leaves_no_files(make_client, tmp_path):
    transport = RecordingTransport()
    response = make_client(transport, upload_storage="disk").post("/send-email", data=VALID_FIELDS, files=_resume())

    assert response.status_code == 200
    assert transport.paths_present_at_send == [True]
    assert list((tmp_path / "uploads").iterdir()) == []


def test_non_form_body_is_rejected(make_client):
    transport = RecordingTransport()
    response = make_client(transport).post("/send-email", json=VALID_FIELDS)

    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "Expected a multipart/form-data submission."}
    assert transport.sent == []


def test_multipart_without_boundary_is_rejected(make_client):
    transport = RecordingTransport()
    response = make_client(transport).post(
        "/send-email",
        content=b"not really multipart",
        headers={"content-type": "multipart/form-data"},
    )

    assert response.status_code == 400
    assert response.json() == {"success": False, "message": MALFORMED_BODY_MESSAGE}
    assert transport.sent == []


def test_body_over_limit_is_rejected_before_parsing(make_client):
    transport = RecordingTransport()
    response = make_client(transport, max_request_bytes=4096).post(
        "/send-email", data=VALID_FIELDS, files=_resume(size=8192)
    )

    assert response.status_code == 400
    assert response.json() == {"success": False, "message": BODY_TOO_LARGE_MESSAGE}
    assert transport.sent == []


def test_health_endpoints(make_client):
    client = make_client(RecordingTransport())

    root = client.get("/").json()
    assert root["status"] == "OK"
    assert root["message"] == "Uma Foods Backend API is running"
    assert root["endpoints"]["sendEmail"] == "POST /send-email"

    api = client.get("/api").json()
    assert api["status"] == "OK"
    assert "endpoints" not in api

    assert client.get("/health").json() == {"status": "ok", "environment": "development"}


def test_unknown_route_lists_endpoints(make_client):
    response = make_client(RecordingTransport()).get("/careers")

    assert response.status_code == 404
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "Endpoint not found: GET /careers"
    assert "POST /api/send-email" in body["availableEndpoints"]


def test_wrong_method_keeps_json_shape(make_client):
    response = make_client(RecordingTransport()).get("/send-email")

    assert response.status_code == 405
    assert response.json()["success"] is False


@pytest.mark.parametrize("origin", ["http://localhost:5500", "https://careers-preview.netlify.app"])
def test_cors_allows_known_origins(make_client, origin):
    response = make_client(RecordingTransport()).options(
        "/send-email",
        headers={"Origin": origin, "Access-Control-Request-Method": "POST"},
    )

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == origin


def test_cors_rejects_unknown_origin(make_client):
    response = make_client(RecordingTransport()).options(
        "/send-email",
        headers={"Origin": "https://evil.example.com", "Access-Control-Request-Method": "POST"},
    )

    assert "access-control-allow-origin" not in response.headers


@pytest.mark.parametrize(
    "resume",
    [
        ("photo.png", b"\x89PNG\r\n", "image/png"),
        ("big.pdf", pdf_bytes(4 * 1024 * 1024), PDF_MIME),
    ],
)
def test_optional_policy_still_rejects_bad_resume(make_client, resume):
    transport = RecordingTransport()
    response = make_client(transport, require_resume=False).post(
        "/send-email", data=VALID_FIELDS, files={"resume": resume}
    )

    assert response.status_code == 400
    assert response.json()["success"] is False
    assert transport.sent == []


def test_uploaded_resume_reaches_the_mail_as_bytes(make_client):
    transport = RecordingTransport()
    data = pdf_bytes(2048)
    response = make_client(transport).post(
        "/send-email", data=VALID_FIELDS, files={"resume": ("cv.pdf", data, PDF_MIME)}
    )

    assert response.status_code == 200
    (attachment,) = transport.sent[0].attachments
    assert attachment.content == data
    assert attachment.mime_type == PDF_MIME


def test_chunked_body_over_limit_is_rejected(make_client):
    transport = RecordingTransport()
    body = b"--xyz\r\n" + b"0" * 8192

    def chunks():
        yield body[:4096]
        yield body[4096:]

    response = make_client(transport, max_request_bytes=4096).post(
        "/send-email",
        content=chunks(),
        headers={"content-type": "multipart/form-data; boundary=xyz"},
    )

    assert response.status_code == 400
    assert response.json() == {"success": False, "message": BODY_TOO_LARGE_MESSAGE}
    assert transport.sent == []
