PDF_MIME = "application/pdf"
DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

VALID_FIELDS = {
    "firstName": "Asha",
    "lastName": "Kumar",
    "email": "asha@example.com",
    "phone": "9999999999",
    "category": "Sales",
}


def pdf_bytes(size: int) -> bytes:
    header = b"%PDF-1.4\n"
    return header + b"0" * max(0, size - len(header))


class RecordingTransport:
    """Mail transport double that records every dispatch attempt."""

    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.sent = []
        self.paths_present_at_send = []

    async def send(self, message) -> str:
        self.sent.append(message)
        self.paths_present_at_send.extend(
            attachment.path.exists() for attachment in message.attachments if attachment.path is not None
        )
        if self.error is not None:
            raise self.error
        return f"<msg-{len(self.sent)}@test.local>"
