from __future__ import annotations

from fastapi import status

DISPATCH_FAILED_MESSAGE = "Failed to send application. Please try again later."


class SubmissionError(Exception):
    """Base for failures that end a submission with a JSON ``success: false`` body."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, *, detail: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail


class ValidationError(SubmissionError):
    """Missing field, missing resume, bad file type or oversized file."""


class DecodingError(SubmissionError):
    """Malformed multipart body or request body over the size limit."""


class DispatchError(SubmissionError):
    """The mail transport failed to hand the message over."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str = DISPATCH_FAILED_MESSAGE, *, detail: str | None = None) -> None:
        super().__init__(message, detail=detail)
