from __future__ import annotations

import logging

from fastapi import status
from fastapi.responses import JSONResponse
from starlette.datastructures import Headers
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from careers_mailer.core.errors import DecodingError

logger = logging.getLogger("careers.request")

BODY_TOO_LARGE_MESSAGE = "Request body is too large. Please upload a smaller file."


class BodySizeLimitMiddleware:
    """
    Caps request bodies at ``max_bytes``.

    A declared Content-Length over the cap is answered with a 400 before the app
    runs. Bodies without a length (chunked) are counted as they are received; the
    first chunk past the cap raises DecodingError inside the app, which the
    SubmissionError handler renders as the same 400.
    """

    def __init__(self, app: ASGIApp, *, max_bytes: int) -> None:
        self.app = app
        self.max_bytes = max_bytes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        raw_length = Headers(scope=scope).get("content-length")
        if raw_length is not None:
            try:
                length = int(raw_length)
            except ValueError:
                length = -1
            if length < 0 or length > self.max_bytes:
                logger.info(
                    "request_body_rejected",
                    extra={"path": scope.get("path"), "content_length": raw_length, "max_bytes": self.max_bytes},
                )
                response = JSONResponse(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    content={"success": False, "message": BODY_TOO_LARGE_MESSAGE},
                )
                await response(scope, receive, send)
                return

        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_bytes:
                    logger.info(
                        "request_body_rejected",
                        extra={"path": scope.get("path"), "received": received, "max_bytes": self.max_bytes},
                    )
                    raise DecodingError(BODY_TOO_LARGE_MESSAGE)
            return message

        await self.app(scope, limited_receive, send)
