from __future__ import annotations

from dataclasses import dataclass
from typing import AsyncIterator

from fastapi import Request
from starlette.datastructures import FormData, UploadFile
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.formparsers import MultiPartException

from careers_mailer.core.config import Settings
from careers_mailer.core.errors import DecodingError
from careers_mailer.schemas.submission import SubmissionFields
from careers_mailer.services.email import MailTransport

FORM_CONTENT_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")
MALFORMED_BODY_MESSAGE = "Could not read the submitted form. Please try again."


@dataclass(frozen=True)
class SubmissionForm:
    fields: SubmissionFields
    resume: UploadFile | None


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_mail_transport(request: Request) -> MailTransport:
    return request.app.state.mail_transport


def _text_value(form: FormData, name: str) -> str | None:
    value = form.get(name)
    return value if isinstance(value, str) else None


def _file_value(form: FormData, name: str) -> UploadFile | None:
    value = form.get(name)
    return value if isinstance(value, UploadFile) else None


async def get_submission_form(request: Request) -> AsyncIterator[SubmissionForm]:
    content_type = (request.headers.get("content-type") or "").split(";", 1)[0].strip().lower()
    if content_type not in FORM_CONTENT_TYPES:
        raise DecodingError("Expected a multipart/form-data submission.")

    try:
        form = await request.form(max_files=1)
    except (MultiPartException, StarletteHTTPException) as exc:
        raise DecodingError(MALFORMED_BODY_MESSAGE, detail=str(getattr(exc, "detail", exc))) from exc

    try:
        yield SubmissionForm(
            fields=SubmissionFields(
                first_name=_text_value(form, "firstName"),
                last_name=_text_value(form, "lastName"),
                email=_text_value(form, "email"),
                phone=_text_value(form, "phone"),
                category=_text_value(form, "category"),
            ),
            resume=_file_value(form, "resume"),
        )
    finally:
        await form.close()
