from __future__ import annotations

import logging
import time
from datetime import datetime

from starlette.datastructures import UploadFile

from careers_mailer.core.config import Settings
from careers_mailer.core.datetime_utils import format_ist, now_utc
from careers_mailer.core.errors import DispatchError, ValidationError
from careers_mailer.core.uploads import MISSING_RESUME_MESSAGE, has_file, stage_resume
from careers_mailer.schemas.submission import (
    ApplicationSubmission,
    FileAttachment,
    SubmissionFields,
    SubmissionResult,
)
from careers_mailer.services.email import (
    MailAttachment,
    MailMessage,
    MailTransport,
    format_sender,
    render_template,
)

logger = logging.getLogger("careers.apply")

REQUIRED_FIELDS = ("first_name", "last_name", "email", "phone", "category")
ALL_FIELDS_REQUIRED_MESSAGE = "All fields are required. Please fill in all fields."
SUCCESS_MESSAGE = "Application submitted successfully! We will contact you soon."


def _strip_optional(value: str | None) -> str | None:
    if value is None:
        return None
    cleaned = value.strip()
    return cleaned or None


def _single_line(value: str) -> str:
    return " ".join(value.split())


def validate_fields(fields: SubmissionFields) -> dict[str, str]:
    cleaned = {name: _strip_optional(getattr(fields, name)) for name in REQUIRED_FIELDS}
    missing = [name for name, value in cleaned.items() if not value]
    if missing:
        logger.info("validation_failed", extra={"reason": "missing_fields", "fields": missing})
        raise ValidationError(ALL_FIELDS_REQUIRED_MESSAGE)
    return cleaned


def build_subject(submission: ApplicationSubmission) -> str:
    return _single_line(f"New Job Application: {submission.category} - {submission.full_name}")


def render_body(submission: ApplicationSubmission, *, settings: Settings, submitted_at: datetime) -> str:
    resume = submission.resume
    if resume is not None:
        resume_row = render_template(
            "application_resume_row",
            {"filename": resume.filename, "size_kb": resume.size_kb},
        )
        resume_note = render_template("application_resume_note", {})
    else:
        resume_row = ""
        resume_note = render_template("application_no_resume_note", {})

    return render_template(
        "application",
        {
            "company_name": settings.company_name,
            "first_name": submission.first_name,
            "last_name": submission.last_name,
            "email": submission.email,
            "phone": submission.phone,
            "category": submission.category,
            "submitted_at": format_ist(submitted_at),
            "year": submitted_at.year,
        },
        safe={"resume_row": resume_row, "resume_note": resume_note},
    )


def _to_mail_attachment(resume: FileAttachment) -> MailAttachment:
    return MailAttachment(
        filename=resume.filename,
        mime_type=resume.mime_type,
        content=resume.content,
        path=resume.path,
    )


def compose_message(
    submission: ApplicationSubmission,
    *,
    settings: Settings,
    submitted_at: datetime | None = None,
) -> MailMessage:
    if not settings.receiver_email:
        raise DispatchError(detail="Recipient address (RECEIVER_EMAIL) is not configured.")

    submitted_at = submitted_at or now_utc()
    return MailMessage(
        sender=format_sender(settings.sender_name, settings.email_user),
        to=[settings.receiver_email],
        subject=build_subject(submission),
        html=render_body(submission, settings=settings, submitted_at=submitted_at),
        attachments=[_to_mail_attachment(submission.resume)] if submission.resume else [],
        reply_to=_single_line(submission.email),
    )


async def dispatch(message: MailMessage, transport: MailTransport) -> str:
    try:
        return await transport.send(message)
    except DispatchError:
        raise
    except Exception as exc:  # noqa: BLE001
        raise DispatchError(detail=str(exc) or exc.__class__.__name__) from exc


async def handle_submission(
    fields: SubmissionFields,
    resume_upload: UploadFile | None,
    *,
    settings: Settings,
    transport: MailTransport,
) -> SubmissionResult:
    """
    Validate, compose and dispatch one application email.

    Raises ValidationError before any dispatch for bad input and DispatchError when
    the transport fails. A staged resume file is removed before this returns or raises.
    """
    start = time.perf_counter()
    values = validate_fields(fields)

    if settings.require_resume and not has_file(resume_upload):
        logger.info("validation_failed", extra={"reason": "missing_resume"})
        raise ValidationError(MISSING_RESUME_MESSAGE)

    async with stage_resume(resume_upload, settings=settings) as attachment:
        submission = ApplicationSubmission(**values, resume=attachment)
        try:
            message = compose_message(submission, settings=settings)
            message_id = await dispatch(message, transport)
        except DispatchError as exc:
            logger.error(
                "application_send_failed",
                extra={
                    "category": submission.category,
                    "error": exc.detail,
                    "duration_ms": int((time.perf_counter() - start) * 1000),
                },
            )
            raise

    logger.info(
        "application_sent",
        extra={
            "category": submission.category,
            "message_id": message_id,
            "has_resume": attachment is not None,
            "duration_ms": int((time.perf_counter() - start) * 1000),
        },
    )
    return SubmissionResult(success=True, message=SUCCESS_MESSAGE, detail=message_id)
