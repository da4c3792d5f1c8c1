import logging

from fastapi import APIRouter, Depends, Request

from careers_mailer.api import deps
from careers_mailer.core.config import Settings
from careers_mailer.core.datetime_utils import iso_timestamp
from careers_mailer.schemas.submission import ErrorOut, SendEmailOut
from careers_mailer.services.email import MailTransport
from careers_mailer.services.submission import handle_submission

logger = logging.getLogger("careers.apply")

router = APIRouter(tags=["apply"])

ERROR_RESPONSES = {
    400: {"model": ErrorOut, "description": "Missing fields, missing or invalid resume, unreadable form"},
    500: {"model": ErrorOut, "description": "The application email could not be sent"},
}


@router.post("/send-email", response_model=SendEmailOut, responses=ERROR_RESPONSES)
@router.post("/api/send-email", response_model=SendEmailOut, responses=ERROR_RESPONSES)
async def send_application_email(
    request: Request,
    form: deps.SubmissionForm = Depends(deps.get_submission_form),
    settings: Settings = Depends(deps.get_settings),
    transport: MailTransport = Depends(deps.get_mail_transport),
):
    logger.info(
        "application_received",
        extra={
            "path": request.url.path,
            "origin": request.headers.get("origin"),
            "category": form.fields.category,
            "resume": form.resume.filename if form.resume else None,
        },
    )
    result = await handle_submission(form.fields, form.resume, settings=settings, transport=transport)
    return SendEmailOut(success=result.success, message=result.message, timestamp=iso_timestamp())
