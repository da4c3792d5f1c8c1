from fastapi import APIRouter, Depends

from careers_mailer.api import deps
from careers_mailer.core.config import Settings
from careers_mailer.core.datetime_utils import iso_timestamp
from careers_mailer.schemas.submission import HealthOut

router = APIRouter(tags=["health"])

ENDPOINTS = {
    "health": "GET /",
    "sendEmail": "POST /send-email",
    "sendEmailAlt": "POST /api/send-email",
}


@router.get("/", response_model=HealthOut, response_model_exclude_none=True)
async def root_health(settings: Settings = Depends(deps.get_settings)):
    return HealthOut(
        status="OK",
        message=f"{settings.company_name} Backend API is running",
        version=settings.version,
        environment=settings.environment,
        timestamp=iso_timestamp(),
        endpoints=ENDPOINTS,
    )


@router.get("/api", response_model=HealthOut, response_model_exclude_none=True)
async def api_health(settings: Settings = Depends(deps.get_settings)):
    return HealthOut(
        status="OK",
        message=f"{settings.company_name} Backend API is running",
        timestamp=iso_timestamp(),
    )


@router.get("/health")
async def health_check(settings: Settings = Depends(deps.get_settings)):
    return {"status": "ok", "environment": settings.environment}
