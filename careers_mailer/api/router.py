from fastapi import APIRouter

from careers_mailer.api.routes import health
from careers_mailer.api.routes import send_email

api_router = APIRouter()
api_router.include_router(health.router)
api_router.include_router(send_email.router)
