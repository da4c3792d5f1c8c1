import os
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from careers_mailer.core.paths import repo_path

DEFAULT_ALLOWED_ORIGINS = ",".join(
    [
        "http://localhost:5500",
        "http://localhost:5501",
        "http://localhost:5502",
        "http://127.0.0.1:5500",
        "http://127.0.0.1:5501",
        "http://127.0.0.1:5502",
    ]
)


def _env_files() -> list[str]:
    base = repo_path(".env")
    env = (os.getenv("CAREERS_ENVIRONMENT") or os.getenv("NODE_ENV") or "").strip().lower()
    files = [str(base)]
    if env and env != "development":
        files.append(str(repo_path(f".env.{env}")))
    else:
        files.append(str(repo_path(".env.local")))
    return files


class Settings(BaseSettings):
    app_name: str = "Careers Mailer"
    company_name: str = "Uma Foods"
    version: str = "1.0.0"
    environment: str = Field(
        default="development",
        validation_alias=AliasChoices("CAREERS_ENVIRONMENT", "NODE_ENV"),
    )

    host: str = "0.0.0.0"
    port: int = Field(default=5000, validation_alias=AliasChoices("CAREERS_PORT", "PORT"))

    mail_transport: Literal["smtp", "gmail_api"] = "smtp"
    email_user: str = Field(default="", validation_alias=AliasChoices("CAREERS_EMAIL_USER", "EMAIL_USER"))
    email_pass: str = Field(default="", validation_alias=AliasChoices("CAREERS_EMAIL_PASS", "EMAIL_PASS"))
    sender_name: str = "Uma Foods Careers"
    receiver_email: str = Field(
        default="",
        validation_alias=AliasChoices("CAREERS_RECEIVER_EMAIL", "RECEIVER_EMAIL"),
    )
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_timeout_seconds: float = 30.0
    google_application_credentials: str = Field(
        default="secrets/google-service-account.json",
        validation_alias=AliasChoices(
            "CAREERS_GOOGLE_APPLICATION_CREDENTIALS",
            "GOOGLE_APPLICATION_CREDENTIALS",
        ),
    )

    allowed_origins: str = DEFAULT_ALLOWED_ORIGINS
    allowed_origin_regex: str = r"https://.*\.netlify\.app"

    require_resume: bool = True
    validate_resume: bool = True
    max_resume_bytes: int = 3 * 1024 * 1024
    max_request_bytes: int = 10 * 1024 * 1024
    upload_storage: Literal["memory", "disk"] = "memory"
    upload_dir: str = "uploads"

    model_config = SettingsConfigDict(
        env_prefix="CAREERS_",
        env_file=_env_files(),
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )

    @property
    def is_development(self) -> bool:
        return self.environment.strip().lower() == "development"

    @property
    def cors_origins(self) -> list[str]:
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]


settings = Settings()
