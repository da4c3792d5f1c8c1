from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


@dataclass(frozen=True)
class FileAttachment:
    filename: str
    mime_type: str
    size_bytes: int
    content: bytes | None = None
    path: Path | None = None

    @property
    def is_transient(self) -> bool:
        return self.path is not None

    @property
    def size_kb(self) -> str:
        return f"{self.size_bytes / 1024:.2f}"


@dataclass(frozen=True)
class ApplicationSubmission:
    first_name: str
    last_name: str
    email: str
    phone: str
    category: str
    resume: FileAttachment | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True)
class SubmissionResult:
    success: bool
    message: str
    detail: str | None = None


class SubmissionFields(BaseModel):
    """Raw text fields as they arrive on the form, before validation."""

    model_config = ConfigDict(populate_by_name=True)

    first_name: Optional[str] = Field(default=None, alias="firstName")
    last_name: Optional[str] = Field(default=None, alias="lastName")
    email: Optional[str] = None
    phone: Optional[str] = None
    category: Optional[str] = None


class SendEmailOut(BaseModel):
    success: bool = True
    message: str
    timestamp: str


class ErrorOut(BaseModel):
    success: bool = False
    message: str
    error: Optional[str] = None


class HealthOut(BaseModel):
    status: str
    message: str
    version: Optional[str] = None
    environment: Optional[str] = None
    timestamp: str
    endpoints: Optional[dict[str, str]] = None
