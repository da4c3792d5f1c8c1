from __future__ import annotations

from pathlib import Path

PACKAGE_DIR = Path(__file__).resolve().parents[1]
REPO_DIR = PACKAGE_DIR.parent


def package_root() -> Path:
    return PACKAGE_DIR


def repo_path(value: str) -> Path:
    """Absolute paths pass through; relative ones (.env files, upload dir, credentials) hang off the repo root."""
    p = Path(value).expanduser()
    return p if p.is_absolute() else REPO_DIR / p
