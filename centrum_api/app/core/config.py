"""
Simple configuration management.

The ``Settings`` dataclass reads configuration directly from
environment variables.  Defaults are provided for all fields so the
service starts with a file-backed store and open write access.  In a
deployment, set ``ADMIN_REQUIRED=true`` together with ``ADMIN_PIN`` and
``ADMIN_SECRET`` to gate write operations behind an admin session.
"""

import os
from dataclasses import dataclass
from pathlib import Path


# Repository root; relative paths in settings are resolved against it.
BASE_DIR = Path(__file__).resolve().parents[3]


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes"}


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    project_name: str = os.getenv("PROJECT_NAME", "Centrum Listings API")
    api_version: str = os.getenv("API_VERSION", "1.0.0")
    debug: bool = _env_flag("DEBUG")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_file: str = os.getenv("LOG_FILE", "")

    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "3000"))

    # Which ``ListingStore`` implementation to build: ``file`` keeps every
    # listing in a single JSON document, ``sqlite`` stores one JSON
    # document per row and ``memory`` keeps nothing across restarts.
    store_backend: str = os.getenv("STORE_BACKEND", "file")
    data_file: str = os.getenv("DATA_FILE", "data/listings.json")
    database_url: str = os.getenv("DATABASE_URL", "listings.db")

    # Directory holding index.html, admin.html and the images/scripts
    # they reference.  Missing directory simply disables page serving.
    static_dir: str = os.getenv("STATIC_DIR", "static")

    # Admin session gate.  Reads are always public; writes require a
    # session cookie only when ``admin_required`` is set.
    admin_required: bool = _env_flag("ADMIN_REQUIRED")
    admin_pin: str = os.getenv("ADMIN_PIN", "")
    admin_secret: str = os.getenv("ADMIN_SECRET", "")
    admin_pin_length: int = int(os.getenv("ADMIN_PIN_LENGTH", "4"))
    session_cookie_name: str = os.getenv("SESSION_COOKIE_NAME", "admin_session")
    session_max_age_days: int = int(os.getenv("SESSION_MAX_AGE_DAYS", "7"))
    cookie_secure: bool = _env_flag("COOKIE_SECURE")

    @property
    def session_max_age_seconds(self) -> int:
        return self.session_max_age_days * 24 * 60 * 60

    def resolve_path(self, value: str) -> Path:
        """Return ``value`` as an absolute path.

        Absolute paths are used as is; relative ones are resolved
        against the repository root so that the service behaves the same
        regardless of the working directory it was launched from.
        """
        path = Path(value)
        if path.is_absolute():
            return path
        return (BASE_DIR / path).resolve()


# Instantiate settings once so other modules can import it without
# repeatedly reading environment variables.  Environment variables must
# be set before importing this module.
settings = Settings()
