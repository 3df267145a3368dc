"""Runtime configuration for the supplier engine.

Relies on pydantic-settings so that environment variables (prefixed with ``SUPPLIER_``)
can override defaults. See `.env.example` for common values.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from supplier_scraper.auth.session_store import Credentials

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/143.0.0.0 Safari/537.36"
)


class Settings(BaseSettings):
    """Captures runtime configuration for the supplier engine."""

    tenant_id: Optional[str] = Field(default=None, description="Agency/tenant identifier (ARC number)")
    username: Optional[str] = Field(default=None, description="Primary account username")
    password: Optional[str] = Field(default=None, description="Primary account password")

    login_base_url: str = Field(
        default="https://login.www.vaxvacationaccess.com",
        description="Origin serving the login surface",
    )
    app_base_url: str = Field(
        default="https://new.www.vaxvacationaccess.com",
        description="Origin serving the search surface and auxiliary endpoints",
    )
    post_login_domain: str = Field(
        default="vaxvacationaccess.com",
        description="Location fragment that qualifies a post-login redirect as success",
    )
    http_timeout_s: float = Field(default=300.0, description="Per-request transport timeout")
    user_agent: str = Field(default=DEFAULT_USER_AGENT)

    session_cache_enabled: bool = Field(default=True, description="Persist sessions between processes")
    session_dir: Path = Field(default=Path("data/sessions"))
    session_ttl_hours: float = Field(default=2.0, description="Lifetime of a persisted session")

    cache_path: Path = Field(default=Path("data/cache/results.sqlite3"))
    cache_max_age_days: int = Field(default=7, description="Default age threshold for cache eviction")

    vendor_delay_s: float = Field(default=2.0, description="Pause between consecutive vendor searches")
    search_timeout_s: float = Field(
        default=900.0, description="Wall-clock bound for one multi-vendor search"
    )
    package_type: str = Field(default="H02", description="Package selector used for hotel-only searches")
    vendor_catalog_path: Path = Field(default=Path("data/catalog/vendors.json"))
    response_dump_dir: Optional[Path] = Field(
        default=None, description="When set, raw upstream documents are written here"
    )

    log_level: str = Field(default="INFO")
    log_dir: Path = Field(default=Path("data/logs"))

    model_config = SettingsConfigDict(
        env_prefix="SUPPLIER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("session_dir", "cache_path", "vendor_catalog_path", "log_dir", mode="before")
    def _expand_path(cls, value: str | Path) -> Path:  # noqa: D401
        if isinstance(value, Path):
            return value.expanduser()
        return Path(value).expanduser()

    @field_validator("response_dump_dir", mode="before")
    def _expand_dump_dir(cls, value: str | Path | None) -> Optional[Path]:
        if value in (None, ""):
            return None
        return Path(value).expanduser()

    @field_validator("session_ttl_hours")
    def _validate_ttl(cls, value: float) -> float:
        if not 0.5 <= value <= 24:
            raise ValueError("session_ttl_hours must be between 0.5 and 24")
        return value

    @field_validator("vendor_delay_s")
    def _validate_delay(cls, value: float) -> float:
        if value < 0:
            raise ValueError("vendor_delay_s must not be negative")
        return value

    @field_validator("http_timeout_s", "search_timeout_s")
    def _validate_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("timeouts must be positive")
        return value

    @field_validator("login_base_url", "app_base_url")
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @property
    def session_ttl_seconds(self) -> float:
        return self.session_ttl_hours * 3600

    @property
    def search_url(self) -> str:
        return f"{self.app_base_url}/Search/Default.aspx"

    @property
    def login_url(self) -> str:
        return f"{self.login_base_url}/default.aspx"

    def credentials(self) -> Credentials:
        """Return the configured credentials, failing fast when incomplete."""
        if not (self.tenant_id and self.username and self.password):
            raise RuntimeError("tenant_id/username/password must be configured for login")
        return Credentials(tenant_id=self.tenant_id, username=self.username, password=self.password)

    def ensure_directories(self) -> None:
        """Create directories that must exist at runtime."""
        self.session_dir.mkdir(parents=True, exist_ok=True)
        self.cache_path.parent.mkdir(parents=True, exist_ok=True)
        self.vendor_catalog_path.parent.mkdir(parents=True, exist_ok=True)
        self.log_dir.mkdir(parents=True, exist_ok=True)
        if self.response_dump_dir:
            self.response_dump_dir.mkdir(parents=True, exist_ok=True)
