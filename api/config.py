"""Settings for the hotspot control API."""

from __future__ import annotations

from importlib import metadata

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DISTRIBUTION_NAME = "hotspot-alert"


def _installed_version() -> str:
    try:
        return metadata.version(DISTRIBUTION_NAME)
    except metadata.PackageNotFoundError:
        return "0.1.0"


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(case_sensitive=False, extra="ignore")

    app_name: str = "Hotspot Alert API"
    version: str = Field(default_factory=_installed_version)
    environment: str = Field(default="dev", validation_alias="APP_ENV")
    git_commit: str = Field(default="unknown", validation_alias="GIT_COMMIT")

    # Bearer token expected on the scheduled trigger; unset disables the check.
    cron_secret: str | None = Field(default=None, validation_alias="CRON_SECRET")

    def cron_authorized(self, authorization: str | None) -> bool:
        if not self.cron_secret:
            return True
        return authorization == f"Bearer {self.cron_secret}"


settings = AppSettings()
