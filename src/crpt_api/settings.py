"""Runtime settings for the document submission client."""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from crpt_api.time_window import TimeUnit

DEFAULT_BASE_URL = "https://ismp.crpt.ru/api/v3/lk/documents/create"


class Settings(BaseSettings):
    """Endpoint, credentials and rate window for submissions."""

    model_config = SettingsConfigDict(
        env_prefix="CRPT_API_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    base_url: str = DEFAULT_BASE_URL
    token: str = ""
    product_group: str = "milk"
    timeout_s: float = 30.0
    time_unit: str = "seconds"
    request_limit: int = 10
    log_level: str = "info"

    @field_validator("time_unit")
    @classmethod
    def _check_time_unit(cls, value: str) -> str:
        return TimeUnit.parse(value).name.lower()

    @property
    def window_unit(self) -> TimeUnit:
        return TimeUnit.parse(self.time_unit)
