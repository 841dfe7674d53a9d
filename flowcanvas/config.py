# flowcanvas/config.py
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "Flow Canvas"
    environment: str = Field(default="development")
    debug: bool = Field(default=False)

    database_url: str = Field(default="sqlite:///./flows.db")
    collection_key: str = Field(default="leadsbox_flows")
    draft_key: str = Field(default="automation_draft")

    autosave_delay: float = Field(default=1.5, gt=0)
    # None keeps every snapshot for the session
    history_limit: Optional[int] = Field(default=None, ge=1)

    min_scale: float = Field(default=0.5, gt=0)
    max_scale: float = Field(default=1.6, gt=0)
    zoom_step: float = Field(default=0.1, gt=0)

    log_level: str = Field(default="INFO")
    log_json: bool = Field(default=False)

    model_config = SettingsConfigDict(
        env_prefix="FLOWCANVAS_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
