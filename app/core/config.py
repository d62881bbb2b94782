import json
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False)

    env: Literal["dev", "prod"] = "dev"
    project_name: str = "Route Wizard"
    api_v1_prefix: str = "/api/v1"
    log_level: str = "INFO"

    frontend_origins: list[str] = Field(default_factory=list)

    openrouteservice_api_key: str = ""
    openrouteservice_base_url: str = "https://api.openrouteservice.org"
    route_request_timeout_sec: float = 10.0
    route_retry_attempts: int = 2
    route_retry_backoff_sec: float = 0.5

    nominatim_base_url: str = "https://nominatim.openstreetmap.org"
    nominatim_user_agent: str = "route-wizard-hub/1.0 (geocoder)"
    geocode_country_codes: str = "de,at,ch,fr,nl,be,lu,pl,cz,dk,it"
    geocode_timeout_sec: float = 6.0
    geocode_max_concurrency: int = 4

    driving_avg_speed_kmh: float = Field(default=60.0, gt=0)
    walking_avg_speed_kmh: float = Field(default=4.5, gt=0)
    duplicate_tolerance_deg: float = Field(default=1e-4, ge=0)

    @field_validator("frontend_origins", mode="before")
    @classmethod
    def parse_origins(cls, value: object) -> list[str]:
        def _normalize_origin(origin_value: object) -> str:
            origin = str(origin_value).strip()
            if not origin:
                return ""
            # Browser `Origin` header never includes a trailing slash.
            return origin.rstrip("/")

        if isinstance(value, str):
            if not value.strip():
                return []
            if value.strip().startswith("["):
                try:
                    parsed = json.loads(value)
                    if isinstance(parsed, list):
                        return [_normalize_origin(origin) for origin in parsed if _normalize_origin(origin)]
                except json.JSONDecodeError:
                    pass
            return [_normalize_origin(origin) for origin in value.split(",") if _normalize_origin(origin)]
        if isinstance(value, list):
            return [_normalize_origin(item) for item in value if _normalize_origin(item)]
        return []

    @model_validator(mode="after")
    def apply_frontend_origin_defaults(self) -> "Settings":
        if self.frontend_origins:
            # Preserve order but drop duplicates.
            self.frontend_origins = list(dict.fromkeys(self.frontend_origins))
            return self

        if self.env == "dev":
            self.frontend_origins = [
                "http://localhost:5173",
                "http://127.0.0.1:5173",
                "http://localhost:8080",
            ]
        else:
            self.frontend_origins = []
        return self

    @field_validator("geocode_country_codes", mode="before")
    @classmethod
    def normalize_country_codes(cls, value: object) -> str:
        if isinstance(value, (list, tuple)):
            items = [str(item) for item in value]
        else:
            items = str(value or "").split(",")
        return ",".join(item.strip().lower() for item in items if item.strip())

    def average_speed_kmh(self, mode: str) -> float:
        if mode == "walking":
            return self.walking_avg_speed_kmh
        return self.driving_avg_speed_kmh


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
