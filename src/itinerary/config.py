"""Application configuration and settings management."""

from typing import Any, Literal

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="ITINERARY_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Itinerary Planner API"
    api_prefix: str = "/api"
    osrm_base_url: str = Field(
        default="https://router.project-osrm.org",
        description="OSRM upstream used for driving (and as fallback for other profiles).",
    )
    osrm_walking_url: str = Field(default="https://routing.openstreetmap.de/routed-foot")
    osrm_cycling_url: str = Field(default="https://routing.openstreetmap.de/routed-bike")
    osrm_timeout_seconds: float = Field(default=6.0, gt=0.0)
    osrm_max_retries: int = Field(default=2, ge=0)
    osrm_backoff_seconds: float = Field(default=0.5, ge=0.0)
    default_day_start: str = Field(default="08:00", description="Day window start (HH:MM).")
    default_day_end: str = Field(default="20:00", description="Day window end (HH:MM).")
    default_place_duration_min: int = Field(default=60, ge=0)
    default_airport_duration_min: int = Field(default=60, ge=0)
    default_travel_mode: Literal["driving", "walking", "cycling", "transit"] = "driving"
    two_opt_max_sweeps: int = Field(default=2000, ge=1)
    exact_solver_max_nodes: int = Field(default=12, ge=1)
    unreachable_penalty: float = Field(
        default=1e9,
        gt=0.0,
        description="Finite cost substituted for unreachable matrix entries.",
    )
    improvement_tolerance: float = Field(default=1e-6, ge=0.0)
    flight_speed_kmh: float = Field(default=750.0, gt=0.0)
    flight_overhead_min: float = Field(default=25.0, ge=0.0)
    flight_min_duration_min: float = Field(default=10.0, ge=0.0)
    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    @field_validator("frontend_allowed_origins", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            if value.strip():
                return (value.strip(),)
        return tuple()


settings = Settings()
