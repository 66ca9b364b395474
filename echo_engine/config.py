import os
from functools import lru_cache
from pathlib import Path as _Path

from dotenv import load_dotenv as _load_dotenv
from pydantic import BaseModel, Field

_load_dotenv(dotenv_path=_Path(__file__).resolve().parent.parent / ".env", override=False)


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class Settings(BaseModel):
    # Support multiple common env var names for Mongo connection string
    mongo_uri: str = Field(
        default_factory=lambda: (
            os.getenv("MONGO_URI")
            or os.getenv("MONGODB_URI")
            or os.getenv("MONGO_URL")
            or ""
        )
    )
    mongo_db: str = Field(default_factory=lambda: os.getenv("MONGO_DB_NAME", "echo"))
    # Optional: provide a non-SRV fallback URI (e.g., mongodb://127.0.0.1:27017)
    mongo_alt_uri: str = Field(default_factory=lambda: os.getenv("MONGO_ALT_URI", ""))
    mongo_direct: bool = Field(default_factory=lambda: _env_flag("MONGO_DIRECT"))
    cors_origin: str = Field(default_factory=lambda: os.getenv("CORS_ORIGIN", "http://localhost:5173"))
    port: int = Field(default_factory=lambda: int(os.getenv("PY_BACKEND_PORT", "8081")))

    # Swipe quotas and match lifecycle
    free_daily_swipes: int = Field(default_factory=lambda: int(os.getenv("ECHO_FREE_DAILY_SWIPES", "20")))
    reset_timezone: str = Field(default_factory=lambda: os.getenv("ECHO_RESET_TIMEZONE", "UTC"))
    match_ttl_hours: int = Field(default_factory=lambda: int(os.getenv("ECHO_MATCH_TTL_HOURS", "48")))
    history_limit: int = Field(default_factory=lambda: int(os.getenv("ECHO_HISTORY_LIMIT", "100")))
    match_policy: str = Field(default_factory=lambda: os.getenv("ECHO_MATCH_POLICY", "random").lower())
    like_match_chance: float = Field(default_factory=lambda: float(os.getenv("ECHO_LIKE_MATCH_CHANCE", "0.30")))
    superlike_match_chance: float = Field(
        default_factory=lambda: float(os.getenv("ECHO_SUPERLIKE_MATCH_CHANCE", "0.60"))
    )

    # Geolocation collaborator timeouts (seconds)
    geo_permission_timeout_s: float = Field(
        default_factory=lambda: float(os.getenv("GEO_PERMISSION_TIMEOUT_S", "10"))
    )
    geo_permission_max_age_s: float = Field(
        default_factory=lambda: float(os.getenv("GEO_PERMISSION_MAX_AGE_S", "60"))
    )
    geo_checkin_timeout_s: float = Field(default_factory=lambda: float(os.getenv("GEO_CHECKIN_TIMEOUT_S", "5")))


@lru_cache()
def get_settings() -> Settings:
    return Settings()
