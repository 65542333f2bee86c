import os
from functools import lru_cache
from typing import Any, Dict, Literal

from pydantic import BaseModel, Field, field_validator

_TRUE_VALUES = {"1", "true", "yes", "on"}


class Settings(BaseModel):
    debug: bool = Field(
        default=False,
        description="Debug mode; also allows cross-origin requests from any origin",
    )
    host: str = Field(
        default="0.0.0.0",
        description="Interface the HTTP server binds to",
    )
    port: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="Port the HTTP server listens on",
    )
    cors_origin_regex: str = Field(
        default=r"https?://(localhost|127\.0\.0\.1)(:\d+)?",
        description="Browser origins allowed to call the API when debug is off",
    )
    log_level: Literal["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"] = Field(
        default="INFO",
        description="Root log level, e.g. INFO or WARNING",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalise_log_level(cls, value: Any) -> Any:
        return value.strip().upper() if isinstance(value, str) else value

    @classmethod
    def from_env(cls) -> "Settings":
        values: Dict[str, Any] = {
            "debug": os.getenv("SYSTEM_STATUS_DEBUG", "").strip().lower() in _TRUE_VALUES,
        }
        # Unset variables keep the field defaults
        for field, var in (
            ("host", "SYSTEM_STATUS_HOST"),
            ("port", "SYSTEM_STATUS_PORT"),
            ("cors_origin_regex", "SYSTEM_STATUS_CORS_ORIGIN_REGEX"),
            ("log_level", "SYSTEM_STATUS_LOG_LEVEL"),
        ):
            raw = os.getenv(var)
            if raw:
                values[field] = raw.strip()

        return cls(**values)

    def cors_options(self) -> Dict[str, Any]:
        """
        Keyword arguments for CORSMiddleware.

        Debug mode allows every origin, otherwise only origins matching
        cors_origin_regex. The API is read-only, so only GET is allowed.
        """
        if self.debug:
            return {"allow_origins": ["*"], "allow_methods": ["GET"]}
        return {"allow_origin_regex": self.cors_origin_regex, "allow_methods": ["GET"]}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()
