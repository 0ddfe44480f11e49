from typing import Literal

from pydantic import ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings

# Publicly known; only acceptable outside production
FALLBACK_CAPTCHA_SECRET = "bengyixia-captcha-secret-key-2024"


class Settings(BaseSettings):
    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    environment: Literal["development", "production"] = "development"

    # Captcha
    captcha_secret: str = Field(FALLBACK_CAPTCHA_SECRET, min_length=1)
    captcha_ttl_seconds: int = Field(300, ge=1, le=3600)  # 5 minutes
    captcha_width: int = 150
    captcha_height: int = 48
    captcha_noise_lines: int = Field(5, ge=0)
    captcha_noise_dots: int = Field(30, ge=0)

    # Rate Limiting
    rate_limit_captcha_issue: str = "20/minute"
    rate_limit_captcha_verify: str = "60/minute"

    # Logging
    log_level: str = "INFO"
    log_format: Literal["console", "json"] = "console"

    # CORS
    cors_origins: list[str] | str = ["http://localhost:3000", "http://127.0.0.1:3000"]

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS origins from comma-separated string or list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @property
    def uses_fallback_secret(self) -> bool:
        return self.captcha_secret == FALLBACK_CAPTCHA_SECRET


settings = Settings()
