from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="DASHLIGHT_", env_file=".env", extra="ignore")

    app_name: str = "dashlight"
    log_level: str = "INFO"

    # request limits
    max_image_mb: int = 10

    # local classifier
    vision_engine: str = "mobilenet"  # "mobilenet" | "noop"
    model_path: str = "models/dashboard_mobilenet_v2.pt"
    model_output: Literal["logits", "probabilities"] = "logits"
    confidence_threshold: float = Field(default=0.70, ge=0.0, le=1.0)

    # cloud fallback (read once at the start of each request)
    provider: str = "claude"  # "claude" | "gpt4o" | "gemini"
    provider_api_key: str = ""
    provider_endpoint: Optional[str] = None  # override for the configured provider (proxy, staging)
    remote_timeout_seconds: float = 20.0
    remote_max_edge: int = 512
    remote_jpeg_quality: int = Field(default=80, ge=1, le=95)

    # capture guide box (viewport points)
    crop_padding: float = Field(default=0.10, ge=0.0)
    guide_size: float = 240.0
    guide_y_offset: float = -40.0


settings = Settings()
