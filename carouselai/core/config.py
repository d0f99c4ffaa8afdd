"""
Application configuration management using Pydantic Settings.
"""
from functools import lru_cache
from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    APP_NAME: str = "CarouselAI"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    ENVIRONMENT: str = Field(default="development", pattern="^(development|staging|production|test)$")

    # API
    API_V1_PREFIX: str = "/api/v1"
    PROJECT_NAME: str = "CarouselAI API"
    BACKEND_CORS_ORIGINS: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"]
    )

    # Generative backend
    GEMINI_API_KEY: Optional[str] = None
    TEXT_MODEL_TIERS: List[str] = Field(
        default=[
            "gemini-3-pro-preview",
            "gemini-2.5-pro-preview-02-05",
            "gemini-2.5-flash",
        ]
    )
    IMAGE_MODEL_TIERS: List[str] = Field(
        default=[
            "gemini-3-pro-image-preview",
            "gemini-2.5-flash-image",
        ]
    )
    DEFAULT_IMAGE_STYLE: str = "Minimalist, high quality, photorealistic, cinematic lighting."
    DEFAULT_SLIDE_COUNT: int = Field(default=7, ge=3, le=20)

    # Task status feedback (seconds)
    STATUS_CLEAR_DELAY_SECONDS: float = 3.0
    BATCH_SETTLE_DELAY_SECONDS: float = 3.0

    # Capture / export
    ASSET_WAIT_TIMEOUT_SECONDS: float = 3.0
    RENDER_SETTLE_DELAY_SECONDS: float = 0.3
    PREVIEW_WIDTH: int = 1080
    EXPORT_ARCHIVE_NAME: str = "instagram-carousel.zip"

    # Headless renderer (optional)
    RENDERER_URL: Optional[str] = None
    RENDERER_SELECTOR: str = "#preview-slide-capture"

    @field_validator("BACKEND_CORS_ORIGINS", "TEXT_MODEL_TIERS", "IMAGE_MODEL_TIERS", mode="before")
    @classmethod
    def split_comma_separated(cls, v: str | List[str]) -> List[str]:
        if isinstance(v, str):
            return [i.strip() for i in v.split(",") if i.strip()]
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.ENVIRONMENT == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.ENVIRONMENT == "development"

    def get_ai_config(self) -> Dict[str, Any]:
        """Get generative backend configuration."""
        return {
            "text_models": list(self.TEXT_MODEL_TIERS),
            "image_models": list(self.IMAGE_MODEL_TIERS),
            "default_image_style": self.DEFAULT_IMAGE_STYLE,
            "has_gemini": bool(self.GEMINI_API_KEY),
        }


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings: Application settings
    """
    return Settings()


# Create a settings instance for easy import
settings = get_settings()
