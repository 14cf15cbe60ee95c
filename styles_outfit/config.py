"""Configuration management for the Styles outfit generator."""

from pathlib import Path
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings


class OpenRouterConfig(BaseModel):
    """OpenRouter connection settings."""
    base_url: str = "https://openrouter.ai/api/v1"
    timeout: float = 120.0
    referer: str | None = None  # sent as HTTP-Referer for OpenRouter rankings
    app_title: str = "Styles - AI Outfit Generator"

    @property
    def completions_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/chat/completions"


class GenerationConfig(BaseModel):
    """Model and provenance settings."""
    model: str = "google/gemini-2.0-flash-exp:free"
    model_label: str = "Gemini 2.5 Flash (via OpenRouter)"
    prompt_version: str = "1.0"
    image_output: bool = False  # description-only unless the model returns images


class UploadConfig(BaseModel):
    """Upload constraints checked before any network call."""
    max_file_size: int = 10 * 1024 * 1024
    supported_types: tuple[str, ...] = (
        "image/jpeg",
        "image/jpg",
        "image/png",
        "image/webp",
    )


class StageScheduleConfig(BaseModel):
    """Seconds from attempt start at which each loading stage begins."""
    preparing: float = 0.0
    uploading: float = 1.0
    processing: float = 2.0
    generating: float = 8.0
    finishing: float = 15.0

    def scaled(self, factor: float) -> "StageScheduleConfig":
        """Return a copy with every offset multiplied by ``factor``."""
        return StageScheduleConfig(
            **{name: value * factor for name, value in self.model_dump().items()}
        )


class StylesConfig(BaseSettings):
    """Main application configuration."""

    # Credentials (loaded from .env)
    openrouter_api_key: str | None = None

    # Paths
    body_data_path: Path = Path(".styles/body_data.json")
    download_dir: Path = Path("output/downloads")

    # Sub-configs
    openrouter: OpenRouterConfig = Field(default_factory=OpenRouterConfig)
    generation: GenerationConfig = Field(default_factory=GenerationConfig)
    upload: UploadConfig = Field(default_factory=UploadConfig)
    stages: StageScheduleConfig = Field(default_factory=StageScheduleConfig)

    log_level: str = "INFO"
    abort_on_cancel: bool = True

    class Config:
        env_file = ".env"
        env_prefix = ""
        env_nested_delimiter = "__"
        extra = "ignore"


def load_config() -> StylesConfig:
    """Load configuration from environment and defaults."""
    return StylesConfig()
