# services/api/settings.py
from pydantic_settings import BaseSettings
from pydantic import ConfigDict, Field
from typing import List
from pathlib import Path


class Settings(BaseSettings):
    # Storage settings
    # Default to SQLite; override via .env (STORAGE_BACKEND=json) for file-based demos
    storage_backend: str = "sqlite"
    db_url: str = "sqlite:///data/rootstudy.db"
    json_data_dir: str = "data"

    # Server
    port: int = 8000
    log_level: str = "INFO"

    # CORS settings
    allowed_origins: str = "*"

    # Cloudinary (attachment store)
    cloudinary_cloud_name: str = ""
    cloudinary_api_key: str = ""
    cloudinary_api_secret: str = Field(default="", validation_alias="CLOUDINARY_SECRET_KEY")
    cloudinary_folder: str = "rootstudy"

    # Text generation (OpenRouter chat completions)
    ai_api_key: str = ""
    text_model: str = "x-ai/grok-4.1-fast:free"
    openrouter_base_url: str = "https://openrouter.ai/api/v1/chat/completions"

    # Image generation (OpenAI-compatible images endpoint, b64_json response)
    image_api_key: str = ""
    image_model: str = "gpt-image-1"
    image_api_url: str = "https://api.openai.com/v1/images/generations"
    image_size: str = "1024x1024"

    # Video suggestions (YouTube Data API v3)
    youtube_api_key: str = ""
    youtube_search_url: str = "https://www.googleapis.com/youtube/v3/search"
    youtube_max_results: int = 8

    http_timeout_seconds: float = 30.0

    # Upload limits
    # PDF import: 25 MiB / 50 pages. Page attachments: 20 MiB per file.
    max_pdf_size_bytes: int = 25 * 1024 * 1024
    max_pdf_pages: int = 50
    max_upload_bytes: int = 20 * 1024 * 1024
    # Non-file multipart fields (canvasData can get big)
    max_form_field_bytes: int = 25 * 1024 * 1024
    upload_tmp_dir: str = "uploads"

    # When TRUE, unexpected failures in the publish flow return the raw
    # exception text to the caller (handy while debugging, leaks internals).
    expose_error_details: bool = True

    model_config = ConfigDict(
        # Always load .env from the same folder as this settings.py
        env_file=str(Path(__file__).resolve().parent / ".env"),
        extra="ignore",
        populate_by_name=True,
    )

    def get_origins_list(self) -> List[str]:
        """Parse comma-separated origins into a list."""
        if not self.allowed_origins:
            return ["*"]
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]

    @property
    def cloudinary_configured(self) -> bool:
        return bool(
            self.cloudinary_cloud_name and self.cloudinary_api_key and self.cloudinary_api_secret
        )


_settings_instance = None

def get_settings() -> Settings:
    """Singleton pattern for settings."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance
