"""Configuration management for spacecast."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Server
    host: str = "0.0.0.0"
    port: int = 3000
    debug: bool = False
    log_level: str = "INFO"

    # Directories
    output_dir: Path = Path("./audios")
    log_dir: Path = Path("./logs")

    # Fetch tool
    ytdlp_path: str = "yt-dlp"

    # Download queue
    max_concurrent_downloads: int = 2
    max_retries: int = 2
    retry_delay: float = 2.0  # seconds, fixed between attempts

    # Progress sampling
    progress_interval: float = 1.0
    progress_threshold_bytes: int = 100 * 1024 * 1024

    # Gemini (summarization is disabled when the key is unset)
    google_api_key: str | None = None
    gemini_model: str = "gemini-1.5-flash"
    gemini_base_url: str = "https://generativelanguage.googleapis.com"

    # API key authentication
    api_key_required: bool = False
    authorized_api_keys: str = ""

    @property
    def api_keys(self) -> list[str]:
        """Authorized API keys parsed from the comma-separated setting."""
        return [key.strip() for key in self.authorized_api_keys.split(",") if key.strip()]

    def ensure_directories(self) -> None:
        """Create required directories if they don't exist."""
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.log_dir.mkdir(parents=True, exist_ok=True)


# Global settings instance
settings = Settings()
