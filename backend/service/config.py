"""
Application Configuration
Loads settings from environment variables with sensible defaults.
"""

from pydantic_settings import BaseSettings
from pathlib import Path


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database Configuration
    database_url: str = "sqlite:///./data/watchfaces.db"

    # Source Configuration
    site_key: str = "watchfacely"

    # Browser Configuration
    headless: bool = True
    navigation_timeout_ms: int = 30000
    content_wait_timeout_ms: int = 15000
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )

    # Crawl Configuration
    max_retries: int = 3
    retry_backoff_ms: int = 3000
    max_pages: int = 3
    max_enrich_details: int = 5
    detail_max_retries: int = 1
    inter_page_delay_ms: int = 2000
    inter_detail_delay_ms: int = 2000
    debug_capture_enabled: bool = False

    # Logging Configuration
    log_level: str = "INFO"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # Paths
    @property
    def log_dir(self) -> Path:
        """Get the log directory path."""
        return Path(__file__).parent.parent.parent / "logs"

    @property
    def log_file(self) -> Path:
        """Get the log file path."""
        return self.log_dir / "crawler.log"

    @property
    def data_dir(self) -> Path:
        """Get the data directory path."""
        return Path(__file__).parent.parent / "data"

    @property
    def debug_dir(self) -> Path:
        """Where page snapshots are written when debug capture is on."""
        return self.data_dir / "debug"

    class Config:
        # Only load .env if it exists to avoid permission errors
        env_file = ".env" if Path(".env").exists() else None
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"  # Ignore extra environment variables


# Global settings instance
settings = Settings()
