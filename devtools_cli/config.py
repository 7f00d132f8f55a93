"""Application configuration."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    debug: bool = False

    # DevTools endpoint
    address: str = "localhost:9222"
    connect_attempts: int = 10
    connect_interval: float = 0.5
    command_timeout: float = 30.0

    # Output artifacts
    screenshot_path: str = "screenshot.png"
    pdf_path: str = "page.pdf"
    output_file_mode: int = 0o644

    # Event printing
    response_url_limit: int = 80

    # Logging
    log_level: str = "INFO"

    class Config:
        env_prefix = "DEVTOOLS_"
        env_file = ".env"


settings = Settings()
