"""Application configuration settings.

This module defines the application-wide settings using Pydantic's BaseSettings.
It allows for loading configurations from environment variables and .env files,
providing type validation and default values.
"""

from pydantic import Field
from pydantic import field_validator
from pydantic_settings import BaseSettings

# Default list of CORS allowed origins
DEFAULT_CORS_ORIGINS = [
    "http://localhost:5173",
    "http://localhost:8080",
    "http://localhost:8000",
    "https://localhost:5173",
    "http://0.0.0.0:8000",
]


class Settings(BaseSettings):
    """Manages application settings, loading them from environment variables or an .env file.

    Attributes:
        processing_service_url: Base URL of the remote spreadsheet processing service.
        processing_connect_timeout: Connect timeout (seconds) for the processing service.
        processing_read_timeout: Read timeout (seconds) for the processing service.
        processing_max_attempts: Attempts made against the processing service before giving up.
        dashboard_username: Static user accepted by the login gate.
        dashboard_password: Static password accepted by the login gate.
        cors_allowed_origins: List of allowed origins for CORS.
        fallback_base_name: Base name used for downloads when no source filename is known.
        page_size: Page size name for generated PDFs ("A4" or "LETTER").
        page_margin_x: Horizontal page margin in points.
        page_margin_y: Vertical page margin in points.
        body_font_size: Font size for body text.
        heading_font_size: Font size for student headers and section titles.
        note_font_size: Font size for note lines.
        line_height: Vertical distance between consecutive lines in points.
        archive_compression_level: zlib level used for archive entries.
        progress_tick_seconds: Interval of the simulated upload progress timer.
        progress_step: Percentage added on every progress tick.
        progress_cap: Highest value the simulated progress can reach before completion.
        progress_clear_delay: Seconds the completed progress stays at 100 before clearing.
        max_upload_size: Maximum accepted size of an uploaded spreadsheet in bytes.
    """

    processing_service_url: str = Field(default="http://localhost:8080")
    processing_connect_timeout: float = Field(default=10.0, description="Processing service connect timeout in seconds.")
    processing_read_timeout: float = Field(default=300.0, description="Processing service read timeout in seconds.")
    processing_max_attempts: int = Field(default=3)

    dashboard_username: str = Field(default="admin")
    dashboard_password: str | None = Field(default=None)

    cors_allowed_origins: list[str] = Field(
        default_factory=lambda: list(DEFAULT_CORS_ORIGINS),  # Use a copy of the default list
    )

    fallback_base_name: str = Field(default="retroalimentacion")

    page_size: str = Field(default="A4")
    page_margin_x: float = Field(default=56.0)
    page_margin_y: float = Field(default=56.0)
    body_font_size: float = Field(default=11.0)
    heading_font_size: float = Field(default=13.0)
    note_font_size: float = Field(default=9.0)
    line_height: float = Field(default=15.0)

    archive_compression_level: int = Field(default=6, ge=0, le=9)

    progress_tick_seconds: float = Field(default=0.5)
    progress_step: int = Field(default=5, ge=1)
    progress_cap: int = Field(default=90, ge=1, le=99)
    progress_clear_delay: float = Field(default=1.0)

    max_upload_size: int = Field(default=10 * 1024 * 1024)

    model_config = {
        "env_file": ".env",
        "env_prefix": "",  # No prefix for environment variables
        "extra": "ignore",  # Ignore extra fields
    }

    @field_validator("cors_allowed_origins", mode="before")  # type: ignore
    @classmethod
    def assemble_cors_origins(cls, v: str | list[str] | None) -> list[str]:
        """Assembles the list of CORS allowed origins.

        If 'v' is a string, it splits it by commas. If 'v' is already a list,
        it's used directly. Otherwise, returns the default list of origins.

        Args:
            v: The value from the environment or direct assignment.

        Returns:
            A list of strings representing allowed CORS origins.
        """
        if isinstance(v, str) and v:
            return [origin.strip() for origin in v.split(",")]
        elif isinstance(v, list):
            return v
        # Return the default if env var is empty or not a string/list
        return list(DEFAULT_CORS_ORIGINS)

    @field_validator("page_size")
    @classmethod
    def normalize_page_size(cls, v: str) -> str:
        """Upper-cases the page size name and rejects unknown sizes."""
        name = v.strip().upper()
        if name not in {"A4", "LETTER"}:
            raise ValueError(f"Unsupported page size: {v!r}")
        return name


settings = Settings()
