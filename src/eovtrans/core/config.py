"""
Configuration settings for eovtrans.
"""

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings with environment variable support.

    Attributes:
        default_epoch: Epoch (decimal year) used when a caller gives none
        eov_grid_name: File name of the HD72/ETRS89 correction grid bound to EOV
        grid_max_iterations: Iteration cap for inverse grid and projection solving
        max_grid_size_mb: Largest grid payload accepted by the API
        eov_grid_path: Grid file loaded into the API at startup, if set
        log_level: Log level name, or None to derive it from the environment
        log_file: Log file path; JSON logs are written there when set
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="EOVTRANS_",
    )

    # Transformation settings
    default_epoch: float = 2026.0
    eov_grid_name: str = "etrs2eov_notowgs.gsb"
    grid_max_iterations: int = 10
    max_grid_size_mb: int = 64
    eov_grid_path: str | None = None

    # Logging
    log_level: str | None = None
    log_file: str | None = None

    # API settings
    api_v1_prefix: str = "/api/v1"
    port: int = 8000

    # CORS settings
    cors_origins: str = "http://localhost:5173,http://localhost:3000"

    # Environment
    environment: Literal["development", "staging", "production"] = "development"

    @property
    def cors_origins_list(self) -> list[str]:
        """Get CORS origins as a list."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def max_grid_size_bytes(self) -> int:
        """Get max grid payload size in bytes."""
        return self.max_grid_size_mb * 1024 * 1024


# Global settings instance
settings = Settings()
