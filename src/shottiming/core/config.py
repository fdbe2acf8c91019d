"""Application configuration."""

from pathlib import Path
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    # Server
    host: str = "127.0.0.1"
    port: int = 3999
    debug: bool = True

    # Storage
    db_path: Path = Path.home() / ".shottiming" / "shottiming.db"

    # Uploads
    max_upload_bytes: int = 10 * 1024 * 1024  # CSV exports are small

    # Timing analysis
    sequential_deltas: bool = False  # Report gap from previous field per shot
    comparison_dead_zone: float = 0.005  # Seconds; deltas inside this are ties
    outlier_factor: float = 2.0  # Multiple of mean absolute delta

    # CORS
    cors_origins: list[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
        "http://127.0.0.1:5173",
        "http://127.0.0.1:3000",
    ]

    class Config:
        env_prefix = "SHOTTIMING_"
        env_file = ".env"


settings = Settings()
