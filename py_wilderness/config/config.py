"""Runtime settings pulled from the environment."""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings pulled from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="WILD_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(
        default="console", description="Logging format (console or json)"
    )

    # Generation Configuration
    default_wild_size: int = Field(
        default=64, ge=8, description="Default wilderness size in blocks"
    )
    default_seed: Optional[int] = Field(
        default=None, description="Seed used when none is given"
    )
    gen_data_path: Optional[str] = Field(
        default=None, description="Path to a w_info JSON dataset"
    )


# Instantiate singleton settings object
settings = Settings()
