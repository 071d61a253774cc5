from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings pulled from environment variables."""

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Logging format (console or json)")

    # World Generation Configuration
    default_seed: str = Field(default="default", description="Seed used when none is given")
    map_width: int = Field(default=150, gt=0, description="Default overworld width in tiles")
    map_height: int = Field(default=150, gt=0, description="Default overworld height in tiles")
    max_connectivity_retries: int = Field(
        default=10, ge=0, description="Regenerations allowed until every island reaches the main sea"
    )
    verify_invariants: bool = Field(
        default=True, description="Raise when a generated world breaks a map invariant"
    )

    model_config = SettingsConfigDict(
        env_prefix="OVERWORLD_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


# Instantiate singleton settings object
settings = Settings()
