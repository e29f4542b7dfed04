"""
Configuration data models for releasetracker.

These models define the structure of ~/.config/releasetracker/config.json,
with validation and type safety via Pydantic.
"""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AppConfig(BaseModel):
    """
    Root configuration model.

    Controls where the catalog lives, how the GitHub API is reached and how
    many working copies are updated at once.
    """

    model_config = ConfigDict(extra="ignore")

    data_dir: Path = Field(
        ...,
        description="Directory holding data.json and settings.json",
    )
    api_url: str = Field(
        default="https://api.github.com",
        description="Base URL of the GitHub REST API",
    )
    graphql_url: str = Field(
        default="https://api.github.com/graphql",
        description="GitHub GraphQL endpoint",
    )
    user_agent: str = Field(
        default="ReleaseTracker-App",
        description="User-Agent header sent with every API request",
    )
    request_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Timeout in seconds for a single API request",
    )
    max_workers: int = Field(
        default=4,
        ge=1,
        description="Number of working copies updated concurrently",
    )
    git_timeout_seconds: Optional[float] = Field(
        default=None,
        gt=0,
        description="Upper bound for a single git invocation (None = unbounded)",
    )

    @field_validator("data_dir", mode="before")
    @classmethod
    def expand_data_dir(cls, v: object) -> object:
        """Expand ~ in data_dir."""
        if isinstance(v, str):
            return Path(v).expanduser()
        return v

    @property
    def catalog_path(self) -> Path:
        return self.data_dir / "data.json"

    @property
    def settings_path(self) -> Path:
        return self.data_dir / "settings.json"
