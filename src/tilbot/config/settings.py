"""Settings configuration models.

Runtime settings for delays, external tables, graph limits and logging.
"""

from typing import Literal

from pydantic import BaseModel, Field

from tilbot.config.models import CURRENT_VERSION, SUPPORTED_VERSIONS


class DelayConfig(BaseModel):
    """Timing of message emission."""

    time_scale: float = Field(
        default=1.0,
        ge=0,
        description="Multiplier applied to every wait (0 disables delays)",
    )
    auto_settle: float = Field(
        default=0.5, ge=0, description="Seconds between an Auto block and its successor"
    )


class DataConfig(BaseModel):
    """External data tables."""

    backend: Literal["none", "csv"] = Field(default="csv", description="Table backend")
    path: str = Field(default="var", description="Directory holding CSV tables")
    cache_ttl: int = Field(default=60, ge=0, description="Seconds a loaded table stays cached")


class LimitsConfig(BaseModel):
    """Structural limits enforced when a project is loaded."""

    max_group_depth: int = Field(default=32, ge=1, description="Deepest allowed group nesting")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    file: str | None = Field(default=None, description="Rotating JSON log file")


class Settings(BaseModel):
    """Runtime settings for Tilbot."""

    delays: DelayConfig = Field(default_factory=DelayConfig)
    data: DataConfig = Field(default_factory=DataConfig)
    limits: LimitsConfig = Field(default_factory=LimitsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


class TilbotConfig(BaseModel):
    """Root configuration with DSL versioning."""

    version: str = Field(default=CURRENT_VERSION, description="DSL version")
    project: str = Field(default="project.json", description="Path to the project document")
    settings: Settings = Field(default_factory=Settings)

    def model_post_init(self, __context: object) -> None:
        """Validate DSL version after initialization."""
        if self.version not in SUPPORTED_VERSIONS:
            raise ValueError(
                f"Unsupported DSL version: {self.version}. "
                f"Supported: {', '.join(sorted(SUPPORTED_VERSIONS))}"
            )
