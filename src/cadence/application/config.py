from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)


def config_files() -> list[Path]:
    return [
        Path.home() / ".config/cadence/config.toml",
        Path.home() / ".cadence.toml",
    ]


class PriorityWeights(BaseModel):
    """
    Weights for the priority scorer.

    Overdue severity should carry the largest weight. ``base`` keeps every
    due item strictly above zero.
    """

    model_config = ConfigDict(frozen=True)

    overdue: float = Field(default=35.0, ge=0)
    weakness: float = Field(default=25.0, ge=0)
    base: float = Field(default=10.0, gt=0)
    learning_bonus: float = Field(default=5.0, ge=0)
    overdue_saturation_days: float = Field(default=7.0, gt=0)


class SchedulerConfig(BaseModel):
    """
    Read-only scheduling constants.

    Loaded once by the host and passed into the planning functions.
    """

    model_config = ConfigDict(frozen=True)

    # Daily review targets
    target_daily_reviews: int = Field(default=20, ge=0)
    min_daily_reviews: int = Field(default=10, ge=0)
    max_daily_reviews: int = Field(default=50, ge=0)

    # Load balancing
    behind_multiplier: float = Field(default=1.5, gt=0)  # backlog > target * this => behind
    catch_up_multiplier: float = Field(default=1.3, ge=1)
    capacity_window: int = Field(default=7, ge=1)  # recent sessions considered

    # Interleaving
    max_consecutive_same_topic: int = Field(default=3, ge=1)
    max_consecutive_same_unit: int = Field(default=5, ge=1)

    # Calculator mix
    calculator_ratio: float = Field(default=0.4, ge=0, le=1)
    calculator_swap_tolerance: float = Field(default=0.8, ge=0, le=1)

    # Weakness
    strong_streak: int = Field(default=5, ge=1)
    weak_accuracy_threshold: float = Field(default=0.6, ge=0, le=1)

    weights: PriorityWeights = Field(default_factory=PriorityWeights)

    @model_validator(mode="after")
    def check_daily_bounds(self) -> "SchedulerConfig":
        if self.min_daily_reviews > self.max_daily_reviews:
            raise ValueError(
                f"min_daily_reviews ({self.min_daily_reviews}) exceeds "
                f"max_daily_reviews ({self.max_daily_reviews})"
            )
        if not self.min_daily_reviews <= self.target_daily_reviews <= self.max_daily_reviews:
            raise ValueError(
                f"target_daily_reviews ({self.target_daily_reviews}) must lie within "
                f"[{self.min_daily_reviews}, {self.max_daily_reviews}]"
            )
        return self


DEFAULT_CONFIG = SchedulerConfig()


class AppSettings(BaseSettings):
    """
    Host configuration for the cadence CLI.
    Supports loading from:
    1. Environment variables (CADENCE_*, nested with __)
    2. Config file (~/.config/cadence/config.toml)
    3. Manual overrides (CLI)
    """

    model_config = SettingsConfigDict(
        env_prefix="CADENCE_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)

    # Paths
    cards_file: Path = Field(default_factory=lambda: Path.home() / ".config/cadence/cards.json")
    catalog_file: Path | None = None

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "WARNING"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        from pydantic_settings import TomlConfigSettingsSource

        # First existing file wins
        toml_file = next((f for f in config_files() if f.exists()), None)

        if toml_file:
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (init_settings, env_settings)


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> AppSettings:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppSettings
    2. ~/.config/cadence/config.toml (if exists)
    3. Environment variables (CADENCE_*)
    4. cli_overrides (passed from Typer)
    """
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    return AppSettings(**overrides)
