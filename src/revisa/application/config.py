from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

CONFIG_FILES = [
    Path.home() / ".config/revisa/config.toml",
    Path.home() / ".revisa.toml",
]

# Option names used by older settings payloads
LEGACY_KEYS = {
    "S_default_days": "s_default_days",
    "stabilityCapDays": "stability_cap_days",
    "gamma_fail": "gamma_fail",
    "alpha_good": "alpha_good",
    "alpha_easy": "alpha_easy",
    "alpha_hard": "alpha_hard",
    "k_rt_bonus": "k_rt_bonus",
    "defaultDifficulty": "default_difficulty",
    "expectedTimeSec": "expected_time_sec",
    "targetSec": "target_sec",
    "goldWindowHours": "gold_window_hours",
    "displayTimezone": "display_timezone",
    "dataFile": "data_file",
}


class SrsSettings(BaseSettings):
    """
    Scheduling configuration for revisa.
    Supports loading from:
    1. Environment variables (REVISA_*)
    2. Config file (~/.config/revisa/config.toml or ~/.revisa.toml)
    3. Manual overrides (CLI, API payloads)
    """

    model_config = SettingsConfigDict(
        env_prefix="REVISA_",
        extra="ignore",
    )

    # Memory model
    s_default_days: float = Field(default=1.0, gt=0)
    default_difficulty: float = Field(default=0.5, ge=0.1, le=1.0)
    gamma_fail: float = Field(default=0.5, gt=0, lt=1)
    alpha_hard: float = Field(default=0.15, ge=0)
    alpha_good: float = Field(default=0.3, ge=0)
    alpha_easy: float = Field(default=0.5, ge=0)
    k_rt_bonus: float = Field(default=0.2, ge=0)
    stability_cap_days: float = Field(default=365.0, gt=0)

    # Timing
    expected_time_sec: float = 20.0
    target_sec: int = 30
    rush_threshold_sec: float = 5.0
    slow_threshold_sec: float = 60.0

    # Mastery display (encouragement floors, not derived math)
    mastery_floor_fresh: float = 15.0
    mastery_floor_correct: float = 20.0
    mastery_log_base_days: float = Field(default=365.0, gt=1)

    # Windows and labels
    gold_window_hours: float = 12.0
    display_timezone: str = "America/Sao_Paulo"

    # Item file used by the CLI and server
    data_file: Path | None = None

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
        toml_file = next((f for f in CONFIG_FILES if f.exists()), None)

        if toml_file:
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (init_settings, env_settings)

    @field_validator("display_timezone")
    @classmethod
    def check_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone: {v}") from None
        return v

    @field_validator("data_file", mode="before")
    @classmethod
    def resolve_data_file(cls, v: Any) -> Path | None:
        if not v:
            return None
        return Path(v).expanduser().resolve()

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.display_timezone)


@dataclass
class StudyContext:
    """
    Explicit state passed to functions that need bookmarks or settings.

    Replaces module-level "study later" and settings singletons.
    """

    settings: SrsSettings
    study_later_ids: frozenset[str] = field(default_factory=frozenset)

    def is_marked(self, item_id: str) -> bool:
        return item_id in self.study_later_ids


def normalize_overrides(overrides: dict[str, Any] | None) -> dict[str, Any]:
    """Translate legacy option names and drop unset values."""
    out: dict[str, Any] = {}
    for key, value in (overrides or {}).items():
        if value is None:
            continue
        out[LEGACY_KEYS.get(key, key)] = value
    return out


def resolve_config(overrides: dict[str, Any] | None = None) -> SrsSettings:
    """
    Multi-layered configuration resolution.
    1. Defaults in SrsSettings
    2. Config file (if exists)
    3. Environment variables (REVISA_*)
    4. overrides (CLI options or request payload)
    """
    return SrsSettings(**normalize_overrides(overrides))
