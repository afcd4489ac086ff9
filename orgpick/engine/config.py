"""Configuration management for orgpick."""

from pathlib import Path
from typing import List, Literal, Optional

import yaml
from loguru import logger
from pydantic import BaseModel, Field, ValidationError, field_validator

from .algorithms import COMPARATORS
from .errors import ConfigError
from .temporal import DEFAULT_BUCKETS, DEFAULT_WEIGHT

LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")


class OutlineConfig(BaseModel):
    files: List[Path] = Field(default_factory=list)
    todo_keywords: List[str] = Field(default_factory=lambda: ["TODO", "NEXT", "WAIT"])
    done_keywords: List[str] = Field(default_factory=lambda: ["DONE", "CANCELLED"])
    project_tag: str = "project"

    @field_validator('files')
    @classmethod
    def expand_files(cls, v: List[Path]) -> List[Path]:
        return [Path(p).expanduser() for p in v]


class RankingConfig(BaseModel):
    threshold_frecency: float = 50.0
    snooze_horizon_days: Optional[int] = 3
    comparator: str = "two-tier"

    @field_validator('threshold_frecency')
    @classmethod
    def validate_threshold(cls, v: float) -> float:
        if v < 0:
            raise ValueError("threshold_frecency must not be negative")
        return v

    @field_validator('snooze_horizon_days')
    @classmethod
    def validate_horizon(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 0:
            raise ValueError("snooze_horizon_days must not be negative")
        return v

    @field_validator('comparator')
    @classmethod
    def validate_comparator(cls, v: str) -> str:
        if v not in COMPARATORS:
            raise ValueError(f"unknown comparator {v!r}, expected one of {sorted(COMPARATORS)}")
        return v


class GroupingConfig(BaseModel):
    dimension: Literal["directory", "remote", "none"] = "none"
    sort: Literal["frecency", "none"] = "frecency"


class DisplayConfig(BaseModel):
    dim_blocked: bool = True
    width: Optional[int] = None

    @field_validator('width')
    @classmethod
    def validate_width(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 8:
            raise ValueError("width must be at least 8")
        return v


class FrecencyBucket(BaseModel):
    max_age_days: float
    weight: int

    @field_validator('weight')
    @classmethod
    def validate_weight(cls, v: int) -> int:
        if v < 0:
            raise ValueError("bucket weight must not be negative")
        return v


class FrecencyConfig(BaseModel):
    buckets: List[FrecencyBucket] = Field(default_factory=lambda: [
        FrecencyBucket(max_age_days=age, weight=weight) for age, weight in DEFAULT_BUCKETS
    ])
    default_weight: int = DEFAULT_WEIGHT

    @field_validator('default_weight')
    @classmethod
    def validate_default_weight(cls, v: int) -> int:
        if v < 0:
            raise ValueError("default_weight must not be negative")
        return v


class Config(BaseModel):
    """Main configuration for orgpick."""

    outline: OutlineConfig = Field(default_factory=OutlineConfig)
    ranking: RankingConfig = Field(default_factory=RankingConfig)
    grouping: GroupingConfig = Field(default_factory=GroupingConfig)
    display: DisplayConfig = Field(default_factory=DisplayConfig)
    frecency: FrecencyConfig = Field(default_factory=FrecencyConfig)
    log_level: str = "WARNING"

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {LOG_LEVELS}")
        return level

    @classmethod
    def default_locations(cls) -> List[Path]:
        return [
            Path("orgpick.yaml"),
            Path.home() / ".config" / "orgpick" / "config.yaml",
            Path("/etc/orgpick/config.yaml"),
        ]

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Config":
        """Load configuration from YAML file."""
        if config_path is None:
            candidates = cls.default_locations()
            for candidate in candidates:
                if candidate.exists():
                    config_path = candidate
                    break
            else:
                raise FileNotFoundError(
                    f"No config file found. Searched: {[str(c) for c in candidates]}"
                )

        logger.info(f"Loading config from: {config_path}")
        with open(config_path, 'r') as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Config root must be a mapping: {config_path}")
        try:
            return cls(**data)
        except ValidationError as e:
            raise ConfigError(f"Invalid config {config_path}: {e}") from e

    def save(self, config_path: Path) -> None:
        """Save configuration to YAML file."""
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, 'w') as f:
            yaml.safe_dump(self.model_dump(mode="json"), f, default_flow_style=False)
