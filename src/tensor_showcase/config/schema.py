"""Pydantic configuration schemas for the showcase session.

All session configuration is defined here and validated on load.
YAML configs are deserialized into these models.
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator
from ruamel.yaml import YAML

# Bytes treated as 100% memory usage by the monitor.
DEFAULT_MEMORY_BUDGET_BYTES = 1024 * 1024 * 100


class MonitorConfig(BaseModel):
    """Metric recording and periodic sampling configuration."""

    capacity: int = Field(100, ge=1, description="Maximum retained metrics (FIFO)")
    sample_interval_seconds: float = Field(
        1.0, gt=0.0, description="Periodic sampler interval"
    )
    memory_budget_bytes: int = Field(
        DEFAULT_MEMORY_BUDGET_BYTES,
        gt=0,
        description="Bytes treated as 100% when computing memory usage percentage",
    )
    warning_pct: float = Field(60.0, ge=0.0, le=100.0, description="Warning level threshold")
    danger_pct: float = Field(80.0, ge=0.0, le=100.0, description="Danger level threshold")

    @model_validator(mode="after")
    def validate_thresholds(self) -> "MonitorConfig":
        """Ensure usage thresholds are ordered."""
        if self.warning_pct >= self.danger_pct:
            raise ValueError("warning_pct must be < danger_pct")
        return self


class BenchmarkConfig(BaseModel):
    """Benchmark runner configuration."""

    default_iterations: int = Field(10, ge=1, description="Iterations when none given")
    demo_iterations: int = Field(5, ge=1, description="Iterations used inside demos")


class ExportConfig(BaseModel):
    """Report export configuration."""

    output_dir: Path = Field(Path("exports"), description="Directory for exported files")
    report_title: str = Field("Tensor Showcase Report", description="Report title line")
    default_format: Literal["json", "txt", "html"] = Field(
        "json", description="Report format"
    )

    @field_validator("report_title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """Reject blank titles."""
        if not v.strip():
            raise ValueError("report_title must not be blank")
        return v.strip()


class ShowcaseConfig(BaseModel):
    """Root showcase configuration."""

    name: str = Field("Tensor_Showcase", description="Session name")
    version: str = Field("1.0", description="Configuration version")

    monitor: MonitorConfig = Field(default_factory=MonitorConfig)
    benchmark: BenchmarkConfig = Field(default_factory=BenchmarkConfig)
    export: ExportConfig = Field(default_factory=ExportConfig)

    random_seed: int = Field(42, description="Seed for random tensor generation")

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        "INFO", description="Logging level"
    )
    log_to_file: bool = Field(True, description="Write a per-session log file")
    log_dir: Path = Field(Path("logs"), description="Directory for session log files")
    log_serialize: bool = Field(False, description="Write the log file as JSON lines")


def load_config(path: Path | str) -> ShowcaseConfig:
    """Load and validate showcase configuration from YAML.

    Args:
        path: Path to YAML configuration file.

    Returns:
        Validated ShowcaseConfig instance.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ValueError: If config validation fails.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    yaml = YAML(typ="safe")
    with path.open("r") as f:
        raw_config = yaml.load(f) or {}

    try:
        config = ShowcaseConfig(**raw_config)
    except Exception as e:
        raise ValueError(f"Config validation failed: {e}") from e

    return config
