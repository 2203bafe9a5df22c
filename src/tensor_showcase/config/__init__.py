"""Configuration schemas and validation."""

from .schema import (
    ShowcaseConfig,
    MonitorConfig,
    BenchmarkConfig,
    ExportConfig,
    DEFAULT_MEMORY_BUDGET_BYTES,
    load_config,
)

__all__ = [
    "ShowcaseConfig",
    "MonitorConfig",
    "BenchmarkConfig",
    "ExportConfig",
    "DEFAULT_MEMORY_BUDGET_BYTES",
    "load_config",
]
