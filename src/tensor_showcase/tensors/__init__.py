"""Numeric backend capability and tensor helpers."""

from .backend import MemoryInfo, NumpyBackend, ResourceScope, TensorBackend, TensorHandle
from .utils import (
    ChartData,
    ChartKind,
    ChartSeries,
    RandomDistribution,
    TensorComparison,
    compare_tensors,
    create_random_tensor,
    create_tensor_from_input,
    memory_usage_percentage,
    tensor_info,
    tensor_to_chart_data,
)

__all__ = [
    "MemoryInfo",
    "NumpyBackend",
    "ResourceScope",
    "TensorBackend",
    "TensorHandle",
    "ChartData",
    "ChartKind",
    "ChartSeries",
    "RandomDistribution",
    "TensorComparison",
    "compare_tensors",
    "create_random_tensor",
    "create_tensor_from_input",
    "memory_usage_percentage",
    "tensor_info",
    "tensor_to_chart_data",
]
