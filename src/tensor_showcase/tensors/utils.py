"""Tensor helpers used by the demos: input parsing, info, random tensors,
comparison and chart conversion."""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence

from ..config.schema import DEFAULT_MEMORY_BUDGET_BYTES
from ..errors import ParseError
from .backend import TensorBackend, TensorHandle


class RandomDistribution(str, Enum):
    """Distribution used by ``create_random_tensor``."""

    NORMAL = "normal"
    UNIFORM = "uniform"
    RANDOM = "random"  # uniform on [0, 1)


class ChartKind(str, Enum):
    """Chart type understood by chart sinks."""

    LINE = "line"
    BAR = "bar"
    DOUGHNUT = "doughnut"


@dataclass
class ChartSeries:
    """One labelled series of values."""

    label: str
    values: List[float]


@dataclass
class ChartData:
    """Renderer-agnostic chart description."""

    labels: List[str]
    series: List[ChartSeries] = field(default_factory=list)
    kind: ChartKind = ChartKind.LINE


@dataclass(frozen=True)
class TensorComparison:
    """Similarity metrics between two tensors."""

    mean_squared_error: float
    mean_absolute_error: float
    max_difference: float
    shapes_match: bool


def parse_shape(shape_text: str) -> List[int]:
    """Parse a comma-separated shape such as ``"2, 2"``.

    Raises:
        ParseError: If any dimension is not a non-negative integer.
    """
    try:
        dims = [int(part.strip()) for part in shape_text.split(",")]
    except ValueError as e:
        raise ParseError(f"bad shape {shape_text!r}") from e
    if any(d < 0 for d in dims):
        raise ParseError(f"negative dimension in {shape_text!r}")
    return dims


def create_tensor_from_input(
    backend: TensorBackend,
    text: str,
    shape_text: Optional[str] = None,
) -> TensorHandle:
    """Create a tensor from user-typed JSON data and an optional shape.

    Args:
        backend: Backend that will own the tensor.
        text: JSON array literal, e.g. ``"[[1, 2], [3, 4]]"``.
        shape_text: Optional comma-separated shape, e.g. ``"4"`` or ``"2,2"``.

    Returns:
        The created tensor handle.

    Raises:
        ParseError: On malformed JSON, bad shape or incompatible data. The
            message always starts with ``Invalid tensor input:``.
    """
    try:
        data = json.loads(text)
        shape = parse_shape(shape_text) if shape_text and shape_text.strip() else None
        return backend.tensor(data, shape)
    except (json.JSONDecodeError, ParseError) as e:
        raise ParseError(f"Invalid tensor input: {e}") from e


def tensor_info(handle: TensorHandle) -> str:
    """Shape, dtype, size and rank as a multi-line string."""
    return (
        f"Shape: [{', '.join(str(d) for d in handle.shape)}]\n"
        f"Dtype: {handle.dtype}\n"
        f"Size: {handle.size}\n"
        f"Rank: {handle.rank}"
    )


def create_random_tensor(
    backend: TensorBackend,
    shape: Sequence[int],
    distribution: RandomDistribution = RandomDistribution.NORMAL,
    low: float = 0.0,
    high: float = 1.0,
) -> TensorHandle:
    """Generate a random tensor from the given distribution."""
    distribution = RandomDistribution(distribution)
    if distribution is RandomDistribution.NORMAL:
        return backend.random_normal(shape)
    if distribution is RandomDistribution.UNIFORM:
        return backend.random_uniform(shape, low, high)
    if distribution is RandomDistribution.RANDOM:
        return backend.random_uniform(shape, 0.0, 1.0)
    raise ValueError(f"Unhandled distribution: {distribution}")


def compare_tensors(first: TensorHandle, second: TensorHandle) -> TensorComparison:
    """Compute MSE, MAE and max absolute difference between two tensors.

    Intermediate tensors are disposed before returning.
    """
    diff = first.sub(second)
    abs_diff = diff.abs()
    squared = diff.square()
    reductions = [squared.mean(), abs_diff.mean(), abs_diff.max()]
    try:
        mse, mae, max_diff = (t.item() for t in reductions)
    finally:
        for handle in (diff, abs_diff, squared, *reductions):
            handle.dispose()

    return TensorComparison(
        mean_squared_error=mse,
        mean_absolute_error=mae,
        max_difference=max_diff,
        shapes_match=list(first.shape) == list(second.shape),
    )


def tensor_to_chart_data(handle: TensorHandle) -> ChartData:
    """Convert a tensor into chart data.

    Rank 1 becomes a line chart over indices, rank 2 a bar chart with one
    series per row; anything else collapses to a single-slice doughnut of
    the element count.
    """
    values = [float(v) for v in handle.data_sync()]
    shape = handle.shape

    if len(shape) == 1:
        return ChartData(
            labels=[f"Index {i}" for i in range(len(values))],
            series=[ChartSeries(label="Tensor Values", values=values)],
            kind=ChartKind.LINE,
        )

    if len(shape) == 2:
        rows, cols = shape
        return ChartData(
            labels=[f"Col {j}" for j in range(cols)],
            series=[
                ChartSeries(label=f"Row {i}", values=values[i * cols:(i + 1) * cols])
                for i in range(rows)
            ],
            kind=ChartKind.BAR,
        )

    return ChartData(
        labels=["Tensor Data"],
        series=[ChartSeries(label="Tensor Data", values=[float(len(values))])],
        kind=ChartKind.DOUGHNUT,
    )


def memory_usage_percentage(
    backend: TensorBackend,
    budget_bytes: int = DEFAULT_MEMORY_BUDGET_BYTES,
) -> float:
    """Bytes in use as a percentage of ``budget_bytes`` (not clamped)."""
    return backend.memory_usage().bytes_in_use / budget_bytes * 100
