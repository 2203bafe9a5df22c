"""Tensor operation demos.

Each demo runs a fixed sequence of backend operations and narrates every
step as ``name / Before / After``. Tensors are created inside the
orchestrator's scope, so the demos never clean up after themselves unless
disposal is the point of the step.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional

from ..benchmark.runner import BenchmarkRunner
from ..tensors.backend import ResourceScope, TensorBackend
from ..tensors.utils import (
    RandomDistribution,
    compare_tensors,
    create_random_tensor,
    create_tensor_from_input,
    tensor_info,
)
from .orchestrator import DemoFn, DemoOutput


@dataclass(frozen=True)
class DemoSpec:
    """Catalog entry for a runnable demo."""

    key: str
    title: str
    run: DemoFn


def _step(name: str, before, after) -> str:
    return f"{name}:\nBefore: {before}\nAfter: {after}\n\n"


def _kb(num_bytes: int) -> str:
    return f"{num_bytes / 1024:.2f} KB"


def shape_operations(backend: TensorBackend, scope: ResourceScope) -> DemoOutput:
    """as_scalar, flatten, as1d..as5d, expand_dims and squeeze."""
    content = "=== TENSOR SHAPE OPERATIONS ===\n\n"

    tensor1d = backend.tensor([1.5])
    content += _step("asScalar", tensor1d, tensor1d.as_scalar())

    tensor2d = backend.tensor([1, 2, 3, 4], [2, 2])
    content += _step("flatten", tensor2d, tensor2d.flatten())

    tensor1 = backend.tensor([1, 2, 3, 4], [2, 2])
    content += _step("as1D", tensor1, tensor1.as_1d())

    tensor2 = backend.tensor([1, 2, 3, 4], [2, 2, 1])
    content += _step("as2D", tensor2, tensor2.as_2d(2, 2))

    tensor3 = backend.tensor([1, 2, 3, 4], [1, 2, 2, 1])
    content += _step("as3D", tensor3, tensor3.as_3d(2, 2, 1))

    tensor4 = backend.tensor([1, 2, 3, 4])
    content += _step("as4D", tensor4, tensor4.as_4d(1, 2, 2, 1))

    tensor5 = backend.tensor([1, 2, 3, 4, 5, 6, 7, 8])
    content += _step("as5D", tensor5, tensor5.as_5d(1, 2, 2, 2, 1))

    expand_tensor = backend.tensor([1, 2, 3, 4])
    content += _step("expandDims", expand_tensor, expand_tensor.expand_dims(1))

    squeeze_tensor = backend.tensor([[1], [2], [3], [4]])
    squeezed = squeeze_tensor.squeeze(1)
    content += _step("squeeze", squeeze_tensor, squeezed)

    return DemoOutput(narrative=content, chart_tensor=squeezed)


def data_type_conversions(backend: TensorBackend, scope: ResourceScope) -> DemoOutput:
    """dtype casts, reshape/reshape_as and explicit disposal."""
    content = "=== DATA TYPE CONVERSIONS ===\n\n"

    bool_tensor = backend.tensor([True, False, True, False])
    content += _step("toFloat", bool_tensor, bool_tensor.to_float())

    float_tensor = backend.tensor([1.2, 2.5, 3.7, 4.8])
    content += _step("toInt", float_tensor, float_tensor.to_int())

    int_tensor = backend.tensor([1, 0, 1, 0])
    content += _step("toBool", int_tensor, int_tensor.to_bool())

    reshape_tensor = backend.tensor([1, 2, 3, 4])
    content += _step("reshape", reshape_tensor, reshape_tensor.reshape([2, 2]))

    reshape_as_tensor = backend.tensor([[1, 2], [3, 4]])
    target = backend.tensor([5, 7, 1, 3])
    reshaped_as = reshape_as_tensor.reshape_as(target)
    content += (
        f"reshapeAs:\nBefore: {reshape_as_tensor}\nTarget: {target}\n"
        f"After: {reshaped_as}\n\n"
    )

    dispose_tensor = backend.tensor([[1, 2], [3, 4]])
    content += f"dispose:\nBefore: {dispose_tensor}\n"
    dispose_tensor.dispose()
    content += "After: Memory freed\n\n"

    return DemoOutput(narrative=content, chart_tensor=reshaped_as)


def mathematical_operations(backend: TensorBackend, scope: ResourceScope) -> DemoOutput:
    """Unary math, reductions and element-wise arithmetic."""
    content = "=== MATHEMATICAL OPERATIONS ===\n\n"

    math_tensor = backend.tensor([1, 2, 3, 4])
    content += _step("cumsum", math_tensor, math_tensor.cumsum())

    abs_tensor = backend.tensor([-1, -2, 3, -4])
    content += _step("abs", abs_tensor, abs_tensor.abs())

    sqrt_tensor = backend.tensor([1, 4, 9, 16])
    content += _step("sqrt", sqrt_tensor, sqrt_tensor.sqrt())

    square_tensor = backend.tensor([1, 2, 3, 4])
    content += _step("square", square_tensor, square_tensor.square())

    stats = backend.tensor([1, 2, 3, 4, 5])
    content += (
        f"Statistics:\nTensor: {stats}\nMean: {stats.mean()}\nMax: {stats.max()}\n"
        f"Min: {stats.min()}\nSum: {stats.sum()}\n\n"
    )

    a = backend.tensor([1, 2, 3, 4])
    b = backend.tensor([2, 2, 2, 2])
    content += (
        f"Element-wise Operations:\nA: {a}\nB: {b}\nAdd: {a.add(b)}\n"
        f"Subtract: {a.sub(b)}\nMultiply: {a.mul(b)}\nDivide: {a.div(b)}\n\n"
    )

    return DemoOutput(narrative=content, chart_tensor=stats)


def memory_management(backend: TensorBackend, scope: ResourceScope) -> DemoOutput:
    """Watch backend memory while tensors are created, disposed and cleared."""
    content = "=== MEMORY MANAGEMENT ===\n\n"

    initial = backend.memory_usage().bytes_in_use
    content += f"Initial memory: {_kb(initial)}\n\n"

    tensors = [backend.random_normal([100, 100]) for _ in range(10)]
    after_creation = backend.memory_usage().bytes_in_use
    content += f"After creating 10 tensors: {_kb(after_creation)}\n"
    content += f"Memory increase: {_kb(after_creation - initial)}\n\n"

    for index, tensor in enumerate(tensors, start=1):
        tensor.dispose()
        content += f"Disposed tensor {index}\n"

    content += f"After disposing tensors: {_kb(backend.memory_usage().bytes_in_use)}\n\n"

    with backend.scope() as batch:
        backend.random_normal([50, 50])
        backend.random_uniform([50, 50])
        backend.zeros([50, 50])
        backend.ones([50, 50])
        content += (
            f"After creating more tensors: {_kb(backend.memory_usage().bytes_in_use)}\n\n"
        )
        batch_size = len(batch)
    content += f"Released {batch_size} tensors with a scoped cleanup\n"
    content += f"After scoped cleanup: {_kb(backend.memory_usage().bytes_in_use)}\n\n"

    backend.dispose_all()
    content += f"After clearing all memory: {_kb(backend.memory_usage().bytes_in_use)}\n\n"

    return DemoOutput(narrative=content)


def make_advanced_operations(benchmark_iterations: int = 5) -> DemoFn:
    """Build the advanced demo with the given embedded benchmark size."""

    def advanced_operations(backend: TensorBackend, scope: ResourceScope) -> DemoOutput:
        content = "=== ADVANCED OPERATIONS ===\n\n"

        data_tensor = backend.tensor([1, 2, 3, 4])
        content += (
            f"Data Extraction:\nTensor: {data_tensor}\n"
            f"dataSync: {data_tensor.data_sync()}\n"
            f"arraySync: {data_tensor.array_sync()}\n\n"
        )

        original = backend.tensor([1, 2, 3, 4])
        content += f"Cloning:\nOriginal: {original}\nCloned: {original.clone()}\n\n"

        random_normal = create_random_tensor(backend, [3, 3], RandomDistribution.NORMAL)
        random_uniform = create_random_tensor(
            backend, [3, 3], RandomDistribution.UNIFORM, -1.0, 1.0
        )
        content += f"Random Tensors:\nNormal: {random_normal}\nUniform: {random_uniform}\n\n"

        first = backend.tensor([1, 2, 3, 4])
        second = backend.tensor([1.1, 2.1, 3.1, 4.1])
        comparison = compare_tensors(first, second)
        content += (
            f"Tensor Comparison:\nTensor1: {first}\nTensor2: {second}\n"
            f"MSE: {comparison.mean_squared_error:.4f}\n"
            f"MAE: {comparison.mean_absolute_error:.4f}\n"
            f"Max Diff: {comparison.max_difference:.4f}\n"
            f"Shapes Match: {comparison.shapes_match}\n\n"
        )

        def square_mean() -> None:
            temp = backend.random_normal([100, 100])
            squared = temp.square()
            result = squared.mean()
            for handle in (temp, squared, result):
                handle.dispose()

        bench = BenchmarkRunner(backend).benchmark(square_mean, benchmark_iterations)
        content += f"Performance Benchmark:\n{bench.describe()}\n\n"

        return DemoOutput(narrative=content, chart_tensor=random_normal)

    return advanced_operations


def make_custom_tensor(text: str, shape_text: Optional[str] = None) -> DemoFn:
    """Build a demo that parses user input into a tensor and describes it."""

    def custom_tensor(backend: TensorBackend, scope: ResourceScope) -> DemoOutput:
        tensor = create_tensor_from_input(backend, text, shape_text)
        content = "=== CUSTOM TENSOR ===\n\n"
        content += f"Input: {text}\n"
        if shape_text:
            content += f"Requested shape: {shape_text}\n"
        content += f"{tensor_info(tensor)}\nValues: {tensor}\n\n"
        return DemoOutput(narrative=content, chart_tensor=tensor)

    return custom_tensor


def build_catalog(benchmark_iterations: int = 5) -> Dict[str, DemoSpec]:
    """All built-in demos keyed by CLI name, in display order."""
    specs: List[DemoSpec] = [
        DemoSpec("shape", "Shape Operations", shape_operations),
        DemoSpec("dtype", "Data Type Conversions", data_type_conversions),
        DemoSpec("math", "Mathematical Operations", mathematical_operations),
        DemoSpec("memory", "Memory Management", memory_management),
        DemoSpec("advanced", "Advanced Operations", make_advanced_operations(benchmark_iterations)),
    ]
    return {spec.key: spec for spec in specs}
