"""Numeric backend interface and the numpy-backed implementation.

The showcase never does tensor math itself. Every demo talks to a
``TensorBackend``, which creates ``TensorHandle`` objects, runs shape/math
operations on them, reports memory usage and disposes them.

Handles created while a ``ResourceScope`` is active are tracked by that scope
and released when it closes, on both the success and the failure path.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence

import numpy as np
from loguru import logger

from ..errors import ExternalOperationFailure, ParseError


@dataclass(frozen=True)
class MemoryInfo:
    """Point-in-time memory usage reported by a backend."""

    bytes_in_use: int
    num_tensors: int


class TensorHandle:
    """Opaque reference to an array owned by a backend.

    Operations return new handles; the receiving handle is never modified.
    """

    def __init__(self, backend: "NumpyBackend", array: np.ndarray) -> None:
        self._backend = backend
        self._array: Optional[np.ndarray] = array
        self.id = backend._next_id()

    @property
    def is_disposed(self) -> bool:
        return self._array is None

    @property
    def array(self) -> np.ndarray:
        if self._array is None:
            raise ExternalOperationFailure(f"Tensor {self.id} is disposed")
        return self._array

    @property
    def shape(self) -> tuple:
        return tuple(self.array.shape)

    @property
    def rank(self) -> int:
        return self.array.ndim

    @property
    def size(self) -> int:
        return int(self.array.size)

    @property
    def dtype(self) -> str:
        kind = self.array.dtype
        if kind == np.bool_:
            return "bool"
        if np.issubdtype(kind, np.integer):
            return "int32"
        return "float32"

    @property
    def nbytes(self) -> int:
        return 0 if self._array is None else int(self._array.nbytes)

    def dispose(self) -> None:
        """Release the underlying array. Calling twice is a no-op."""
        if self._array is None:
            return
        self._backend._forget(self)
        self._array = None

    # Shape operations

    def as_scalar(self) -> "TensorHandle":
        if self.size != 1:
            raise ExternalOperationFailure(
                f"as_scalar requires a tensor of size 1, got shape {list(self.shape)}"
            )
        return self._derive(lambda a: a.reshape(()))

    def flatten(self) -> "TensorHandle":
        return self._derive(lambda a: a.reshape(-1))

    def as_1d(self) -> "TensorHandle":
        return self.flatten()

    def as_2d(self, rows: int, cols: int) -> "TensorHandle":
        return self.reshape([rows, cols])

    def as_3d(self, d0: int, d1: int, d2: int) -> "TensorHandle":
        return self.reshape([d0, d1, d2])

    def as_4d(self, d0: int, d1: int, d2: int, d3: int) -> "TensorHandle":
        return self.reshape([d0, d1, d2, d3])

    def as_5d(self, d0: int, d1: int, d2: int, d3: int, d4: int) -> "TensorHandle":
        return self.reshape([d0, d1, d2, d3, d4])

    def reshape(self, shape: Sequence[int]) -> "TensorHandle":
        return self._derive(lambda a: a.reshape(tuple(shape)))

    def reshape_as(self, other: "TensorHandle") -> "TensorHandle":
        return self.reshape(other.shape)

    def expand_dims(self, axis: int = 0) -> "TensorHandle":
        return self._derive(lambda a: np.expand_dims(a, axis))

    def squeeze(self, axis: Optional[int] = None) -> "TensorHandle":
        return self._derive(lambda a: np.squeeze(a, axis=axis))

    # Type conversions

    def to_float(self) -> "TensorHandle":
        return self._derive(lambda a: a.astype(np.float32))

    def to_int(self) -> "TensorHandle":
        return self._derive(lambda a: np.trunc(a).astype(np.int32))

    def to_bool(self) -> "TensorHandle":
        return self._derive(lambda a: a.astype(np.bool_))

    def clone(self) -> "TensorHandle":
        return self._derive(np.copy)

    # Math operations

    def cumsum(self) -> "TensorHandle":
        return self._derive(lambda a: np.cumsum(a, axis=0))

    def abs(self) -> "TensorHandle":
        return self._derive(np.abs)

    def sqrt(self) -> "TensorHandle":
        return self._derive(lambda a: np.sqrt(a.astype(np.float32)))

    def square(self) -> "TensorHandle":
        return self._derive(np.square)

    def mean(self) -> "TensorHandle":
        return self._derive(lambda a: np.asarray(a.mean(), dtype=np.float32))

    def max(self) -> "TensorHandle":
        return self._derive(lambda a: np.asarray(a.max()))

    def min(self) -> "TensorHandle":
        return self._derive(lambda a: np.asarray(a.min()))

    def sum(self) -> "TensorHandle":
        return self._derive(lambda a: np.asarray(a.sum()))

    def add(self, other: "TensorHandle") -> "TensorHandle":
        return self._combine(other, np.add)

    def sub(self, other: "TensorHandle") -> "TensorHandle":
        return self._combine(other, np.subtract)

    def mul(self, other: "TensorHandle") -> "TensorHandle":
        return self._combine(other, np.multiply)

    def div(self, other: "TensorHandle") -> "TensorHandle":
        return self._combine(other, lambda a, b: np.divide(a, b, dtype=np.float32))

    # Data extraction

    def data_sync(self) -> List[Any]:
        """Flat list of values in row-major order."""
        return self.array.reshape(-1).tolist()

    def array_sync(self) -> Any:
        """Nested list of values matching the tensor shape."""
        return self.array.tolist()

    def item(self) -> float:
        return float(self.array.reshape(-1)[0])

    def to_string(self) -> str:
        values = np.array2string(self.array, separator=", ", precision=4)
        return f"Tensor\n    {values}"

    def __str__(self) -> str:
        return self.to_string()

    def __repr__(self) -> str:
        if self.is_disposed:
            return f"TensorHandle(id={self.id}, disposed)"
        return f"TensorHandle(id={self.id}, shape={list(self.shape)}, dtype={self.dtype})"

    def _derive(self, fn: Callable[[np.ndarray], np.ndarray]) -> "TensorHandle":
        source = self.array
        return self._backend._run(lambda: fn(source))

    def _combine(
        self,
        other: "TensorHandle",
        fn: Callable[[np.ndarray, np.ndarray], np.ndarray],
    ) -> "TensorHandle":
        left, right = self.array, other.array
        return self._backend._run(lambda: fn(left, right))


class ResourceScope:
    """Release list for tensors acquired during one scoped sequence.

    Use as a context manager; everything tracked is disposed exactly once on
    exit, whichever way the block is left. Handles already disposed inside the
    block are skipped.
    """

    def __init__(self, on_close: Optional[Callable[["ResourceScope"], None]] = None) -> None:
        self._resources: List[Any] = []
        self._on_close = on_close
        self.closed = False

    def __len__(self) -> int:
        return len(self._resources)

    def track(self, resource: Any) -> Any:
        """Register a disposable resource and return it unchanged."""
        if self.closed:
            raise RuntimeError("Cannot track resources on a closed scope")
        if not any(r is resource for r in self._resources):
            self._resources.append(resource)
        return resource

    def release(self) -> int:
        """Dispose every live tracked resource, newest first.

        Returns:
            Number of resources disposed by this call.
        """
        released = 0
        for resource in reversed(self._resources):
            if getattr(resource, "is_disposed", False):
                continue
            resource.dispose()
            released += 1
        self._resources.clear()
        return released

    def close(self) -> int:
        if self.closed:
            return 0
        try:
            return self.release()
        finally:
            self.closed = True
            if self._on_close is not None:
                self._on_close(self)

    def __enter__(self) -> "ResourceScope":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        released = self.close()
        logger.debug(f"Scope closed, released {released} resources")


class TensorBackend(ABC):
    """Abstract numeric capability consumed by the demos.

    Implementations own tensor storage; the showcase only holds handles.
    """

    @abstractmethod
    def tensor(self, data: Any, shape: Optional[Sequence[int]] = None) -> TensorHandle:
        """Create a tensor from (nested) values.

        Raises:
            ParseError: If data cannot be turned into a tensor of the given shape.
        """
        pass

    @abstractmethod
    def random_normal(self, shape: Sequence[int]) -> TensorHandle:
        pass

    @abstractmethod
    def random_uniform(
        self, shape: Sequence[int], low: float = 0.0, high: float = 1.0
    ) -> TensorHandle:
        pass

    @abstractmethod
    def zeros(self, shape: Sequence[int]) -> TensorHandle:
        pass

    @abstractmethod
    def ones(self, shape: Sequence[int]) -> TensorHandle:
        pass

    @abstractmethod
    def memory_usage(self) -> MemoryInfo:
        """Current bytes held by live tensors."""
        pass

    @abstractmethod
    def dispose(self, handle: TensorHandle) -> None:
        """Release a tensor. Idempotent."""
        pass

    @abstractmethod
    def dispose_all(self) -> int:
        """Release every live tensor, returning how many were released."""
        pass

    @abstractmethod
    def scope(self) -> ResourceScope:
        """Open a scope that tracks every tensor created until it closes."""
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Backend name identifier."""
        pass


class NumpyBackend(TensorBackend):
    """Tensor backend storing arrays in numpy.

    Memory usage is the sum of ``nbytes`` of all live (undisposed) handles.
    """

    def __init__(self, seed: Optional[int] = None) -> None:
        self._rng = np.random.default_rng(seed)
        self._live: Dict[int, TensorHandle] = {}
        self._scopes: List[ResourceScope] = []
        self._counter = 0

    @property
    def name(self) -> str:
        return "numpy"

    def tensor(self, data: Any, shape: Optional[Sequence[int]] = None) -> TensorHandle:
        try:
            array = np.asarray(data)
        except (ValueError, TypeError) as e:
            raise ParseError(f"Invalid tensor data: {e}") from e

        if array.dtype == object or array.dtype.kind not in "biuf":
            raise ParseError(f"Unsupported tensor values: {data!r}")

        # Numeric input defaults to float32; booleans stay boolean.
        if array.dtype != np.bool_:
            array = array.astype(np.float32)

        if shape is not None:
            shape = tuple(int(d) for d in shape)
            try:
                array = array.reshape(shape)
            except ValueError as e:
                raise ParseError(
                    f"Cannot shape {array.size} values into {list(shape)}"
                ) from e

        return self._register(array)

    def random_normal(self, shape: Sequence[int]) -> TensorHandle:
        return self._register(self._rng.standard_normal(tuple(shape)).astype(np.float32))

    def random_uniform(
        self, shape: Sequence[int], low: float = 0.0, high: float = 1.0
    ) -> TensorHandle:
        return self._register(
            self._rng.uniform(low, high, tuple(shape)).astype(np.float32)
        )

    def zeros(self, shape: Sequence[int]) -> TensorHandle:
        return self._register(np.zeros(tuple(shape), dtype=np.float32))

    def ones(self, shape: Sequence[int]) -> TensorHandle:
        return self._register(np.ones(tuple(shape), dtype=np.float32))

    def memory_usage(self) -> MemoryInfo:
        return MemoryInfo(
            bytes_in_use=sum(h.nbytes for h in self._live.values()),
            num_tensors=len(self._live),
        )

    def dispose(self, handle: TensorHandle) -> None:
        handle.dispose()

    def dispose_all(self) -> int:
        handles = list(self._live.values())
        for handle in handles:
            handle.dispose()
        logger.debug(f"Disposed all {len(handles)} live tensors")
        return len(handles)

    def scope(self) -> ResourceScope:
        scope = ResourceScope(on_close=self._pop_scope)
        self._scopes.append(scope)
        return scope

    def _pop_scope(self, scope: ResourceScope) -> None:
        if scope in self._scopes:
            self._scopes.remove(scope)

    def _run(self, fn: Callable[[], np.ndarray]) -> TensorHandle:
        try:
            result = fn()
        except (ValueError, TypeError, FloatingPointError) as e:
            raise ExternalOperationFailure(str(e)) from e
        return self._register(_normalize_dtype(np.asarray(result)))

    def _register(self, array: np.ndarray) -> TensorHandle:
        handle = TensorHandle(self, array)
        self._live[handle.id] = handle
        if self._scopes:
            self._scopes[-1].track(handle)
        return handle

    def _forget(self, handle: TensorHandle) -> None:
        self._live.pop(handle.id, None)

    def _next_id(self) -> int:
        self._counter += 1
        return self._counter


def _normalize_dtype(array: np.ndarray) -> np.ndarray:
    """Map numpy dtypes onto the float32/int32/bool set the showcase exposes."""
    if array.dtype == np.bool_:
        return array
    if np.issubdtype(array.dtype, np.integer):
        return array.astype(np.int32)
    return array.astype(np.float32)
