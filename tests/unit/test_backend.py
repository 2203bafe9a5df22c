"""Test the numpy backend and resource scopes."""

import pytest

from tensor_showcase.errors import ExternalOperationFailure, ParseError
from tensor_showcase.tensors import NumpyBackend, ResourceScope


def test_tensor_creation_and_memory(backend):
    """Test memory accounting follows live tensors."""
    t = backend.tensor([1, 2, 3, 4], [2, 2])

    assert t.shape == (2, 2)
    assert t.dtype == "float32"
    assert backend.memory_usage().bytes_in_use == 16
    assert backend.memory_usage().num_tensors == 1

    t.dispose()
    assert backend.memory_usage().bytes_in_use == 0


def test_dispose_is_idempotent(backend):
    """Test disposing twice is a no-op."""
    t = backend.tensor([1, 2])
    backend.dispose(t)
    backend.dispose(t)

    assert t.is_disposed
    assert backend.memory_usage().num_tensors == 0


def test_malformed_data_raises_parse_error(backend):
    """Test ragged or non-numeric data."""
    with pytest.raises(ParseError):
        backend.tensor([[1, 2], [3]])
    with pytest.raises(ParseError):
        backend.tensor(["a", "b"])
    with pytest.raises(ParseError):
        backend.tensor([1, 2, 3], [2, 2])


def test_shape_ops(backend):
    """Test reshape family."""
    t = backend.tensor([1, 2, 3, 4, 5, 6, 7, 8])

    assert t.as_5d(1, 2, 2, 2, 1).shape == (1, 2, 2, 2, 1)
    assert t.reshape([2, 4]).flatten().shape == (8,)
    assert backend.tensor([1, 2, 3, 4]).expand_dims(1).shape == (4, 1)
    assert backend.tensor([[1], [2]]).squeeze(1).shape == (2,)
    assert backend.tensor([1.5]).as_scalar().rank == 0


def test_as_scalar_requires_single_value(backend):
    """Test as_scalar on a multi-element tensor."""
    with pytest.raises(ExternalOperationFailure):
        backend.tensor([1, 2]).as_scalar()


def test_invalid_reshape_wraps_failure(backend):
    """Test numpy errors surface as ExternalOperationFailure."""
    with pytest.raises(ExternalOperationFailure):
        backend.tensor([1, 2, 3]).reshape([2, 2])


def test_math_ops(backend):
    """Test elementwise and reduction results."""
    a = backend.tensor([1, 2, 3, 4])
    b = backend.tensor([2, 2, 2, 2])

    assert a.add(b).data_sync() == [3, 4, 5, 6]
    assert a.div(b).data_sync() == [0.5, 1.0, 1.5, 2.0]
    assert a.cumsum().data_sync() == [1, 3, 6, 10]
    assert a.mean().item() == pytest.approx(2.5)
    assert backend.tensor([1, 4, 9]).sqrt().data_sync() == [1, 2, 3]


def test_type_conversions(backend):
    """Test dtype casts."""
    assert backend.tensor([True, False]).to_float().dtype == "float32"
    assert backend.tensor([1.7, -2.5]).to_int().data_sync() == [1, -2]
    assert backend.tensor([1, 0]).to_bool().data_sync() == [True, False]


def test_disposed_tensor_rejects_use(backend):
    """Test operations on disposed tensors fail."""
    t = backend.tensor([1])
    t.dispose()

    with pytest.raises(ExternalOperationFailure):
        t.square()


def test_scope_releases_created_tensors(backend):
    """Test tensors created inside a scope are released on exit."""
    outside = backend.tensor([1])
    with backend.scope() as scope:
        a = backend.tensor([1, 2])
        b = a.square()

    assert len(scope) == 0
    assert a.is_disposed and b.is_disposed
    assert not outside.is_disposed


def test_scope_releases_on_exception(backend):
    """Test release happens on the failure path."""
    created = []
    with pytest.raises(RuntimeError):
        with backend.scope():
            created.append(backend.tensor([1, 2]))
            raise RuntimeError("fail")

    assert created[0].is_disposed
    assert backend.memory_usage().num_tensors == 0


def test_nested_scopes(backend):
    """Test inner scopes release only their own tensors."""
    with backend.scope():
        outer = backend.tensor([1])
        with backend.scope():
            inner = backend.tensor([2])
        assert inner.is_disposed
        assert not outer.is_disposed
    assert outer.is_disposed


def test_resource_scope_skips_disposed():
    """Test already-disposed resources are not disposed again."""

    class Resource:
        def __init__(self):
            self.calls = 0
            self.is_disposed = False

        def dispose(self):
            self.calls += 1
            self.is_disposed = True

    first, second = Resource(), Resource()
    with ResourceScope() as scope:
        scope.track(first)
        scope.track(second)
        scope.track(second)
        first.dispose()

    assert first.calls == 1
    assert second.calls == 1


def test_dispose_all(backend):
    """Test every live tensor is released."""
    backend.tensor([1])
    backend.zeros([3, 3])

    assert backend.dispose_all() == 2
    assert backend.memory_usage().bytes_in_use == 0


def test_seeded_random_is_reproducible():
    """Test seeding gives identical random tensors."""
    a = NumpyBackend(seed=7).random_normal([3]).data_sync()
    b = NumpyBackend(seed=7).random_normal([3]).data_sync()

    assert a == b
