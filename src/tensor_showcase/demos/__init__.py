"""Tensor operation demos and the orchestrator that runs them."""

from .orchestrator import DemoOrchestrator, DemoOutcome, DemoOutput, DemoState
from .tensor_operations import DemoSpec, build_catalog, make_custom_tensor

__all__ = [
    "DemoOrchestrator",
    "DemoOutcome",
    "DemoOutput",
    "DemoState",
    "DemoSpec",
    "build_catalog",
    "make_custom_tensor",
]
