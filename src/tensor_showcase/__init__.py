"""Tensor Showcase.

An educational showcase of tensor operations: demo runners that call a numeric
backend, record timing and memory metrics, and export session reports.
"""

__version__ = "0.1.0"
