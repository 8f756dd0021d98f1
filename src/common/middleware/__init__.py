"""Common middleware for Doorlist."""

from .observability import StructlogContextMiddleware

__all__ = ["StructlogContextMiddleware"]
