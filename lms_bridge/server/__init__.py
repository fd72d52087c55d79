"""LMS Bridge (server side)."""

from .server import LmsBridge

__all__ = ["LmsBridge"]
