"""Server specific/only models."""

from .host import ControlSurface, HostAdapter

__all__ = ["ControlSurface", "HostAdapter"]
