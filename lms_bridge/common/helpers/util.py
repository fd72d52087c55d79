"""Helper and utility functions."""

from __future__ import annotations

from typing import Any
from uuid import NAMESPACE_URL, uuid5

from lms_bridge.constants import UUID_NAMESPACE


def normalize_player_id(player_id: str) -> str:
    """Return the normalized (map key) form of an external player id."""
    return player_id.strip().lower()


def derive_local_uuid(player_id: str) -> str:
    """Derive the stable local uuid for a (raw or normalized) player id.

    The result only depends on the normalized id so the same player
    gets the same uuid after a restart without storing anything.
    """
    return str(uuid5(NAMESPACE_URL, f"{UUID_NAMESPACE}:{normalize_player_id(player_id)}"))


def try_parse_int(possible_int: Any, default: int | None = 0) -> int | None:
    """Try to parse an int.

    Numeric strings with surrounding whitespace or a fraction ("37", " 42 ", "37.6")
    are accepted, the fraction is truncated.
    """
    if isinstance(possible_int, bool):
        return int(possible_int)
    try:
        return int(possible_int)
    except (TypeError, ValueError):
        pass
    try:
        return int(float(possible_int))
    except (TypeError, ValueError, OverflowError):
        return default


def try_parse_float(possible_float: Any, default: float | None = 0.0) -> float | None:
    """Try to parse a float."""
    try:
        return float(possible_float)
    except (TypeError, ValueError):
        return default


def try_parse_bool(possible_bool: Any) -> bool:
    """Try to parse a bool."""
    if isinstance(possible_bool, bool):
        return possible_bool
    return possible_bool in ["true", "True", "1", "on", "ON", 1]
