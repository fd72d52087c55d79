"""Model for LMS Bridge Event."""

from dataclasses import dataclass, field
from typing import Any

from mashumaro.mixins.orjson import DataClassORJSONMixin

from lms_bridge.common.helpers.json import get_serializable_value
from lms_bridge.common.models.enums import EventType


@dataclass
class BridgeEvent(DataClassORJSONMixin):
    """Representation of an Event emitted in/by the bridge."""

    event: EventType
    object_id: str | None = None  # player_id
    data: Any = field(
        default=None,
        metadata={
            "serialize": lambda v: get_serializable_value(v)  # pylint: disable=unnecessary-lambda
        },
    )
