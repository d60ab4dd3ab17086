# ==============================================
# Topic
# ==============================================
#
# PURPOSE:
#   Parse a slash-delimited topic into the parts the record
#   builder needs.
#
#   /balalaykajazz/plants1/out/sensors/temp_out
#    └─ client ──┘ └device┘             └table─┘
#
# RULES:
# ------
#   1. Must start with "/"
#   2. Must contain at least MIN_SEPARATORS "/" characters
#   3. Last segment is the table name and must be a valid identifier
#
# ==============================================

from dataclasses import dataclass
from typing import Tuple

from mqtt2clickhouse.errors import InvalidTopicError
from .identifier import is_valid_identifier

MIN_SEPARATORS = 4


@dataclass(frozen=True)
class Topic:
    raw: str
    segments: Tuple[str, ...]

    @property
    def client(self) -> str:
        return self.segments[1]

    @property
    def device(self) -> str:
        return self.segments[2]

    @property
    def table_name(self) -> str:
        return self.segments[-1]


def check_topic(topic: str) -> None:
    """
    Validate the prefix and separator-count rules.

    Raises:
        InvalidTopicError: topic is not a string, has no leading "/",
            or has fewer than MIN_SEPARATORS separators
    """
    if not isinstance(topic, str):
        raise InvalidTopicError(repr(topic), "topic must be a string")
    if not topic.startswith("/"):
        raise InvalidTopicError(topic, "missing leading '/'")
    if topic.count("/") < MIN_SEPARATORS:
        raise InvalidTopicError(
            topic, "expected the form '/client/device/.../sensorName'"
        )


def parse_topic(topic: str) -> Topic:
    """
    Validate and split a topic.

    Args:
        topic: Raw topic string, e.g. "/client/device/out/sensors/temp_out"

    Returns:
        Topic with client, device and table_name accessors
    """
    check_topic(topic)
    segments = tuple(topic.split("/"))

    table_name = segments[-1]
    if not is_valid_identifier(table_name):
        raise InvalidTopicError(
            topic, f"table name '{table_name}' is not a valid identifier"
        )

    return Topic(raw=topic, segments=segments)
