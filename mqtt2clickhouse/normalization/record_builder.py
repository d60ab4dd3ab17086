# ==============================================
# RecordBuilder
# ==============================================
#
# PURPOSE:
#   Turn one (topic, payload) pair into an immutable Record:
#   destination table, ordered columns, ordered values, and
#   the inferred column descriptors.
#
# STEPS:
# ------
#   1. Validate + split the topic       → table, client, device
#   2. Decode the payload as a JSON object
#   3. Require the "value" key
#   4. Columns are always (client, device, value) in that order
#   5. Infer a ColumnDescriptor per column
#
#   No I/O and no shared mutable state: safe to call from any
#   number of threads at once.
#
# NUMBERS:
# --------
#   numbers_as_float=True (default) decodes every JSON number
#   as float, so numeric values always infer Float64.
#   numbers_as_float=False keeps JSON integers as int → Int.
#
# ==============================================

import json
from typing import Any, Optional, Union

from mqtt2clickhouse.errors import MalformedPayloadError
from mqtt2clickhouse.schema.types import Record
from .topic import parse_topic
from .type_detector import TypeDetector

CLIENT_COLUMN = "client"
DEVICE_COLUMN = "device"
VALUE_COLUMN = "value"

Payload = Union[bytes, bytearray, str]


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-finite number {name} is not allowed")


class RecordBuilder:
    def __init__(self, numbers_as_float: bool = True, type_detector: Optional[TypeDetector] = None):
        self.numbers_as_float = numbers_as_float
        self.type_detector = type_detector or TypeDetector()

    def build(self, topic: str, payload: Payload) -> Record:
        """
        Build a Record from a topic and a raw payload.

        Args:
            topic: e.g. "/balalaykajazz/plants1/out/sensors/temp_out"
            payload: e.g. b'{"timestamp":"2021-11-24T20:27:23Z","value":27.8}'

        Returns:
            Record for table "temp_out" with columns (client, device, value)

        Raises:
            InvalidTopicError, MalformedPayloadError, UnsupportedValueTypeError
        """
        parsed = parse_topic(topic)
        message = self.decode_payload(payload)

        if VALUE_COLUMN not in message:
            raise MalformedPayloadError(f"missing required key '{VALUE_COLUMN}'", payload)

        pairs = (
            (CLIENT_COLUMN, parsed.client),
            (DEVICE_COLUMN, parsed.device),
            (VALUE_COLUMN, message[VALUE_COLUMN]),
        )
        descriptors = tuple(self.type_detector.describe(name, value) for name, value in pairs)

        return Record(
            table_name=parsed.table_name,
            columns=tuple(name for name, _ in pairs),
            values=tuple(value for _, value in pairs),
            descriptors=descriptors,
            topic=topic,
        )

    def decode_payload(self, payload: Payload) -> dict:
        if isinstance(payload, (bytes, bytearray)):
            try:
                payload = bytes(payload).decode("utf-8")
            except UnicodeDecodeError as e:
                raise MalformedPayloadError(f"payload is not valid UTF-8: {e}", payload) from e

        if not isinstance(payload, str):
            raise MalformedPayloadError(
                f"payload must be bytes or str, got {type(payload).__name__}", payload
            )

        try:
            message = json.loads(
                payload,
                parse_int=float if self.numbers_as_float else int,
                parse_constant=_reject_constant,
            )
        except ValueError as e:
            raise MalformedPayloadError(f"payload is not valid JSON: {e}", payload) from e

        if not isinstance(message, dict):
            raise MalformedPayloadError(
                f"payload must be a JSON object, got {type(message).__name__}", payload
            )
        return message


_default_builder = RecordBuilder()


def build_record(topic: str, payload: Payload) -> Record:
    """Build a Record with the default numeric policy (all numbers Float64)."""
    return _default_builder.build(topic, payload)
