# ==============================================
# Message Sources
# ==============================================
#
# PURPOSE:
#   Produce InboundMessage objects for IngestPipeline.feed().
#   The broker connection itself is not part of this project;
#   these sources replay or poll already-captured messages.
#
# MESSAGE FORMAT:
# ---------------
#   {"topic": "/client/device/.../sensor", "payload": {...} | "..."}
#
#   An object payload is re-encoded as JSON bytes; a string
#   payload is passed through as UTF-8 bytes.
#
# CLASSES:
# --------
# - JsonLinesSource(path | file object)
#     One message per line. Blank lines are skipped, unparseable
#     lines are logged and skipped.
#
# - HttpPollSource(url, interval=0.1, max_errors=10)
#     GET url repeatedly; each response is one message object or
#     a list of them. Stops after max_errors consecutive failures.
#
# ==============================================

import json
import logging
import sys
import time
from typing import Any, BinaryIO, Iterator, List, TextIO, Union

import requests

from mqtt2clickhouse.ingest import InboundMessage

logger = logging.getLogger(__name__)


def to_message(item: Any) -> InboundMessage:
    """
    Convert one decoded {"topic", "payload"} object into an InboundMessage.

    Raises:
        ValueError: item is not an object with a string topic and a payload
    """
    if not isinstance(item, dict) or "topic" not in item or "payload" not in item:
        raise ValueError("message must be an object with 'topic' and 'payload'")

    topic = item["topic"]
    if not isinstance(topic, str):
        raise ValueError("message topic must be a string")

    payload = item["payload"]
    if isinstance(payload, str):
        data = payload.encode("utf-8")
    else:
        data = json.dumps(payload).encode("utf-8")
    return InboundMessage(topic=topic, payload=data)


class JsonLinesSource:
    def __init__(self, path: Union[str, TextIO, BinaryIO, None] = None):
        self.path = path

    def __iter__(self) -> Iterator[InboundMessage]:
        # read bytes where possible so each line is decoded on its own
        if self.path is None or self.path == "-":
            yield from self._read(sys.stdin.buffer)
        elif isinstance(self.path, str):
            with open(self.path, "rb") as f:
                yield from self._read(f)
        else:
            yield from self._read(self.path)

    def _read(self, stream: Union[TextIO, BinaryIO]) -> Iterator[InboundMessage]:
        for line_number, line in enumerate(stream, start=1):
            try:
                if isinstance(line, bytes):
                    line = line.decode("utf-8")
                line = line.strip()
                if not line:
                    continue
                message = to_message(json.loads(line))
            except ValueError as e:
                # UnicodeDecodeError and JSONDecodeError are both ValueErrors
                logger.warning("Skipping line %d: %s", line_number, e)
                continue
            yield message


class HttpPollSource:
    def __init__(self, url: str, interval: float = 0.1, max_errors: int = 10, timeout: float = 5.0):
        self.url = url
        self.interval = interval
        self.max_errors = max_errors
        self.timeout = timeout

    def __iter__(self) -> Iterator[InboundMessage]:
        errors = 0
        while True:
            try:
                items = self._fetch()
                errors = 0
            except requests.RequestException as e:
                errors += 1
                logger.warning("Failed to fetch messages from %s: %s", self.url, e)
                if errors >= self.max_errors:
                    logger.error("Too many consecutive errors from %s, stopping", self.url)
                    return
                time.sleep(1)
                continue

            for item in items:
                try:
                    yield to_message(item)
                except ValueError as e:
                    logger.warning("Skipping message from %s: %s", self.url, e)

            time.sleep(self.interval)

    def _fetch(self) -> List[Any]:
        response = requests.get(self.url, timeout=self.timeout)
        response.raise_for_status()
        if not response.content:
            return []
        body = response.json()
        if isinstance(body, list):
            return body
        return [body]
