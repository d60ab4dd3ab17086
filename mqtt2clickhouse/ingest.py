# ==============================================
# IngestConsumer: Single Consumer Loop
# ==============================================
#
# PURPOSE:
#   Drain the inbound queue one message at a time and push each
#   message through the three stages, fully serialized:
#
#   ┌──────────────────────────────────────────────────────────┐
#   │                     IngestConsumer                       │
#   │                                                          │
#   │   queue.get() ──► RecordBuilder.build()      (Stage 1)   │
#   │                        │ Record                          │
#   │                        ▼                                 │
#   │               TableManager.ensure_and_validate()         │
#   │                        │          (Stage 2+3, registry)  │
#   │                        ▼                                 │
#   │               RecordWriter.write()           (Stage 4)   │
#   └──────────────────────────────────────────────────────────┘
#
#   Every error is logged with its topic / table / column context,
#   counted, and the message is dropped. The loop then moves on:
#   one bad message never stops ingestion.
#
# CLASS: IngestConsumer
# ---------------------
#   Constructor:
#   ------------
#   - __init__(inbound: queue.Queue, stop_event: threading.Event,
#              builder, table_manager, writer, poll_interval=0.5)
#
#   Methods:
#   --------
#   - run() -> None
#       Loop until stop_event is set. The event is checked between
#       messages, never in the middle of one.
#   - process(message: InboundMessage) -> bool
#       Handle one message. True if a row was written.
#   - get_status() -> dict
#
# ==============================================

import logging
import queue
import threading
import time
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Union

from mqtt2clickhouse.errors import (
    IngestError,
    SchemaTypeMismatchError,
    UnsupportedValueTypeError,
)
from mqtt2clickhouse.normalization.record_builder import RecordBuilder
from mqtt2clickhouse.storage.table_manager import TableManager
from mqtt2clickhouse.storage.writer import RecordWriter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InboundMessage:
    """One (topic, payload) pair as delivered by a source."""
    topic: str
    payload: Union[bytes, str]
    received_at: float = field(default_factory=time.time, compare=False)


class IngestConsumer:
    def __init__(
        self,
        inbound: queue.Queue,
        stop_event: threading.Event,
        builder: RecordBuilder,
        table_manager: TableManager,
        writer: RecordWriter,
        poll_interval: float = 0.5,
    ):
        self.inbound = inbound
        self.stop_event = stop_event
        self.builder = builder
        self.table_manager = table_manager
        self.writer = writer
        self.poll_interval = poll_interval

        self._received = 0
        self._written = 0
        self._dropped = 0
        self._errors: Counter = Counter()
        self._started_at = time.time()

    def run(self) -> None:
        logger.info("Consumer started")
        while not self.stop_event.is_set():
            try:
                message = self.inbound.get(timeout=self.poll_interval)
            except queue.Empty:
                continue
            try:
                self.process(message)
            finally:
                self.inbound.task_done()
        logger.info(
            "Consumer stopped (received=%d, written=%d, dropped=%d)",
            self._received,
            self._written,
            self._dropped,
        )

    def process(self, message: InboundMessage) -> bool:
        self._received += 1
        table_name = None
        try:
            record = self.builder.build(message.topic, message.payload)
            table_name = record.table_name
            self.table_manager.ensure_and_validate(record)
            self.writer.write(record)
        except IngestError as e:
            self._drop(message, table_name, e)
            return False
        except Exception as e:
            self._errors[type(e).__name__] += 1
            self._dropped += 1
            logger.exception("Unexpected error on topic %s, message dropped: %s", message.topic, e)
            return False

        self._written += 1
        return True

    def _drop(self, message: InboundMessage, table_name, error: IngestError) -> None:
        self._errors[type(error).__name__] += 1
        self._dropped += 1

        context = f"topic={message.topic}"
        if table_name:
            context += f" table={table_name}"
        if isinstance(error, (SchemaTypeMismatchError, UnsupportedValueTypeError)):
            context += f" column={error.column}"

        logger.warning("Dropped message (%s): %s", context, error)

    def get_status(self) -> dict:
        return {
            "running": not self.stop_event.is_set(),
            "queue_size": self.inbound.qsize(),
            "received": self._received,
            "written": self._written,
            "dropped": self._dropped,
            "errors": dict(self._errors),
            "tables_registered": len(self.table_manager.registry),
            "uptime_seconds": round(time.time() - self._started_at, 2),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
