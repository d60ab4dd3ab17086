"""
==============================================
IngestPipeline: bootstrap and lifecycle
==============================================

Wires the store, the schema registry, the bounded inbound queue and
the consumer thread together.

USAGE EXAMPLES:

1. Run with configuration from the environment:
    from mqtt2clickhouse.pipeline import IngestPipeline

    with IngestPipeline() as pipeline:
        pipeline.submit("/acme/plant1/out/sensors/temp_out", b'{"value": 21.5}')

2. Feed from a source:
    from mqtt2clickhouse.sources import JsonLinesSource

    with IngestPipeline() as pipeline:
        pipeline.feed(JsonLinesSource("messages.jsonl"))

3. Check pipeline status:
    status = pipeline.get_status()
    print(status["written"], status["dropped"])

BACKPRESSURE:
    The inbound queue is bounded (IngestConfig.queue_size). When the
    consumer stalls, submit() blocks for submit_timeout_seconds and
    then drops the message and returns False.
"""

import logging
import queue
import threading
from typing import Iterable, Optional, Union

from mqtt2clickhouse.config import AppConfig, get_config
from mqtt2clickhouse.ingest import InboundMessage, IngestConsumer
from mqtt2clickhouse.normalization.record_builder import RecordBuilder
from mqtt2clickhouse.registry.schema_registry import SchemaRegistry
from mqtt2clickhouse.storage.store_client import StoreClient
from mqtt2clickhouse.storage.table_manager import TableManager
from mqtt2clickhouse.storage.writer import RecordWriter

logger = logging.getLogger(__name__)


class IngestPipeline:
    """
    Owns the inbound queue, the stop signal and the consumer thread.
    """

    def __init__(self, config: Optional[AppConfig] = None, store=None):
        """
        Initialize the pipeline. Nothing connects until start().

        Args:
            config: Optional configuration. If None, loads from environment.
            store: Optional ready-to-use store. If None, a StoreClient is
                built from config.store and connected in start().
        """
        self._config = config or get_config()
        self._owns_store = store is None
        self.store = store or StoreClient.from_config(self._config.store)

        self.registry = SchemaRegistry()
        self.builder = RecordBuilder(numbers_as_float=self._config.ingest.numbers_as_float)
        self.table_manager = TableManager(
            self.registry, self.store, engine=self._config.store.table_engine
        )
        self.writer = RecordWriter(self.store)

        self.inbound: queue.Queue = queue.Queue(maxsize=self._config.ingest.queue_size)
        self.stop_event = threading.Event()
        self.consumer = IngestConsumer(
            self.inbound,
            self.stop_event,
            self.builder,
            self.table_manager,
            self.writer,
            poll_interval=self._config.ingest.poll_interval_seconds,
        )

        self._thread: Optional[threading.Thread] = None
        self._rejected = 0

    def start(self) -> None:
        """
        Connect, load the registry and start the consumer thread.

        Raises:
            StoreError: the store is unreachable
            RegistryLoadError: the catalog could not be read
        """
        if self.is_running:
            return

        if self._owns_store and not self.store.is_connected:
            self.store.connect()

        self.registry.load(self.store)

        self.stop_event.clear()
        self._thread = threading.Thread(
            target=self.consumer.run, name="ingest-consumer", daemon=True
        )
        self._thread.start()

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def submit(self, topic: str, payload: Union[bytes, str]) -> bool:
        """
        Put one message on the inbound queue.

        Returns:
            True if queued, False if the queue stayed full past the timeout
        """
        message = InboundMessage(topic=topic, payload=payload)
        try:
            self.inbound.put(message, timeout=self._config.ingest.submit_timeout_seconds)
        except queue.Full:
            self._rejected += 1
            logger.warning("Inbound queue full, dropped message for topic %s", topic)
            return False
        return True

    def feed(self, messages: Iterable[InboundMessage], max_messages: Optional[int] = None) -> int:
        """
        Submit messages from a source until it is exhausted, max_messages
        have been submitted, or the pipeline is stopped.

        Returns:
            Number of messages queued
        """
        queued = 0
        for seen, message in enumerate(messages, start=1):
            if self.stop_event.is_set():
                break
            if self.submit(message.topic, message.payload):
                queued += 1
            if max_messages is not None and seen >= max_messages:
                break
        return queued

    def refresh_registry(self) -> int:
        """Reload the registry from the store catalog."""
        return self.registry.load(self.store)

    def stop(self, drain: bool = True, timeout: Optional[float] = None) -> None:
        """
        Signal the consumer to stop between messages.

        Args:
            drain: Wait until every queued message has been processed first
            timeout: Max seconds to wait for the consumer thread to exit
        """
        if self.is_running and drain:
            self.inbound.join()
        self.stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def close(self) -> None:
        self.stop()
        if self._owns_store:
            self.store.disconnect()

    def get_status(self) -> dict:
        status = self.consumer.get_status()
        status["running"] = self.is_running
        status["rejected_queue_full"] = self._rejected
        status["queue_capacity"] = self.inbound.maxsize
        return status

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
