# ==============================================
# Tests for the Consumer Loop and Pipeline
# ==============================================

import queue
import threading

import pytest

from mqtt2clickhouse.config import AppConfig, IngestConfig
from mqtt2clickhouse.errors import RegistryLoadError, StoreError
from mqtt2clickhouse.ingest import InboundMessage, IngestConsumer
from mqtt2clickhouse.normalization import RecordBuilder
from mqtt2clickhouse.pipeline import IngestPipeline


@pytest.fixture
def consumer(table_manager, writer):
    return IngestConsumer(
        queue.Queue(maxsize=10),
        threading.Event(),
        RecordBuilder(),
        table_manager,
        writer,
        poll_interval=0.01,
    )


@pytest.fixture
def fast_config():
    return AppConfig(
        ingest=IngestConfig(
            queue_size=10,
            submit_timeout_seconds=0.01,
            poll_interval_seconds=0.01,
        )
    )


class TestIngestConsumer:
    """Tests for per-message processing."""

    def test_message_becomes_row(self, consumer, fake_store, sensor_topic, sensor_payload):
        assert consumer.process(InboundMessage(sensor_topic, sensor_payload)) is True
        assert fake_store.rows["temp_out"] == [("balalaykajazz", "plants1", 27.8)]

        status = consumer.get_status()
        assert status["received"] == 1
        assert status["written"] == 1
        assert status["dropped"] == 0
        assert status["tables_registered"] == 1

    def test_bad_messages_dropped_and_counted(self, consumer, fake_store, sensor_topic, sensor_payload):
        messages = [
            InboundMessage("/too/short", sensor_payload),
            InboundMessage(sensor_topic, b"{not json"),
            InboundMessage(sensor_topic, b'{"value": true}'),
            InboundMessage(sensor_topic, sensor_payload),
            InboundMessage(sensor_topic, b'{"value": "text"}'),
        ]
        results = [consumer.process(message) for message in messages]

        assert results == [False, False, False, True, False]
        assert fake_store.rows["temp_out"] == [("balalaykajazz", "plants1", 27.8)]

        status = consumer.get_status()
        assert status["written"] == 1
        assert status["dropped"] == 4
        assert status["errors"] == {
            "InvalidTopicError": 1,
            "MalformedPayloadError": 1,
            "UnsupportedValueTypeError": 1,
            "SchemaTypeMismatchError": 1,
        }

    def test_store_failure_does_not_stop_consumer(self, consumer, fake_store, sensor_topic, sensor_payload):
        fake_store.fail_on["INSERT"] = StoreError("Connection reset", 2013)
        assert consumer.process(InboundMessage(sensor_topic, sensor_payload)) is False

        del fake_store.fail_on["INSERT"]
        assert consumer.process(InboundMessage(sensor_topic, sensor_payload)) is True
        assert consumer.get_status()["errors"] == {"StoreWriteError": 1}

    def test_unexpected_error_is_contained(self, consumer, sensor_topic, sensor_payload, monkeypatch):
        def boom(record):
            raise RuntimeError("boom")

        monkeypatch.setattr(consumer.writer, "write", boom)
        assert consumer.process(InboundMessage(sensor_topic, sensor_payload)) is False
        assert consumer.get_status()["errors"] == {"RuntimeError": 1}

    def test_run_exits_on_stop_signal(self, consumer, sensor_topic, sensor_payload):
        consumer.inbound.put(InboundMessage(sensor_topic, sensor_payload))
        thread = threading.Thread(target=consumer.run)
        thread.start()

        consumer.inbound.join()
        consumer.stop_event.set()
        thread.join(timeout=5)

        assert not thread.is_alive()
        assert consumer.get_status()["written"] == 1
        assert consumer.get_status()["running"] is False


class TestIngestPipeline:
    """Tests for start / submit / stop."""

    def test_end_to_end(self, fast_config, make_store, sensor_topic, sensor_payload):
        store = make_store()
        pipeline = IngestPipeline(fast_config, store=store)
        pipeline.start()
        assert pipeline.is_running

        assert pipeline.submit(sensor_topic, sensor_payload)
        assert pipeline.submit("/balalaykajazz/plants1/out/sensors/humidity", b'{"value": 41}')
        pipeline.stop(drain=True, timeout=5)

        assert not pipeline.is_running
        assert store.rows["temp_out"] == [("balalaykajazz", "plants1", 27.8)]
        assert store.rows["humidity"] == [("balalaykajazz", "plants1", 41.0)]

        status = pipeline.get_status()
        assert status["written"] == 2
        assert status["tables_registered"] == 2
        assert status["queue_capacity"] == 10

    def test_registry_loaded_on_start(self, fast_config, make_store, sensor_topic):
        store = make_store({"temp_out": [("client", "String"), ("device", "String"), ("value", "Int64")]})
        with IngestPipeline(fast_config, store=store) as pipeline:
            assert "temp_out" in pipeline.registry
            pipeline.submit(sensor_topic, b'{"value": 27.8}')
            pipeline.stop(drain=True, timeout=5)
            status = pipeline.get_status()

        assert "temp_out" not in store.rows
        assert status["errors"] == {"SchemaTypeMismatchError": 1}

    def test_refresh_registry_picks_up_new_tables(self, fast_config, make_store, sensor_topic, sensor_payload):
        store = make_store()
        with IngestPipeline(fast_config, store=store) as pipeline:
            pipeline.submit(sensor_topic, sensor_payload)
            pipeline.stop(drain=True, timeout=5)

            store.tables["humidity"] = [("client", "String"), ("device", "String"), ("value", "Float64")]
            assert pipeline.refresh_registry() == 2
            assert pipeline.registry.tables() == ["humidity", "temp_out"]

    def test_registry_load_failure_is_fatal(self, fast_config, make_store):
        store = make_store()
        store.fail_on["SHOW TABLES"] = StoreError("connection refused")
        pipeline = IngestPipeline(fast_config, store=store)

        with pytest.raises(RegistryLoadError):
            pipeline.start()
        assert not pipeline.is_running

    def test_submit_rejects_when_queue_full(self, make_store, sensor_topic, sensor_payload):
        config = AppConfig(ingest=IngestConfig(queue_size=1, submit_timeout_seconds=0.01))
        pipeline = IngestPipeline(config, store=make_store())

        assert pipeline.submit(sensor_topic, sensor_payload) is True
        assert pipeline.submit(sensor_topic, sensor_payload) is False
        assert pipeline.get_status()["rejected_queue_full"] == 1

    def test_feed_respects_max_messages(self, fast_config, make_store, sensor_topic, sensor_payload):
        pipeline = IngestPipeline(fast_config, store=make_store())
        messages = (InboundMessage(sensor_topic, sensor_payload) for _ in range(100))

        assert pipeline.feed(messages, max_messages=3) == 3
        assert pipeline.inbound.qsize() == 3
