"""Tests for the bridge logger and JSON formatter."""

import json
import logging

from opcua_bridge.formatter import JsonFormatter
from opcua_bridge.opcua_logging import LOGGER_NAME, get_logger, log_info, log_warn


class RecordingClient:
    def __init__(self):
        self.messages = []

    def info(self, message):
        self.messages.append(("info", message))

    def warning(self, message):
        self.messages.append(("warn", message))


def make_record(message, level=logging.INFO):
    return logging.LogRecord(LOGGER_NAME, level, __file__, 1, message, None, None)


class TestOpcuaLogger:

    def test_framework_client_receives_messages(self):
        client = RecordingClient()
        assert get_logger().initialize(client)

        log_info("connected")
        log_warn("slow response")

        assert client.messages == [("info", "connected"), ("warn", "slow response")]

    def test_missing_client_methods_fall_back(self, caplog):
        get_logger().initialize(RecordingClient())

        with caplog.at_level(logging.ERROR, logger=LOGGER_NAME):
            get_logger().error("read failed")

        assert "read failed" in caplog.text

    def test_initialize_without_client(self):
        assert not get_logger().initialize(None)

    def test_set_level(self, caplog):
        caplog.set_level(logging.DEBUG, logger=LOGGER_NAME)
        get_logger().set_level("warning")

        log_info("hidden")
        log_warn("shown")

        assert "hidden" not in caplog.text
        assert "shown" in caplog.text
        get_logger().set_level("INFO")


class TestJsonFormatter:

    def test_plain_message(self):
        entry = json.loads(JsonFormatter().format(make_record("subscription started")))

        assert entry["message"] == "subscription started"
        assert entry["level"] == "INFO"
        assert entry["logger"] == LOGGER_NAME
        assert entry["id"] == 1
        assert entry["thread"] == "MainThread"

    def test_json_message_is_enriched(self):
        formatter = JsonFormatter()
        formatter.format(make_record("first"))

        entry = json.loads(formatter.format(make_record('{"device": "plc", "event": "connected"}')))

        assert entry["device"] == "plc"
        assert entry["id"] == 2
        assert "timestamp" in entry

    def test_brace_wrapped_text_is_not_parsed(self):
        entry = json.loads(JsonFormatter().format(make_record("{not json}")))
        assert entry["message"] == "{not json}"
