"""
Tests for HTTPClientLogger, get_logger and configure_logging.
"""

import json
import logging

import pytest

import src.fluent_http.core.logging.logger as logger_module
from src.fluent_http.core.logging.config import LoggingConfig, LogLevel, LogFormat
from src.fluent_http.core.logging.filters import clear_correlation_id, set_correlation_id
from src.fluent_http.core.logging.logger import HTTPClientLogger, configure_logging, get_logger


def read_json_lines(path):
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines() if line]


@pytest.fixture
def json_file_config(tmp_path):
    return LoggingConfig.create(
        level="DEBUG",
        format="json",
        enable_console=False,
        enable_file=True,
        file_path=str(tmp_path / "client.log"),
    )


class TestHTTPClientLogger:

    def setup_method(self):
        logger_module._default_logger = None
        clear_correlation_id()

    def teardown_method(self):
        if logger_module._default_logger is not None:
            logger_module._default_logger.close()
        logger_module._default_logger = None
        clear_correlation_id()

    def test_defaults(self):
        logger = HTTPClientLogger()
        try:
            assert logger.name == "fluent_http"
            assert logger.config.level == LogLevel.INFO
            assert logger.config.format == LogFormat.TEXT
            assert logger.logger.propagate is False
            assert len(logger.logger.handlers) == 1
        finally:
            logger.close()

    def test_writes_json_with_fields(self, json_file_config, tmp_path):
        logger = HTTPClientLogger(json_file_config, name="fluent_http.test_json")
        logger.info("Request completed", method="GET", status_code=200)
        logger.close()

        records = read_json_lines(tmp_path / "client.log")
        assert records[0]["message"] == "Request completed"
        assert records[0]["method"] == "GET"
        assert records[0]["status_code"] == 200

    def test_masks_sensitive_fields(self, json_file_config, tmp_path):
        logger = HTTPClientLogger(json_file_config, name="fluent_http.test_mask")
        logger.warning("Auth", password="hunter2", authorization="Bearer abc.def", user="bob")
        logger.close()

        record = read_json_lines(tmp_path / "client.log")[0]
        assert record["password"] == "***REDACTED***"
        assert record["authorization"] == "***REDACTED***"
        assert record["user"] == "bob"

    def test_correlation_id(self, json_file_config, tmp_path):
        logger = HTTPClientLogger(json_file_config, name="fluent_http.test_corr")
        set_correlation_id("req-42")
        logger.debug("attempt")
        logger.close()

        assert read_json_lines(tmp_path / "client.log")[0]["correlation_id"] == "req-42"

    def test_extra_fields(self, tmp_path):
        config = LoggingConfig.create(
            format="json",
            enable_console=False,
            enable_file=True,
            file_path=str(tmp_path / "client.log"),
            extra_fields={"service": "catalog"},
        )
        with HTTPClientLogger(config, name="fluent_http.test_extra") as logger:
            logger.error("Request failed")

        assert read_json_lines(tmp_path / "client.log")[0]["service"] == "catalog"

    def test_level_filtering(self, tmp_path):
        config = LoggingConfig.create(
            level="WARNING",
            format="json",
            enable_console=False,
            enable_file=True,
            file_path=str(tmp_path / "client.log"),
        )
        logger = HTTPClientLogger(config, name="fluent_http.test_level")
        logger.info("skipped")
        logger.warning("kept")
        logger.close()

        assert [r["message"] for r in read_json_lines(tmp_path / "client.log")] == ["kept"]

    def test_exception_logs_traceback(self, json_file_config, tmp_path):
        logger = HTTPClientLogger(json_file_config, name="fluent_http.test_exc")
        try:
            raise ValueError("broken")
        except ValueError:
            logger.exception("Unexpected error")
        logger.close()

        record = read_json_lines(tmp_path / "client.log")[0]
        assert record["level"] == "ERROR"
        assert "ValueError: broken" in record["exception"]

    def test_close_idempotent(self, json_file_config, tmp_path):
        logger = HTTPClientLogger(json_file_config, name="fluent_http.test_close")
        logger.close()
        logger.close()

        assert logger.logger.handlers == []
        logger.info("after close")
        assert (tmp_path / "client.log").read_text(encoding="utf-8") == ""

    def test_reinit_replaces_handlers(self):
        config = LoggingConfig.create(enable_console=True)
        first = HTTPClientLogger(config, name="fluent_http.test_reinit")
        second = HTTPClientLogger(config, name="fluent_http.test_reinit")
        try:
            assert first.logger is second.logger
            assert len(second.logger.handlers) == 1
        finally:
            second.close()

    def test_close_keeps_other_instance_handlers(self, tmp_path):
        """Два клиента одного домена: закрытие первого не глушит второй."""
        config = LoggingConfig.create(
            format="json",
            enable_console=False,
            enable_file=True,
            file_path=str(tmp_path / "client.log"),
        )
        first = HTTPClientLogger(config, name="fluent_http.shared.test")
        second = HTTPClientLogger(config, name="fluent_http.shared.test")

        first.close()
        second.info("still logging")
        second.close()

        assert [r["message"] for r in read_json_lines(tmp_path / "client.log")] == ["still logging"]

    def test_get_logger_singleton(self):
        assert get_logger() is get_logger()

    def test_configure_logging_replaces(self, logging_config):
        first = get_logger()
        second = configure_logging(logging_config)

        assert second is not first
        assert get_logger() is second
        assert second.logger.level == logging.DEBUG
