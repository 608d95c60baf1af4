"""
Tests for logger functionality.
"""

import threading

from jobboard.logger import StructuredLogger, get_logger, reset_logger


def make_logger(tmp_path, **kwargs):
    return StructuredLogger(name="test", log_dir=tmp_path, enable_console=False, **kwargs)


class TestStructuredLogger:
    """Test structured logging functionality."""

    def test_logger_creation(self, tmp_path):
        """Logger should be created with zeroed metrics."""
        logger = make_logger(tmp_path)

        assert logger.logger.name == "test"
        assert logger.metrics["records_processed"] == 0
        assert logger.metrics["errors_by_type"] == {}

    def test_log_methods(self, tmp_path):
        """All log level methods should work."""
        logger = make_logger(tmp_path)

        logger.debug("Debug message")
        logger.info("Info message")
        logger.warning("Warning message")
        logger.error("Error message")
        logger.critical("Critical message")

    def test_writes_log_file_with_context(self, tmp_path):
        """Context is appended as JSON to the file output."""
        logger = make_logger(tmp_path)
        logger.info("Imported row", row=3, when=tmp_path)

        for handler in logger.logger.handlers:
            handler.flush()
        [log_file] = list(tmp_path.glob("jobboard_*.log"))
        content = log_file.read_text(encoding="utf-8")
        assert "Imported row | Context: " in content
        assert '"row": 3' in content

    def test_file_disabled(self, tmp_path):
        make_logger(tmp_path / "nolog", enable_file=False)
        assert not (tmp_path / "nolog").exists()

    def test_record_counters(self, tmp_path):
        logger = make_logger(tmp_path)

        logger.record("records_processed", 4)
        logger.record("inserted", 3)
        logger.record("deduplicated")

        metrics = logger.get_metrics()
        assert metrics["records_processed"] == 4
        assert metrics["inserted"] == 3
        assert metrics["deduplicated"] == 1
        assert metrics["insert_rate"] == 0.75

    def test_record_failure(self, tmp_path):
        logger = make_logger(tmp_path)

        logger.record_failure("ValidationError")
        logger.record_failure("ValidationError")
        logger.record_failure("IntegrityError")

        metrics = logger.get_metrics()
        assert metrics["failed"] == 3
        assert metrics["errors_by_type"] == {"ValidationError": 2, "IntegrityError": 1}

    def test_no_insert_rate_without_records(self, tmp_path):
        assert "insert_rate" not in make_logger(tmp_path).get_metrics()

    def test_get_metrics_returns_copy(self, tmp_path):
        logger = make_logger(tmp_path)
        logger.record_failure("X")

        snapshot = logger.get_metrics()
        snapshot["errors_by_type"]["X"] = 99

        assert logger.get_metrics()["errors_by_type"]["X"] == 1

    def test_counters_are_thread_safe(self, tmp_path):
        logger = make_logger(tmp_path)

        def work():
            for _ in range(1000):
                logger.record("inserted")
                logger.record_failure("E")

        threads = [threading.Thread(target=work) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        metrics = logger.get_metrics()
        assert metrics["inserted"] == 8000
        assert metrics["failed"] == 8000
        assert metrics["errors_by_type"]["E"] == 8000

    def test_log_metrics_summary(self, tmp_path):
        logger = make_logger(tmp_path)
        logger.record("records_processed", 2)
        logger.record("enum_fallbacks")
        logger.record_failure("ValidationError")

        logger.log_metrics_summary()


class TestGlobalLogger:

    def test_get_logger_is_singleton(self):
        assert get_logger() is get_logger()

    def test_reset_logger_closes_handlers(self, tmp_path):
        reset_logger()
        logger = get_logger(name="reset-test", log_dir=tmp_path, enable_console=False)
        handlers = list(logger.logger.handlers)
        assert handlers

        reset_logger()

        assert logger.logger.handlers == []
        assert get_logger(name="reset-test", log_dir=tmp_path, enable_console=False) is not logger
