"""Unit tests for the connection probe."""

from unittest.mock import MagicMock

from infrastructure.observability import DefaultConnectionProbe, ObservationContext


class TestDefaultConnectionProbe:
    """Tests for DefaultConnectionProbe."""

    def test_reset_failure_is_a_warning(self):
        logger = MagicMock()
        probe = DefaultConnectionProbe(logger=logger)

        probe.connection_reset_failed(("tid_abc", "public"), RuntimeError("lost"))

        logger.warning.assert_called_once()
        assert logger.warning.call_args.args[0] == "database_connection_reset_failed"

    def test_with_context_adds_context_to_events(self):
        logger = MagicMock()
        probe = DefaultConnectionProbe(logger=logger).with_context(
            ObservationContext(run_id="run-1", schema_name="tid_abc")
        )

        probe.ssl_certificate_unreadable(path="/etc/ca.pem", error=OSError("nope"))

        logger.bind.assert_called_once_with(run_id="run-1", schema_name="tid_abc")
        bound = logger.bind.return_value
        assert bound.warning.call_args.kwargs["path"] == "/etc/ca.pem"

    def test_default_logger_is_created(self):
        probe = DefaultConnectionProbe()
        assert probe._logger is not None
