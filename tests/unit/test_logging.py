"""Unit tests for logging configuration."""

import logging

from structlog.testing import capture_logs

from vault_config_client.core.config import get_settings_for_testing
from vault_config_client.core.logging import ContextualLogger, get_logger, setup_logging


class TestLogging:
    def test_setup_logging_sets_root_level(self):
        settings = get_settings_for_testing(log_level="WARNING")

        setup_logging(settings, enable_json=True)

        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert len(root.handlers) == 1
        assert logging.getLogger("aiohttp.client").level == logging.WARNING

    def test_contextual_logger_binds_context(self):
        base = get_logger("vault_config_client.test", component="renewal")
        bound = base.bind(auth_method="approle")

        assert isinstance(bound, ContextualLogger)
        assert bound.name == "vault_config_client.test"
        assert bound._context == {"component": "renewal", "auth_method": "approle"}

    def test_context_is_passed_to_events(self):
        with capture_logs() as logs:
            get_logger("vault_config_client.test", component="executor").info(
                "making request", method="GET"
            )

        assert logs[0]["event"] == "making request"
        assert logs[0]["component"] == "executor"
        assert logs[0]["method"] == "GET"

    def test_exception_attaches_traceback(self):
        with capture_logs() as logs:
            try:
                raise RuntimeError("boom")
            except RuntimeError:
                get_logger("vault_config_client.test").exception("renewal failed", failures=1)

        assert logs[0]["event"] == "renewal failed"
        assert logs[0]["exc_info"] is True
        assert logs[0]["failures"] == 1
