"""
Tests for event logging, the template catalog and logging configuration
"""

import logging
import re
from pathlib import Path

import colorlog
import pytest

from moosebot.logging_config import ErrorAggregator, LoggerConfigurator, log_structured_error
from moosebot.logs import EVENT_TEMPLATES, BotLogger, reload_event_templates

_PACKAGE = Path(__file__).parents[1] / "moosebot"
_CALL = re.compile(r'log_event\(\s*"([a-z_]+)",\s*"([a-z_]+)"', re.MULTILINE)


class TestEventCatalog:
    """Template catalog integrity"""

    def test_templates_load(self):
        """The JSON catalog ships with the package and is non-empty"""
        assert EVENT_TEMPLATES
        assert ("app", "load_error") not in EVENT_TEMPLATES

    def test_reload_idempotent(self):
        """Reloading yields the same keys"""
        before = set(EVENT_TEMPLATES)
        reload_event_templates()
        from moosebot.logs import event_catalog

        assert set(event_catalog.EVENT_TEMPLATES) == before

    def test_every_logged_event_has_template(self):
        """Every log_event call site has a human template"""
        used = {
            match
            for path in _PACKAGE.rglob("*.py")
            for match in _CALL.findall(path.read_text(encoding="utf-8"))
        }
        assert used, "expected to find log_event call sites"
        missing = sorted(used - set(EVENT_TEMPLATES))
        assert not missing, f"events without templates: {missing}"


class TestBotLogger:
    """BotLogger.log_event formatting"""

    def test_template_rendered_with_prefix(self, caplog, monkeypatch):
        monkeypatch.delenv("DEBUG", raising=False)
        log = BotLogger("moosebot.test")
        with caplog.at_level(logging.INFO, logger="moosebot.test"):
            log.log_event("router", "welcome_join", nick="MrMoose", count=3)
        assert "[MrMoose" in caplog.text
        assert "Joining 3 channel(s)" in caplog.text

    def test_channel_in_prefix(self, caplog, monkeypatch):
        monkeypatch.delenv("DEBUG", raising=False)
        log = BotLogger("moosebot.test")
        with caplog.at_level(logging.INFO, logger="moosebot.test"):
            log.log_event("router", "joined", nick="MrMoose", channel="#moose")
        assert "MrMoose #moose" in caplog.text

    def test_unknown_event_derives_text(self, caplog, monkeypatch):
        monkeypatch.delenv("DEBUG", raising=False)
        log = BotLogger("moosebot.test")
        with caplog.at_level(logging.INFO, logger="moosebot.test"):
            log.log_event("nowhere", "made_up_action")
        assert "nowhere: made up action" in caplog.text
        assert "[system" in caplog.text

    def test_debug_mode_includes_event_name_and_context(self, caplog, monkeypatch):
        monkeypatch.setenv("DEBUG", "true")
        log = BotLogger("moosebot.test")
        with caplog.at_level(logging.DEBUG, logger="moosebot.test"):
            log.log_event("manager", "reconnect_attempt", level=logging.DEBUG, attempt=2)
        assert "manager_reconnect_attempt" in caplog.text
        assert "attempt=2" in caplog.text

    def test_missing_template_field_falls_back_to_raw_template(self, caplog, monkeypatch):
        monkeypatch.delenv("DEBUG", raising=False)
        log = BotLogger("moosebot.test")
        with caplog.at_level(logging.INFO, logger="moosebot.test"):
            log.log_event("router", "welcome_join")
        assert "{count}" in caplog.text


class TestStructuredErrors:
    """log_structured_error and ErrorAggregator"""

    def test_structured_message(self, caplog):
        with caplog.at_level(logging.ERROR):
            log_structured_error(
                "persistence", "write failed", OSError("disk"), {"path": "/tmp/x"}
            )
        assert "[PERSISTENCE] write failed" in caplog.text
        assert "OSError: disk" in caplog.text
        assert "path=/tmp/x" in caplog.text

    def test_aggregator_counts_and_trims(self):
        agg = ErrorAggregator()
        for i in range(1005):
            agg.record_error("network", f"e{i}")
        summary = agg.get_error_summary()
        assert summary["network"]["total_count"] == 1005
        assert summary["network"]["kept_count"] == 1000
        assert summary["network"]["last_occurrence"]["message"] == "e1004"
        agg.clear()
        assert agg.get_error_summary() == {}


class TestLoggerConfigurator:
    """Root logging setup"""

    @pytest.fixture(autouse=True)
    def _restore_root(self):
        root = logging.getLogger()
        handlers, level = list(root.handlers), root.level
        yield
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_configure_uses_colorlog(self, monkeypatch):
        monkeypatch.delenv("DEBUG", raising=False)
        LoggerConfigurator().configure()
        root = logging.getLogger()
        assert root.level == logging.INFO
        assert any(isinstance(h.formatter, colorlog.ColoredFormatter) for h in root.handlers)
        assert logging.getLogger("aiohttp").level == logging.WARNING

    def test_debug_env_enables_debug(self, monkeypatch):
        monkeypatch.setenv("DEBUG", "yes")
        LoggerConfigurator().configure()
        assert logging.getLogger().level == logging.DEBUG
