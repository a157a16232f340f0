"""Tests for gworkspace/logging_config.py"""

import json
import logging

import pytest

from gworkspace.logging_config import get_logger, setup_logging


class TestUnconfigured:
    def test_package_logs_never_reach_stdout(self, capsys):
        logger = get_logger("gworkspace.cache.store")

        logger.debug("Cache miss: k")
        logger.warning("Tool t failed: boom")

        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err == ""

    @pytest.mark.asyncio
    async def test_client_output_stays_clean(self, client, fake_transport, capsys):
        await client.get_gmail_message("m1")
        await client.get_gmail_message("m1")
        await client.close()

        assert capsys.readouterr().out == ""


class TestSetupLogging:
    def test_console_output_goes_to_stderr(self, capsys):
        setup_logging(level="DEBUG", json_output=False)
        get_logger("gworkspace.session.manager").info("Workspace session connected")

        captured = capsys.readouterr()
        assert captured.out == ""
        assert "Workspace session connected" in captured.err

    def test_json_output(self, capsys):
        setup_logging(level="INFO", json_output=True)
        get_logger("gworkspace.client").info("hello")

        record = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
        assert record["event"] == "hello"
        assert record["level"] == "info"
        assert record["logger"] == "gworkspace.client"

    def test_level_filters(self, capsys):
        setup_logging(level="WARNING", json_output=False)
        get_logger("gworkspace.client").info("quiet")
        assert "quiet" not in capsys.readouterr().err

    def test_level_from_environment(self, monkeypatch):
        monkeypatch.setenv("GWORKSPACE_LOG_LEVEL", "debug")
        setup_logging()
        assert logging.getLogger().level == logging.DEBUG

    def test_foreign_records_are_rendered(self, capsys):
        setup_logging(level="INFO", json_output=True)
        logging.getLogger("mcp.client").info("server started")

        record = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
        assert record["event"] == "server started"
