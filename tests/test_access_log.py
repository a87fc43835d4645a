"""Tests for roost.middleware.access_log and roost.logs."""

import logging

import pytest

from roost.app import App
from roost.config import AppConfig
from roost.errors import ConfigurationError
from roost.logs import configure_logging
from roost.testing import TestClient


def _app() -> App:
    app = App(AppConfig(secret_key="s"))

    @app.route("/forums")
    def forums():
        return "forums"

    @app.route("/boom")
    def boom():
        raise RuntimeError("db down")

    app.get("/settings", lambda: "ok", requires_auth=True)
    return app


def _access_lines(caplog: pytest.LogCaptureFixture) -> list[str]:
    return [r.getMessage() for r in caplog.records if r.name == "roost.access"]


class TestAccessLog:
    async def test_logs_one_line_per_request(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="roost.access"):
            async with TestClient(_app()) as client:
                await client.get("/forums?page=2")
        (line,) = _access_lines(caplog)
        assert line.startswith("GET /forums?page=2 200 ")
        assert line.endswith("user=-")

    async def test_logs_http_error_status(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="roost.access"):
            async with TestClient(_app()) as client:
                await client.get("/nowhere")
        (line,) = _access_lines(caplog)
        assert line.startswith("GET /nowhere 404 ")

    async def test_logs_500_for_handler_failure(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="roost.access"):
            async with TestClient(_app()) as client:
                response = await client.get("/boom")
        assert response.status == 500
        assert _access_lines(caplog)[0].startswith("GET /boom 500 ")

    async def test_disabled_by_config(self, caplog: pytest.LogCaptureFixture) -> None:
        app = App(AppConfig(access_log=False))
        app.get("/", lambda: "ok")
        with caplog.at_level(logging.INFO, logger="roost.access"):
            async with TestClient(app) as client:
                await client.get("/")
        assert _access_lines(caplog) == []


class TestConfigureLogging:
    def test_sets_level_and_is_idempotent(self) -> None:
        root = configure_logging(AppConfig(log_level="debug"))
        handlers = len(root.handlers)
        configure_logging(AppConfig(log_level="warning"))
        try:
            assert root.level == logging.WARNING
            assert len(root.handlers) == handlers
        finally:
            for handler in list(root.handlers):
                if getattr(handler, "_roost_handler", False):
                    root.removeHandler(handler)
            root.setLevel(logging.NOTSET)
            logging.getLogger("roost.access").disabled = False

    def test_unknown_level(self) -> None:
        with pytest.raises(ConfigurationError, match="Unknown log level"):
            configure_logging(AppConfig(log_level="chatty"))
