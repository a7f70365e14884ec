from __future__ import annotations

import logging

from portal.core.logging import _ContainerFormatter, setup_logging


def _record(level: int, msg: str = "hello", pathname: str = "portal.py", lineno: int = 1):
    return logging.LogRecord(
        name="portal.test",
        level=level,
        pathname=pathname,
        lineno=lineno,
        msg=msg,
        args=(),
        exc_info=None,
    )


def test_setup_logging_sets_root_level() -> None:
    setup_logging("debug")
    assert logging.getLogger().level == logging.DEBUG

    setup_logging("warning")
    assert logging.getLogger().level == logging.WARNING


def test_setup_logging_defaults_to_info_for_unknown_level() -> None:
    setup_logging("nonexistent")
    assert logging.getLogger().level == logging.INFO


def test_setup_logging_quiets_http_client_at_debug() -> None:
    setup_logging("debug")

    assert logging.getLogger("httpx").level == logging.WARNING
    assert logging.getLogger("uvicorn").level == logging.WARNING


def test_setup_logging_follows_level_above_warning() -> None:
    setup_logging("error")

    assert logging.getLogger("httpx").level == logging.ERROR


def test_setup_logging_replaces_handlers() -> None:
    setup_logging("info")
    setup_logging("info")

    assert len(logging.getLogger().handlers) == 1


def test_formatter_excludes_location_for_info() -> None:
    output = _ContainerFormatter().format(_record(logging.INFO))

    assert "hello" in output
    assert "[portal.py:" not in output


def test_formatter_includes_location_for_warning() -> None:
    output = _ContainerFormatter().format(
        _record(logging.WARNING, "backend slow", "api_client.py", 42)
    )

    assert "backend slow" in output
    assert "[api_client.py:42]" in output
