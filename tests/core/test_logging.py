from __future__ import annotations

import logging

from coursetrack.core.logging import (
    RequestContextFilter,
    _ContainerFormatter,
    _JsonFormatter,
    setup_logging,
)


def _record(level: int = logging.INFO, msg: str = "hello", lineno: int = 1):
    return logging.LogRecord(
        name="test",
        level=level,
        pathname="svc.py",
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


def test_setup_logging_quiets_sqlalchemy_and_uvicorn_at_debug() -> None:
    setup_logging("debug")
    assert logging.getLogger("uvicorn").level == logging.WARNING
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING


def test_setup_logging_selects_json_formatter() -> None:
    setup_logging("info", json_format=True)
    handler = logging.getLogger().handlers[-1]
    assert isinstance(handler.formatter, _JsonFormatter)

    setup_logging("info")
    handler = logging.getLogger().handlers[-1]
    assert isinstance(handler.formatter, _ContainerFormatter)


def test_formatter_excludes_location_for_info() -> None:
    output = _ContainerFormatter().format(_record())
    assert "hello" in output
    assert "[svc.py:" not in output


def test_formatter_includes_location_for_warning() -> None:
    output = _ContainerFormatter().format(
        _record(logging.WARNING, "recompute failed", lineno=42)
    )
    assert "recompute failed" in output
    assert "[svc.py:42]" in output


def test_setup_logging_puts_context_filter_on_handler() -> None:
    setup_logging("info")
    handler = logging.getLogger().handlers[-1]
    assert any(isinstance(f, RequestContextFilter) for f in handler.filters)
