"""Tests for lazy logging helpers."""

from __future__ import annotations

import logging

import pytest

from nested_set.infra.logging import LazyString, get_lazy_logger, lazy

pytestmark = pytest.mark.unit


def test_lazy_string_defers_evaluation() -> None:
    calls: list[int] = []

    def compute() -> str:
        calls.append(1)
        return "tree dump"

    value = LazyString(compute)
    assert calls == []
    assert str(value) == "tree dump"
    assert calls == [1]


def test_lazy_helper_builds_lazy_string() -> None:
    assert str(lazy(lambda: 42)) == "42"


def test_callable_message_not_evaluated_when_level_disabled() -> None:
    base = logging.getLogger("tests.lazy.disabled")
    base.setLevel(logging.INFO)
    logger = get_lazy_logger("tests.lazy.disabled")

    def explode() -> str:
        raise AssertionError("should not be evaluated")

    logger.debug(explode)


def test_callable_message_and_args_evaluated_when_enabled(caplog: pytest.LogCaptureFixture) -> None:
    logger = get_lazy_logger("tests.lazy.enabled")
    with caplog.at_level(logging.DEBUG, logger="tests.lazy.enabled"):
        logger.debug(lambda: "moved block")
        logger.info("width=%s", lambda: 6)

    assert [r.getMessage() for r in caplog.records] == ["moved block", "width=6"]


def test_exception_includes_traceback(caplog: pytest.LogCaptureFixture) -> None:
    logger = get_lazy_logger("tests.lazy.exception")
    with caplog.at_level(logging.ERROR, logger="tests.lazy.exception"):
        try:
            raise RuntimeError("range update failed")
        except RuntimeError:
            logger.exception(lambda: "mutation failed")

    assert caplog.records[0].exc_info is not None
