"""Tests for mcq.logging."""

from __future__ import annotations

import io
import logging
from pathlib import Path

from mcq.logging import TRACE, configure_logging, get_logger, log_fields, mask_secret, trace


def test_configure_logging_maps_verbosity_levels() -> None:
    assert configure_logging(verbosity=0).level > logging.CRITICAL
    assert configure_logging(verbosity=1).level == logging.INFO
    assert configure_logging(verbosity=2).level == logging.DEBUG
    assert configure_logging(verbosity=9).level == TRACE


def test_configure_logging_replaces_handlers(tmp_path: Path) -> None:
    configure_logging(verbosity=1)
    logger = configure_logging(verbosity=1, log_file=tmp_path / "mcq.log")

    assert len(logger.handlers) == 2
    logger.handlers[1].close()


def test_log_lines_carry_prefix_and_fields() -> None:
    stream = io.StringIO()
    configure_logging(verbosity=1, stream=stream)

    get_logger("test").info(log_fields("Selected model", name="GPT-5", provider="openai"))

    assert stream.getvalue() == "[mcq] INFO Selected model name=GPT-5 provider=openai\n"


def test_trace_only_emits_at_highest_verbosity() -> None:
    stream = io.StringIO()
    configure_logging(verbosity=2, stream=stream)
    trace(get_logger("test"), "Stream delta", chars=3)
    assert stream.getvalue() == ""

    configure_logging(verbosity=3, stream=stream)
    trace(get_logger("test"), "Stream delta", chars=3)
    assert "TRACE Stream delta chars=3" in stream.getvalue()


def test_mask_secret() -> None:
    assert mask_secret(None) == "not set"
    assert mask_secret("abc") == "***"
    assert mask_secret("sk-ant-123456") == "***3456"
