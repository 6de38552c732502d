# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_webauth


import json
import logging
import os
from unittest.mock import patch

import pytest
from loguru import logger
from opentelemetry.sdk.trace import TracerProvider

from coreason_webauth.utils.logger import configure_logging, redact


def json_records(out: str) -> list[dict]:
    records = []
    for line in out.strip().split("\n"):
        try:
            records.append(json.loads(line)["record"])
        except (json.JSONDecodeError, KeyError):
            pass
    return records


@pytest.mark.parametrize(
    ("message", "expected"),
    [
        ("Authorization: Bearer eyJhbGciOi.abc.def", "Authorization: Bearer <REDACTED>"),
        ("POST /oauth/token code=SplxlOBeZQ&redirect_uri=x", "POST /oauth/token code=<REDACTED>&redirect_uri=x"),
        ("client_secret=s3cr3t id_token=abc", "client_secret=<REDACTED> id_token=<REDACTED>"),
        ("nothing to hide", "nothing to hide"),
    ],
)
def test_redact(message: str, expected: str) -> None:
    assert redact(message) == expected


def test_json_logs_are_redacted(capfd: pytest.CaptureFixture[str]) -> None:
    with patch.dict(os.environ, {"COREASON_LOG_JSON": "true", "COREASON_LOG_LEVEL": "INFO"}):
        configure_logging()
        logger.info("Sending Bearer AT1-secret-value")

        out, err = capfd.readouterr()

    assert not err
    messages = [r["message"] for r in json_records(out)]
    assert "Sending Bearer <REDACTED>" in messages
    assert "AT1-secret-value" not in out


def test_trace_id_injection(capfd: pytest.CaptureFixture[str]) -> None:
    tracer = TracerProvider().get_tracer(__name__)

    with patch.dict(os.environ, {"COREASON_LOG_JSON": "true"}):
        configure_logging()
        with tracer.start_as_current_span("test_span") as span:
            logger.info("Trace message")
            trace_id = format(span.get_span_context().trace_id, "032x")

        out, _ = capfd.readouterr()

    record = next(r for r in json_records(out) if r["message"] == "Trace message")
    assert record["extra"]["trace_id"] == trace_id


def test_standard_logging_interception(capfd: pytest.CaptureFixture[str]) -> None:
    with patch.dict(os.environ, {"COREASON_LOG_JSON": "true"}):
        configure_logging()
        logging.getLogger("httpx").warning("HTTP Request: POST https://t/oauth/token code=abc")

        out, _ = capfd.readouterr()

    messages = [r["message"] for r in json_records(out)]
    assert "HTTP Request: POST https://t/oauth/token code=<REDACTED>" in messages


def test_invalid_log_level_fallback() -> None:
    with patch.dict(os.environ, {"COREASON_LOG_LEVEL": "INVALID_LEVEL"}):
        configure_logging()
        assert logging.getLogger().level == logging.INFO


def test_read_only_filesystem_is_tolerated() -> None:
    with patch("pathlib.Path.mkdir", side_effect=PermissionError("read-only")):
        configure_logging()
