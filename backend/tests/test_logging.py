"""Log formatting tests."""

from __future__ import annotations

import json
import logging

from writebox.core.logging import JsonFormatter, RedactingFilter, redact


def _record(msg: str, *args, **extra) -> logging.LogRecord:
    record = logging.LogRecord("writebox.test", logging.WARNING, __file__, 1, msg, args, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_api_keys_are_masked() -> None:
    url = "https://example.test/models/m:generateContent?key=SECRET123&alt=json"
    assert redact(url) == "https://example.test/models/m:generateContent?key=***&alt=json"

    record = _record("POST %s failed", url)
    RedactingFilter().filter(record)
    assert "SECRET123" not in record.getMessage()


def test_context_fields_are_emitted() -> None:
    line = JsonFormatter().format(_record("Gateway returned %s", 429, ctx_feature="chat"))
    payload = json.loads(line)
    assert payload["message"] == "Gateway returned 429"
    assert payload["feature"] == "chat"
    assert payload["level"] == "WARNING"
