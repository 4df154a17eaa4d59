from __future__ import annotations

import io
import json
import logging

import pytest
import structlog

from counter_relay.logging import get_logger, redact_secrets, setup_logging
from counter_relay.services.outcome import best_effort


@pytest.fixture
def json_logs():
    stream = io.StringIO()
    setup_logging(service_name="counter-relay-test", level="DEBUG", log_format="json", stream=stream)
    yield lambda: [json.loads(line) for line in stream.getvalue().splitlines() if line.startswith("{")]
    structlog.reset_defaults()
    logging.getLogger().handlers.clear()


def test_secrets_are_redacted(json_logs):
    get_logger("test").info(
        "signer_loaded",
        sui_mnemonic="abandon about",
        address="0xA",
        request={"sui_private_key": "c2VjcmV0", "network": "testnet"},
    )
    [line] = [entry for entry in json_logs() if entry["event"] == "signer_loaded"]
    assert line["sui_mnemonic"] == "***"
    assert line["request"] == {"sui_private_key": "***", "network": "testnet"}
    assert line["address"] == "0xA"
    assert line["service"] == "counter-relay-test"
    assert line["logger"] == "test"


def test_stdlib_records_share_the_pipeline(json_logs):
    logging.getLogger("third.party").warning("plain record")
    [line] = [entry for entry in json_logs() if entry["event"] == "plain record"]
    assert line["level"] == "warning"
    assert line["service"] == "counter-relay-test"


def test_redaction_processor_leaves_event_and_plain_keys():
    out = redact_secrets(None, "info", {"event": "x", "signature": "AAAA", "digest": "D", "empty_secret": None})
    assert out == {"event": "x", "signature": "***", "digest": "D", "empty_secret": None}


@pytest.mark.asyncio
async def test_best_effort_captures_errors():
    async def fails():
        raise RuntimeError("node down")

    async def works(x):
        return x * 2

    failed = await best_effort("get_counter_value:0xC0", fails)
    assert not failed.ok
    assert isinstance(failed.error, RuntimeError)
    assert failed.value_or("fallback") == "fallback"

    ok = await best_effort("double", works, 21)
    assert ok.ok and ok.value_or(None) == 42
