from __future__ import annotations

import copy

import pytest

from conftest import status_event
from counter_relay.services.events import (decode_field, extract_tx_status,
                                           select_status_events)


def _other_event(**parsed):
    return {
        "id": {"txDigest": "D", "eventSeq": "1"},
        "type": "0x2::coin::CoinEvent",
        "parsedJson": parsed,
        "sender": "0xSENDER",
    }


def test_type_name_match_wins_without_structural_fallback():
    typed = status_event()
    shaped = _other_event(action="X", status="Y", sender="0xS")
    sel = select_status_events([shaped, typed])
    assert sel.strategy == "type_name"
    assert sel.events == [typed]


def test_type_name_match_is_case_insensitive():
    ev = status_event(type="0xabc::other_module::txstatus")
    assert select_status_events([ev]).strategy == "type_name"


def test_structural_fallback_when_no_type_matches():
    shaped = _other_event(action=[65], status=[66], sender="0xS")
    plain = _other_event(amount="10")
    sel = select_status_events([plain, shaped])
    assert sel.strategy == "structural"
    assert sel.events == [shaped]


@pytest.mark.parametrize("events", [None, "events", {"type": "TxStatus"}, 42])
def test_non_list_input_selects_nothing(events):
    assert select_status_events(events).strategy == "none"
    assert extract_tx_status(events) == []


def test_non_mapping_entries_are_ignored():
    ev = status_event()
    assert len(extract_tx_status([None, "junk", 7, ev])) == 1


def test_byte_arrays_are_decoded():
    [out] = extract_tx_status([status_event(b"INCREMENT", b"OK")])
    assert out["action_decoded"] == "INCREMENT"
    assert out["status_decoded"] == "OK"
    assert out["action"] == list(b"INCREMENT")


def test_base64_strings_are_decoded():
    [out] = extract_tx_status([status_event(action="UkVTRVQ=", status="T0s=")])
    assert out["action_decoded"] == "RESET"
    assert out["status_decoded"] == "OK"


def test_binary_base64_is_kept_as_is():
    [out] = extract_tx_status([status_event(action="//79/A==")])
    assert out["action"] == "//79/A=="
    assert out["action_decoded"] is None


def test_plain_text_is_unchanged():
    [out] = extract_tx_status([status_event(action="create counter")])
    assert out["action_decoded"] is None


def test_missing_fields_decode_to_none():
    ev = status_event()
    ev["parsedJson"] = {"sender": "0xS"}
    [out] = extract_tx_status([ev])
    assert out["action_decoded"] is None
    assert out["status_decoded"] is None


def test_decode_field_strategies():
    assert decode_field(None).strategy == "null"
    assert decode_field([79, 75]).value == "OK"
    assert decode_field("T0s=").strategy == "base64"
    assert decode_field(5).value == 5
    failed = decode_field([300])
    assert failed.value is None and failed.strategy == "error"


def test_output_layout_and_provenance():
    ev = status_event()
    [out] = extract_tx_status([ev])
    assert list(out)[:3] == ["type", "id", "timestampMs"]
    assert list(out)[-3:] == ["action_decoded", "status_decoded", "_raw"]
    assert out["_raw"] == {
        "type": ev["type"],
        "id": ev["id"],
        "packageId": ev["packageId"],
        "transactionModule": "counter",
        "sender": ev["sender"],
        "bcs": ev["bcs"],
    }
    assert out["timestampMs"] == "1700000000000"


def test_payload_keys_win_on_collision_and_raw_keeps_original():
    ev = status_event()
    ev["parsedJson"]["type"] = "payload-type"
    [out] = extract_tx_status([ev])
    assert out["type"] == "payload-type"
    assert out["_raw"]["type"] == ev["type"]


def test_extraction_is_pure_and_idempotent():
    events = [status_event(), _other_event(amount="1")]
    before = copy.deepcopy(events)
    first = extract_tx_status(events)
    second = extract_tx_status(events)
    assert events == before
    assert first == second

    first[0]["id"]["eventSeq"] = "changed"
    assert events[0]["id"]["eventSeq"] == "0"
