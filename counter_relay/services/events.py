"""
TxStatus event extraction.

The counter module emits a ``TxStatus`` event per action with ``action``,
``status`` and ``sender`` fields; ``action``/``status`` are ``vector<u8>`` and
reach us either as arrays of byte values or as base64 strings depending on the
node. :func:`extract_tx_status` finds those events and adds readable copies of
both fields.

Selection is an ordered chain; the first strategy that matches anything wins:

1. ``type_name``   final ``::`` segment of the event type is ``TxStatus``
                   (case-insensitive), whatever the package/module
2. ``structural``  ``parsedJson`` has ``action``, ``status`` and ``sender``

Decoding is also an ordered chain, applied to ``action`` and ``status``
separately (see :func:`decode_field`). Extraction is pure: the input events
are never mutated and the function never raises.

Output keys per event, in write order (later writes win on collision):

    type, id, timestampMs            structural fields
    <every parsedJson key>           contract payload
    action_decoded, status_decoded   decoded value, or None when unchanged
    _raw                             provenance (type, id, packageId,
                                     transactionModule, sender, bcs)
"""

from __future__ import annotations

import base64
import binascii
import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Sequence

from ..logging import get_logger

log = get_logger(__name__)

STATUS_EVENT_NAME = "txstatus"
STRUCTURAL_KEYS = ("action", "status", "sender")
DECODED_FIELDS = ("action", "status")
RAW_KEYS = ("type", "id", "packageId", "transactionModule", "sender", "bcs")
REPLACEMENT_CHAR = "\ufffd"
MAX_REPLACEMENT_RATIO = 0.2


# ---------- selection ----------


@dataclass(frozen=True)
class Selection:
    strategy: str  # "type_name" | "structural" | "none"
    events: List[Mapping[str, Any]] = field(default_factory=list)


def _type_leaf(event_type: Any) -> str:
    if not isinstance(event_type, str) or not event_type:
        return ""
    return event_type.split("::")[-1]


def _by_type_name(events: Sequence[Mapping[str, Any]]) -> List[Mapping[str, Any]]:
    return [e for e in events if _type_leaf(e.get("type")).lower() == STATUS_EVENT_NAME]


def _by_structure(events: Sequence[Mapping[str, Any]]) -> List[Mapping[str, Any]]:
    out = []
    for e in events:
        pj = e.get("parsedJson")
        if isinstance(pj, Mapping) and all(k in pj for k in STRUCTURAL_KEYS):
            out.append(e)
    return out


_SELECTORS = (("type_name", _by_type_name), ("structural", _by_structure))


def select_status_events(events: Any) -> Selection:
    if not isinstance(events, (list, tuple)):
        return Selection("none")
    candidates = [e for e in events if isinstance(e, Mapping)]
    for name, selector in _SELECTORS:
        picked = selector(candidates)
        if picked:
            return Selection(name, picked)
    return Selection("none")


# ---------- decoding ----------


@dataclass(frozen=True)
class Decoded:
    value: Any
    strategy: str  # "null" | "bytes" | "base64" | "utf8" | "passthrough" | "error"


def _looks_like_text(text: str) -> bool:
    if not text:
        return False
    return text.count(REPLACEMENT_CHAR) / len(text) < MAX_REPLACEMENT_RATIO


def _decode_string(value: str) -> Decoded:
    try:
        raw = base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError):
        return Decoded(value.encode("utf-8", "surrogatepass").decode("utf-8", "replace"), "utf8")
    text = raw.decode("utf-8", "replace")
    if _looks_like_text(text):
        return Decoded(text, "base64")
    return Decoded(value, "utf8")


def decode_field(value: Any) -> Decoded:
    """
    - None                 → None
    - list of byte values  → UTF-8 text
    - str                  → base64 → UTF-8 text, unless that is mostly
                             replacement characters (≥ 20 %) or empty, in
                             which case the string is kept; a string that is
                             not base64 is read as UTF-8 text
    - anything else        → unchanged
    Internal failures yield None.
    """
    try:
        if value is None:
            return Decoded(None, "null")
        if isinstance(value, (list, tuple)):
            return Decoded(bytes(value).decode("utf-8", "replace"), "bytes")
        if isinstance(value, str):
            return _decode_string(value)
        return Decoded(value, "passthrough")
    except Exception as e:
        log.debug("decode_failed", error=str(e), value_type=type(value).__name__)
        return Decoded(None, "error")


# ---------- shaping ----------


def _merge_payload(base: Dict[str, Any], payload: Mapping[str, Any]) -> Dict[str, Any]:
    """Spread ``payload`` onto ``base``; payload keys win (provenance stays in _raw)."""
    collisions = sorted(k for k in payload if k in base)
    if collisions:
        log.debug("event_field_collision", keys=collisions)
    base.update(copy.deepcopy(dict(payload)))
    return base


def _normalize(event: Mapping[str, Any]) -> Dict[str, Any]:
    pj = event.get("parsedJson")
    pj = pj if isinstance(pj, Mapping) else {}

    out: Dict[str, Any] = {
        "type": event.get("type"),
        "id": copy.deepcopy(event.get("id")),
        "timestampMs": event.get("timestampMs"),
    }
    _merge_payload(out, pj)

    for name in DECODED_FIELDS:
        raw_value = pj.get(name)
        decoded = decode_field(raw_value)
        out[f"{name}_decoded"] = decoded.value if decoded.value != raw_value else None

    out["_raw"] = {k: copy.deepcopy(event.get(k)) for k in RAW_KEYS}
    return out


def extract_tx_status(events: Any) -> List[Dict[str, Any]]:
    """Select TxStatus events from ``events`` and return their normalized form."""
    try:
        selection = select_status_events(events)
        return [_normalize(e) for e in selection.events]
    except Exception as e:
        log.warning("tx_status_extraction_failed", error=str(e))
        return []


__all__ = [
    "Decoded",
    "Selection",
    "decode_field",
    "extract_tx_status",
    "select_status_events",
]
