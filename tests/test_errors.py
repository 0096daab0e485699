from __future__ import annotations

import requests

from issuemirror.errors import (
    FieldNotFound,
    InvalidPayload,
    MissingLabelOnEvent,
    OptionNotFound,
    TransportFailure,
    UnsupportedEvent,
    classify_error,
    iter_causes,
    redact,
)


def _chained(outer: Exception, inner: Exception) -> Exception:
    try:
        try:
            raise inner
        except Exception as exc:
            raise outer from exc
    except Exception as exc:
        return exc


def test_classify_payload_errors():
    assert classify_error(InvalidPayload("Issue payload object was null")).category == "payload"
    assert classify_error(MissingLabelOnEvent()).category == "payload"


def test_classify_unsupported_event():
    info = classify_error(UnsupportedEvent("push"))
    assert info.category == "event"
    assert info.details == {"event_name": "push"}
    assert info.transient is False


def test_classify_project_field_errors():
    assert classify_error(FieldNotFound("Status")).category == "project.field"
    assert classify_error(OptionNotFound("Blocked", ["Todo"])).category == "project.field"


def test_classify_network_from_root_cause():
    exc = _chained(TransportFailure("Failed to list issues"), requests.Timeout("read timed out"))
    info = classify_error(exc)
    assert info.category == "network"
    assert info.transient is True
    assert info.original_type == "TransportFailure"


def test_classify_transport_counts_failures():
    errors = [RuntimeError("a"), RuntimeError("b")]
    info = classify_error(TransportFailure("2 of 5 issues could not be mirrored", errors))
    assert info.category == "transport"
    assert info.details == {"failures": 2}


def test_classify_generic():
    info = classify_error(ValueError("Some other problem"))
    assert info.category == "generic"


def test_iter_causes_outermost_first():
    exc = _chained(TransportFailure("outer"), ValueError("inner"))
    assert [type(e).__name__ for e in iter_causes(exc)] == ["TransportFailure", "ValueError"]


def test_iter_causes_stops_on_cycles():
    a = RuntimeError("a")
    b = RuntimeError("b")
    a.__cause__ = b
    b.__cause__ = a
    assert list(iter_causes(a)) == [a, b]


def test_redact_tokens():
    key_header = "-----BEGIN " "PRIVATE KEY-----"
    key_footer = "-----END " "PRIVATE KEY-----"
    sample = (
        "Token ghp_ABCDEFGHIJKLMNOPQRSTUVWX plus github_pat_1234567890abcdefghijkl "
        "and ghs_ABCDEFGHIJKLMNOPQRSTUVWX "
        f"and key block\n{key_header}\nABCDEF\n{key_footer}"
    )
    out = redact(sample)
    assert "ghp_" not in out
    assert "ghs_" not in out
    assert "github_pat_" not in out
    # Entire key block should be redacted
    assert "ABCDEF\n" not in out
    assert "<redacted>" in out


def test_classify_redacts_message():
    info = classify_error(RuntimeError("bad credentials ghp_ABCDEFGHIJKLMNOPQRSTUVWX"))
    assert "ghp_" not in info.message
