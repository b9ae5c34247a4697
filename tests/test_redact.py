from __future__ import annotations

from pystorefront._redact import redact_for_log


def test_redact_for_log_redacts_sensitive_keys() -> None:
    payload = {
        "username": "alice",
        "password": "pw",
        "token": "tok-123",
        "user": {"id": 1, "access_token": "abc", "apiKey": "k-1"},
        "headers": {"Authorization": "Bearer tok-123", "Accept": "application/json"},
    }

    redacted = redact_for_log(payload)
    assert redacted["username"] == "alice"
    assert redacted["password"] == "<redacted>"
    assert redacted["token"] == "<redacted>"
    assert redacted["user"]["access_token"] == "<redacted>"
    assert redacted["user"]["apiKey"] == "<redacted>"
    assert redacted["user"]["id"] == 1
    assert redacted["headers"]["Authorization"] == "<redacted>"
    assert redacted["headers"]["Accept"] == "application/json"


def test_redact_for_log_walks_lists() -> None:
    redacted = redact_for_log([{"secret": "s"}, "plain", b"\x00\x01"])

    assert redacted == [{"secret": "<redacted>"}, "plain", "<bytes:2b>"]


def test_redact_for_log_truncates_long_strings() -> None:
    long_value = "x" * 600
    redacted = redact_for_log({"value": long_value}, max_string=10)
    assert redacted["value"].startswith("x" * 10)
    assert "<truncated 590 chars>" in redacted["value"]
