from __future__ import annotations

from pyfuelprices._redact import redact_for_log, redact_url


def test_redact_for_log_redacts_sensitive_keys() -> None:
    payload = {
        "city": "ankara",
        "authorization": "apikey ABC",
        "X-RapidAPI-Key": "rapid",
        "nested": {"token": "s3cret", "items": [{"apikey": "k"}]},
    }

    redacted = redact_for_log(payload)
    assert redacted["city"] == "ankara"
    assert redacted["authorization"] == "<redacted>"
    assert redacted["X-RapidAPI-Key"] == "<redacted>"
    assert redacted["nested"]["token"] == "<redacted>"
    assert redacted["nested"]["items"][0]["apikey"] == "<redacted>"


def test_redact_for_log_truncates_long_strings() -> None:
    long_value = "x" * 600
    redacted = redact_for_log({"value": long_value}, max_string=10)
    assert redacted["value"].startswith("x" * 10)
    assert "<truncated>" in redacted["value"]


def test_redact_url_masks_token_query() -> None:
    assert redact_url("https://svc.example/api/update?token=s3cret&city=ankara") == (
        "https://svc.example/api/update?token=<redacted>&city=ankara"
    )
    assert redact_url("https://svc.example/api/prices") == "https://svc.example/api/prices"
