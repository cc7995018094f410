from __future__ import annotations

from teslapoll._redact import redact_for_log, redact_headers


def test_redact_for_log_redacts_sensitive_keys() -> None:
    payload = {
        "grant_type": "refresh_token",
        "refresh_token": "NA_secret",
        "client_id": "client-1",
        "Client_Secret": "s3cret",
        "nested": {"access_token": "eyJ...", "vin": "5YJ3E1EA7KF000001"},
        "list": [{"token": "abc"}],
    }

    redacted = redact_for_log(payload)
    assert redacted["grant_type"] == "refresh_token"
    assert redacted["refresh_token"] == "<redacted>"
    assert redacted["client_id"] == "client-1"
    assert redacted["Client_Secret"] == "<redacted>"
    assert redacted["nested"]["access_token"] == "<redacted>"
    assert redacted["nested"]["vin"] == "5YJ3E1EA7KF000001"
    assert redacted["list"][0]["token"] == "<redacted>"


def test_redact_for_log_truncates_long_strings() -> None:
    long_value = "x" * 600
    redacted = redact_for_log({"value": long_value}, max_string=10)
    assert redacted["value"].startswith("x" * 10)
    assert "<truncated>" in redacted["value"]


def test_form_encoded_body_secrets_are_masked() -> None:
    body = "grant_type=refresh_token&client_id=client-1&refresh_token=NA_secret"

    redacted = redact_for_log(body)

    assert "NA_secret" not in redacted
    assert "grant_type=refresh_token" in redacted
    assert "client_id=client-1" in redacted
    assert "refresh_token=<redacted>" in redacted


def test_bearer_values_keep_only_the_scheme() -> None:
    assert redact_for_log(["Bearer eyJhbGciOi.abc.def"]) == ["Bearer <redacted>"]


def test_redact_headers_masks_authorization() -> None:
    headers = {"Authorization": "Bearer eyJ", "accept": "application/json"}
    assert redact_headers(headers) == {"Authorization": "<redacted>", "accept": "application/json"}
