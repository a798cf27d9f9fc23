from __future__ import annotations

from phishlabs_agent.services.sanitizer import (
    client_fingerprint,
    redact_url,
    sanitize_details,
    sanitize_url,
    url_fingerprint,
)


def test_sanitize_url_trims_and_strips_line_breaks() -> None:
    assert sanitize_url("  https://example.com/a\r\nb  ") == "https://example.com/ab"
    assert sanitize_url("https://example.com/\nX-Injected: 1") == "https://example.com/X-Injected: 1"


def test_sanitize_url_keeps_valid_url_unchanged() -> None:
    url = "https://example.com/path?q=1&r=%20#frag"
    assert sanitize_url(url) == url


def test_sanitize_url_blank() -> None:
    assert sanitize_url(None) == ""
    assert sanitize_url(" \r\n ") == ""


def test_sanitize_details_normalizes_line_endings() -> None:
    assert sanitize_details("  line one\r\nline two\rline three\n ") == "line one\nline two\nline three"


def test_sanitize_details_blank_becomes_none() -> None:
    assert sanitize_details(None) is None
    assert sanitize_details("") is None
    assert sanitize_details(" \r\n\t ") is None


def test_sanitization_is_idempotent() -> None:
    urls = ["  https://example.com/a\r\nb  ", "\nhttps://example.com \r", "https://example.com/\r\n x"]
    for raw in urls:
        once = sanitize_url(raw)
        assert sanitize_url(once) == once

    details = ["  a\r\n\r\nb\r ", "\r\nsingle", "x\n\ry"]
    for raw in details:
        once = sanitize_details(raw)
        assert sanitize_details(once) == once


def test_fingerprints_are_short_and_stable() -> None:
    first = url_fingerprint("https://example.com/phish")
    assert first == url_fingerprint("https://example.com/phish")
    assert first != url_fingerprint("https://example.com/other")
    assert len(first) == 8
    assert "example" not in first
    assert len(client_fingerprint(None)) == 8


def test_redact_url_replaces_raw_and_sanitized_forms() -> None:
    raw = " https://phish.example.com/a\r\nb "
    text = "HTTP 400: rejected https://phish.example.com/ab and https://phish.example.com/a\r\nb"

    redacted = redact_url(text, raw)

    assert "phish.example.com" not in redacted
    assert redacted.count(f"[url:{url_fingerprint(raw)}]") == 2


def test_redact_url_without_url_is_noop() -> None:
    assert redact_url("HTTP 500: boom", None) == "HTTP 500: boom"
    assert redact_url(None, "https://example.com") is None
