# tests/test_url_validator.py

from __future__ import annotations

import pytest

from tasknag.browser.url_validator import MAX_URL_LENGTH, URLValidator


@pytest.fixture()
def validator() -> URLValidator:
    return URLValidator()


def test_bare_word_is_completed_with_https(validator: URLValidator) -> None:
    result = validator.validate("google")

    assert result.is_valid
    assert result.normalized_url == "https://google"
    assert result.protocol == "https"
    assert result.host == "google"
    assert result.error is None


@pytest.mark.parametrize(
    "url, host",
    [
        ("https://example.com/path?q=1", "example.com"),
        ("http://sub.example.org", "sub.example.org"),
        ("example.com/docs", "example.com"),
        ("HTTPS://Example.COM", "example.com"),
        ("http://localhost:8080/admin", "localhost"),
        ("http://127.0.0.1:5000", "127.0.0.1"),
        ("http://192.168.1.10", "192.168.1.10"),
    ],
)
def test_valid_urls(validator: URLValidator, url: str, host: str) -> None:
    result = validator.validate(url)
    assert result.is_valid, result.error
    assert result.host == host


def test_dangerous_pattern_is_rejected_before_protocol_checks(validator: URLValidator) -> None:
    result = validator.validate("javascript:alert(1)")

    assert not result.is_valid
    assert result.protocol == "invalid"
    assert result.error == "URL contains dangerous pattern"


@pytest.mark.parametrize(
    "url",
    [
        "https://example.com/<script>alert(1)</script>",
        "https://example.com/?next=data:text/html,x",
        "VBScript:msgbox",
    ],
)
def test_dangerous_patterns_anywhere_in_url(validator: URLValidator, url: str) -> None:
    assert validator.validate(url).error == "URL contains dangerous pattern"


def test_too_long_url_mentions_length(validator: URLValidator) -> None:
    result = validator.validate("https://" + "a" * 3000)

    assert not result.is_valid
    assert "too long" in (result.error or "")
    assert str(MAX_URL_LENGTH) in (result.error or "")


def test_blocked_and_not_allowed_protocols(validator: URLValidator) -> None:
    assert validator.validate("ftp://example.com").error == "Blocked protocol: ftp"
    assert validator.validate("file://example.com/etc").error == "Blocked protocol: file"
    assert validator.validate("mailto:me@example.com").error == "Protocol not allowed: mailto"


@pytest.mark.parametrize(
    "url, error",
    [
        ("ftp:21", "Blocked protocol: ftp"),
        ("FILE:80", "Blocked protocol: file"),
        ("mailto:123", "Protocol not allowed: mailto"),
    ],
)
def test_scheme_followed_by_digits_is_not_a_port(validator: URLValidator, url: str, error: str) -> None:
    result = validator.validate(url)
    assert not result.is_valid
    assert result.error == error


def test_host_and_port_without_scheme(validator: URLValidator) -> None:
    result = validator.validate("localhost:3000/app")
    assert result.is_valid
    assert result.normalized_url == "https://localhost:3000/app"


def test_normalized_url_lowercases_scheme_and_host_only(validator: URLValidator) -> None:
    result = validator.validate("HTTPS://User@Example.COM:8443/Docs?Q=1")

    assert result.is_valid
    assert result.normalized_url == "https://User@example.com:8443/Docs?Q=1"
    assert validator.validate("google").normalized_url == "https://google"


@pytest.mark.parametrize("url", ["https://", "://example.com", "example.com:99999"])
def test_malformed_urls(validator: URLValidator, url: str) -> None:
    result = validator.validate(url)
    assert not result.is_valid
    assert (result.error or "").startswith("Invalid URL format")


def test_explicit_url_needs_a_dotted_host(validator: URLValidator) -> None:
    result = validator.validate("https://intranet")

    assert not result.is_valid
    assert result.error == "Invalid host format: intranet"


def test_quick_validate(validator: URLValidator) -> None:
    assert validator.quick_validate("example.com")
    assert not validator.quick_validate("javascript:void(0)")


def test_suggestions_for_bare_common_name(validator: URLValidator) -> None:
    assert validator.suggest_corrections("google") == ["https://google", "google.com"]


def test_suggestions_fix_scheme_and_tld_typo(validator: URLValidator) -> None:
    out = validator.suggest_corrections("http://example.con")

    assert "https://example.con" in out
    assert "http://example.com" in out
    assert "http://example.con" not in out


def test_no_suggestions_for_a_clean_url(validator: URLValidator) -> None:
    assert validator.suggest_corrections("https://google.com") == []


def test_suggestions_never_change_validity(validator: URLValidator) -> None:
    validator.suggest_corrections("javascript:alert(1)")
    assert not validator.quick_validate("javascript:alert(1)")


def test_preview(validator: URLValidator) -> None:
    preview = validator.preview("example.com/page")

    assert preview is not None
    assert preview.url == "https://example.com/page"
    assert preview.domain == "example.com"
    assert preview.title == "Open example.com"
    assert validator.preview("javascript:alert(1)") is None


def test_security_flag_separates_unsafe_from_malformed(validator: URLValidator) -> None:
    assert validator.validate("javascript:alert(1)").security
    assert validator.validate("ftp://example.com").security
    assert not validator.validate("https://intranet").security
    assert not validator.validate("https://").security
