from __future__ import annotations

import pytest

from webauth_request.security import sanitize_headers, sanitize_url, validate_endpoint_url


def test_sanitize_headers_redacts_credentials() -> None:
    headers = {"Authorization": "Bearer secret", "Accept": "application/json"}
    assert sanitize_headers(headers) == {"Authorization": "[REDACTED]", "Accept": "application/json"}


def test_sanitize_url_redacts_oauth_secrets_in_query() -> None:
    url = "https://login.example.com/token?client_id=app&client_secret=s%3Dx&code=abc&Refresh_Token=r&scope=openid"
    assert sanitize_url(url) == (
        "https://login.example.com/token?client_id=app&client_secret=[REDACTED]"
        "&code=[REDACTED]&Refresh_Token=[REDACTED]&scope=openid"
    )


def test_sanitize_url_leaves_urls_without_query_alone() -> None:
    assert sanitize_url("https://login.example.com/token") == "https://login.example.com/token"
    assert sanitize_url("https://login.example.com/token?flag") == "https://login.example.com/token?flag"


@pytest.mark.parametrize("url", ["login.example.com/token", "ftp://login.example.com", "https://host/\x00"])
def test_validate_endpoint_url_rejects_bad_urls(url: str) -> None:
    with pytest.raises(ValueError):
        validate_endpoint_url(url)


def test_validate_endpoint_url_error_does_not_echo_secrets() -> None:
    with pytest.raises(ValueError) as exc_info:
        validate_endpoint_url("ftp://login.example.com/token?client_secret=hunter2")
    assert "hunter2" not in str(exc_info.value)


def test_validate_endpoint_url_allows_loopback_http() -> None:
    validate_endpoint_url("http://127.0.0.1:8080/token")
    validate_endpoint_url("http://login.example.com/token", allow_http=True)
    with pytest.raises(ValueError, match="Non-HTTPS"):
        validate_endpoint_url("http://login.example.com/token")
