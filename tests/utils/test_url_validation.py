"""Tests for endpoint URL validation."""

import pytest

from oidc_authcode.utils.url_validation import validate_endpoint_url


@pytest.mark.parametrize(
    "uri",
    [
        "https://idp/authorize",
        "https://login.microsoftonline.com/common/oauth2/authorize",
        "http://localhost:8080/realms/test/protocol/openid-connect/token",
        "https://idp/authorize?p=b2c_1_signin",
        "https://idp.example.com",
        "https://login.example.com:443/oauth2/token",
        "http://localhost:80/token",
        "https://idp.example.com?p=signin",
        "https://IDP.example.com/authorize",
    ],
)
def test_accepts_absolute_http_urls(uri: str) -> None:
    assert validate_endpoint_url(uri) is True


@pytest.mark.parametrize(
    "uri",
    [
        "",
        "not a url",
        "/relative/path",
        "idp/authorize",
        "ftp://idp/token",
        "javascript:alert(1)",
        " https://idp/authorize",
        "https://idp/authorize ",
        "https://idp/a b",
        "https://",
        "https://idp/a/../token",
        "https://idp:99999/token",
    ],
)
def test_rejects_malformed_or_non_round_tripping_urls(uri: str) -> None:
    assert validate_endpoint_url(uri) is False


def test_rejects_non_string() -> None:
    assert validate_endpoint_url(None) is False  # type: ignore[arg-type]
