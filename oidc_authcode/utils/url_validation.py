"""Endpoint URL validation."""

from collections.abc import Callable
from urllib.parse import urlsplit

from pydantic import AnyHttpUrl, TypeAdapter, ValidationError

UrlValidator = Callable[[str], bool]

_URL_ADAPTER: TypeAdapter[AnyHttpUrl] = TypeAdapter(AnyHttpUrl)


def validate_endpoint_url(uri: str) -> bool:
    """Check that ``uri`` is a well-formed absolute http(s) URL.

    pydantic decides whether the URL parses. Each component of the parsed
    form must then match the same component of the input, so anything pydantic
    would have to rewrite (percent-encoding, whitespace, dot segments) is
    rejected. Spelling differences pydantic merely normalizes are accepted:
    host case, an explicit default port, and an empty path.
    """
    if not isinstance(uri, str) or not uri or uri != uri.strip():
        return False

    try:
        parsed = _URL_ADAPTER.validate_python(uri)
        parts = urlsplit(uri)
        port = parts.port
    except (ValidationError, ValueError):
        return False

    hosts = {(parsed.host or "").strip("[]"), parsed.unicode_host()}
    if parts.scheme != parsed.scheme or parts.hostname not in hosts:
        return False
    if port is not None and port != parsed.port:
        return False
    if (parts.path or "/") != parsed.path:
        return False
    if (parts.query or None) != parsed.query:
        return False
    return (parts.fragment or None) == parsed.fragment
