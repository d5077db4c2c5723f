"""Target URL resolution from the inbound request path."""

import re
from collections.abc import Sequence
from urllib.parse import urlencode

import httpx

from core.exceptions import InvalidRedirect, MalformedTarget, MissingTarget, UnsupportedProtocol

ALLOWED_SCHEMES = ("http", "https")
USAGE = "URL path required\n\nUsage: /example.com/file.ext"

_SCHEME_PREFIX = re.compile(r"^https?://", re.IGNORECASE)


def resolve_target(path_segment: str, original_query: Sequence[tuple[str, str]] = ()) -> httpx.URL:
    """Resolve a path segment into an absolute http(s) target URL.

    Args:
        path_segment: Inbound path without its leading slash. Either a full
            URL (``https://host/path``) or a bare ``host/path``.
        original_query: Query pairs of the inbound request, appended to the
            target's own query in order.

    Raises:
        MissingTarget: The path segment is empty.
        MalformedTarget: The path segment does not parse as a URL.
        UnsupportedProtocol: The resolved scheme is not http or https.
    """
    if not path_segment:
        raise MissingTarget(USAGE)

    raw = path_segment if _SCHEME_PREFIX.match(path_segment) else f"https://{path_segment}"
    try:
        url = httpx.URL(raw)
    except httpx.InvalidURL as e:
        raise MalformedTarget(f"Invalid URL: {e}") from e
    if not url.host:
        raise MalformedTarget(f"Invalid URL: missing host in {raw!r}")

    if original_query:
        # Append to the raw query; QueryParams groups values by key and reorders
        appended = urlencode(list(original_query)).encode("ascii")
        query = url.query + b"&" + appended if url.query else appended
        url = url.copy_with(query=query)

    validate_scheme(url)
    return url


def resolve_redirect(current: httpx.URL, location: str) -> httpx.URL:
    """Resolve a Location header against the target that returned it."""
    try:
        url = current.join(location)
    except httpx.InvalidURL as e:
        raise InvalidRedirect(f"Invalid redirect location: {location!r}", target=str(current)) from e
    validate_scheme(url)
    return url


def validate_scheme(url: httpx.URL) -> None:
    """Reject anything but plain http(s) before a network call is made."""
    if url.scheme not in ALLOWED_SCHEMES:
        raise UnsupportedProtocol("Invalid protocol")
