"""Header rewriting for outbound requests and returned responses."""

from collections.abc import Iterable

import httpx

from core.config import RelaySettings

# Headers a fetch client derives itself and never copies to a new destination
REQUEST_SKIP_HEADERS = frozenset(
    {
        "host",
        "connection",
        "keep-alive",
        "proxy-connection",
        "te",
        "trailer",
        "transfer-encoding",
        "upgrade",
    }
)

# Hop-by-hop headers recomputed by the ASGI server for the streamed body
RESPONSE_HOP_BY_HOP_HEADERS = frozenset({"connection", "keep-alive", "transfer-encoding"})


class HeaderRewriter:
    """Apply the relay's header rules in both directions."""

    def __init__(self, settings: RelaySettings) -> None:
        self._user_agent = settings.user_agent
        self._cors = list(settings.cors_headers.items())
        self._cors_names = {key.lower() for key in settings.cors_headers}
        self._strip = {name.lower() for name in settings.strip_response_headers}
        self._strip |= RESPONSE_HOP_BY_HOP_HEADERS

    def build_upstream_headers(self, headers: Iterable[tuple[str, str]]) -> httpx.Headers:
        """Copy inbound headers, tunnel X-Cookie into Cookie, default the User-Agent."""
        upstream = httpx.Headers(
            [
                (key.encode("latin-1"), value.encode("latin-1"))
                for key, value in headers
                if key.lower() not in REQUEST_SKIP_HEADERS
            ]
        )

        if "x-cookie" in upstream:
            upstream["Cookie"] = upstream["x-cookie"]
            del upstream["x-cookie"]

        if "user-agent" not in upstream:
            upstream["User-Agent"] = self._user_agent

        return upstream

    def sanitize_response_headers(self, headers: httpx.Headers) -> list[tuple[str, str]]:
        """Strip unsafe headers, expose Set-Cookie as X-Set-Cookie, inject CORS.

        Every Set-Cookie value is kept as its own X-Set-Cookie entry.
        """
        has_set_cookie = "set-cookie" in headers
        sanitized: list[tuple[str, str]] = []
        # raw keeps the upstream spelling of header names
        for raw_key, raw_value in headers.raw:
            key = raw_key.decode(headers.encoding)
            value = raw_value.decode(headers.encoding)
            name = key.lower()
            if name in self._strip or name in self._cors_names:
                continue
            if name == "x-set-cookie" and has_set_cookie:
                continue
            if name == "set-cookie":
                sanitized.append(("X-Set-Cookie", value))
                continue
            sanitized.append((key, value))

        sanitized.extend(self._cors)
        return sanitized

    def cors_headers(self) -> dict[str, str]:
        """Headers answered to preflight requests."""
        return dict(self._cors)
