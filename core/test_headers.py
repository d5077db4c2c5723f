import httpx
import pytest

from core.config import DEFAULT_CORS_HEADERS, DEFAULT_USER_AGENT, RelaySettings
from core.headers import HeaderRewriter


@pytest.fixture
def rewriter():
    return HeaderRewriter(RelaySettings())


class TestBuildUpstreamHeaders:
    """Outbound header rules."""

    def test_x_cookie_becomes_cookie(self, rewriter):
        headers = rewriter.build_upstream_headers([("X-Cookie", "session=abc")])
        assert headers["cookie"] == "session=abc"
        assert "x-cookie" not in headers

    def test_x_cookie_replaces_existing_cookie(self, rewriter):
        headers = rewriter.build_upstream_headers(
            [("Cookie", "stale=1"), ("x-cookie", "fresh=2")]
        )
        assert headers.get_list("cookie") == ["fresh=2"]
        assert "x-cookie" not in headers

    def test_cookie_untouched_without_x_cookie(self, rewriter):
        headers = rewriter.build_upstream_headers([("Cookie", "a=1")])
        assert headers["cookie"] == "a=1"

    def test_default_user_agent(self, rewriter):
        headers = rewriter.build_upstream_headers([("Accept", "*/*")])
        assert headers["user-agent"] == DEFAULT_USER_AGENT

    def test_existing_user_agent_is_kept(self, rewriter):
        headers = rewriter.build_upstream_headers([("user-agent", "curl/8.0")])
        assert headers.get_list("user-agent") == ["curl/8.0"]

    def test_configured_user_agent(self):
        rewriter = HeaderRewriter(RelaySettings(user_agent="relay-test/1.0"))
        headers = rewriter.build_upstream_headers([])
        assert headers["user-agent"] == "relay-test/1.0"

    def test_host_and_hop_by_hop_headers_dropped(self, rewriter):
        headers = rewriter.build_upstream_headers(
            [
                ("Host", "relay.local:8080"),
                ("Connection", "keep-alive"),
                ("Transfer-Encoding", "chunked"),
                ("Authorization", "Bearer t"),
            ]
        )
        assert "host" not in headers
        assert "connection" not in headers
        assert "transfer-encoding" not in headers
        assert headers["authorization"] == "Bearer t"

    def test_duplicate_headers_preserved_in_order(self, rewriter):
        headers = rewriter.build_upstream_headers([("Accept", "a"), ("X-Tag", "1"), ("x-tag", "2")])
        assert headers.get_list("x-tag") == ["1", "2"]


class TestSanitizeResponseHeaders:
    """Terminal response header rules."""

    def test_unsafe_headers_stripped_case_insensitively(self, rewriter):
        upstream = httpx.Headers(
            [
                ("Content-Type", "text/html"),
                ("Content-Length", "42"),
                ("Content-Security-Policy", "default-src 'self'"),
                ("Referrer-Policy", "no-referrer"),
                ("Referer-Policy", "no-referrer"),
                ("Expect-CT", "max-age=0"),
                ("X-Frame-Options", "DENY"),
                ("HOST", "example.com"),
            ]
        )
        names = [key.lower() for key, _ in rewriter.sanitize_response_headers(upstream)]
        assert "content-type" in names
        for stripped in (
            "content-length",
            "content-security-policy",
            "referrer-policy",
            "referer-policy",
            "expect-ct",
            "x-frame-options",
            "host",
        ):
            assert stripped not in names

    def test_cors_headers_injected_and_override_upstream(self, rewriter):
        upstream = httpx.Headers(
            [("Access-Control-Allow-Origin", "https://only.example"), ("ETag", "x")]
        )
        sanitized = rewriter.sanitize_response_headers(upstream)
        assert ("ETag", "x") in sanitized
        for key, value in DEFAULT_CORS_HEADERS.items():
            assert (key, value) in sanitized
        origins = [v for k, v in sanitized if k.lower() == "access-control-allow-origin"]
        assert origins == ["*"]

    def test_set_cookie_renamed(self, rewriter):
        upstream = httpx.Headers([("Set-Cookie", "id=1; Path=/")])
        sanitized = rewriter.sanitize_response_headers(upstream)
        assert ("X-Set-Cookie", "id=1; Path=/") in sanitized
        assert not [k for k, _ in sanitized if k.lower() == "set-cookie"]

    def test_every_set_cookie_value_kept(self, rewriter):
        upstream = httpx.Headers(
            [("Set-Cookie", "a=1"), ("X-Set-Cookie", "spoofed"), ("set-cookie", "b=2")]
        )
        sanitized = rewriter.sanitize_response_headers(upstream)
        values = [v for k, v in sanitized if k.lower() == "x-set-cookie"]
        assert values == ["a=1", "b=2"]

    def test_hop_by_hop_response_headers_stripped(self, rewriter):
        upstream = httpx.Headers([("Transfer-Encoding", "chunked"), ("Connection", "close")])
        names = [key.lower() for key, _ in rewriter.sanitize_response_headers(upstream)]
        assert "transfer-encoding" not in names
        assert "connection" not in names

    def test_content_encoding_is_forwarded(self, rewriter):
        upstream = httpx.Headers([("Content-Encoding", "gzip")])
        assert ("Content-Encoding", "gzip") in rewriter.sanitize_response_headers(upstream)


def test_preflight_headers(rewriter):
    assert rewriter.cors_headers() == DEFAULT_CORS_HEADERS
