"""Tests for internal request detection."""

from starlette.requests import Request

from tessera.tenancy.privacy import RequestPrivacy


def make_request(client_ip: str = "10.0.0.5", headers: dict[str, str] | None = None) -> Request:
    raw_headers = [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()]
    return Request(
        {
            "type": "http",
            "method": "GET",
            "path": "/",
            "query_string": b"",
            "headers": raw_headers,
            "client": (client_ip, 5000),
            "server": ("backend", 80),
            "scheme": "http",
        }
    )


class TestRequestPrivacy:
    """Tests for RequestPrivacy."""

    def test_trusted_ip_and_key_is_internal(self) -> None:
        """Both checks passing makes the request internal."""
        privacy = RequestPrivacy.build(["10.0.0.5"], "k")
        assert privacy.is_internal_request(make_request(headers={"X-SSR-Key": "k"}))

    def test_untrusted_ip_is_external(self) -> None:
        """A correct key from an untrusted IP is external."""
        privacy = RequestPrivacy.build(["10.0.0.1"], "k")
        assert not privacy.is_internal_request(make_request(headers={"X-SSR-Key": "k"}))

    def test_wrong_key_is_external(self) -> None:
        """A trusted IP with a wrong or missing key is external."""
        privacy = RequestPrivacy.build(["10.0.0.5"], "k")
        assert not privacy.is_internal_request(make_request(headers={"X-SSR-Key": "nope"}))
        assert not privacy.is_internal_request(make_request())

    def test_no_configured_key_is_external(self) -> None:
        """Without a configured key nothing passes the key check."""
        privacy = RequestPrivacy.build(["10.0.0.5"], None)
        assert not privacy.is_internal_request(make_request(headers={"X-SSR-Key": ""}))

    def test_disabled_checks(self) -> None:
        """Disabled checks always pass."""
        privacy = RequestPrivacy.build([], None, disable_ip_check=True, disable_key_check=True)
        assert privacy.is_internal_request(make_request())

    def test_from_settings(self, settings) -> None:
        """Settings populate the trusted IPs and key."""
        privacy = RequestPrivacy.from_settings(settings)
        assert "127.0.0.1" in privacy.trusted_ips
        assert privacy.ssr_api_key == "ssr-secret"
