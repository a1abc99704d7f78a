"""Tests for tenant-aware XSRF cookie naming."""

from tessera.tenancy.csrf import xsrf_cookie_name


class TestXsrfCookieName:
    """Tests for xsrf_cookie_name."""

    def test_tenant_cookie_name(self, make_tenant) -> None:
        """An active tenant gets its own cookie."""
        assert xsrf_cookie_name(make_tenant(1, public_id="tnt_abc")) == "XSRF-TOKEN-tnt_abc"

    def test_default_cookie_name(self) -> None:
        """No tenant means the plain cookie name."""
        assert xsrf_cookie_name(None) == "XSRF-TOKEN"
