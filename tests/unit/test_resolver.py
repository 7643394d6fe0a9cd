"""Tests for the trust-boundary resolver."""
import pytest

from reqctx.resolver import (
    get_host,
    get_hostname,
    get_href,
    get_ip,
    get_ips,
    get_origin,
    get_protocol,
    get_url,
    set_ip,
)


class TestGetProtocol:
    """Tests for get_protocol()."""

    @pytest.mark.parametrize("forwarded", [None, "https", "http", "https, http"])
    def test_ignores_forwarded_proto_without_proxy_trust(self, make_context, forwarded):
        headers = {"X-Forwarded-Proto": forwarded} if forwarded else {}

        assert get_protocol(make_context(headers)) == "http"
        assert get_protocol(make_context(headers, scheme="https")) == "https"

    def test_first_forwarded_token_wins(self, make_context):
        context = make_context({"X-Forwarded-Proto": "https, http"}, proxy_trusted=True)

        assert get_protocol(context) == "https"

    def test_transport_tls_wins_over_header(self, make_context):
        context = make_context({"X-Forwarded-Proto": "http"}, proxy_trusted=True, scheme="https")

        assert get_protocol(context) == "https"

    def test_defaults_to_http_without_header(self, make_context):
        assert get_protocol(make_context(proxy_trusted=True)) == "http"


class TestGetHost:
    """Tests for get_host()."""

    def test_uses_host_header(self, make_context):
        assert get_host(make_context({"Host": "example.com:8080"})) == "example.com:8080"

    def test_ignores_forwarded_host_without_proxy_trust(self, make_context):
        context = make_context({"Host": "internal:8000", "X-Forwarded-Host": "evil.com"})

        assert get_host(context) == "internal:8000"

    def test_first_forwarded_host_wins(self, make_context):
        context = make_context(
            {"Host": "internal:8000", "X-Forwarded-Host": "a.com, b.com"},
            proxy_trusted=True,
        )

        assert get_host(context) == "a.com"

    def test_empty_forwarded_host_falls_back(self, make_context):
        context = make_context({"Host": "internal", "X-Forwarded-Host": ""}, proxy_trusted=True)

        assert get_host(context) == "internal"

    def test_authority_used_for_http2(self, make_context):
        headers = [(":authority", "h2.example.com"), ("host", "fallback.example.com")]

        assert get_host(make_context(headers, http_version="2")) == "h2.example.com"
        assert get_host(make_context(headers, http_version="1.1")) == "fallback.example.com"

    def test_returns_empty_when_nothing_resolves(self, make_context):
        assert get_host(make_context()) == ""


class TestGetHostname:
    """Tests for get_hostname()."""

    def test_strips_port(self, make_context):
        assert get_hostname(make_context({"Host": "example.com:443"})) == "example.com"

    def test_ipv6_literal(self, make_context):
        assert get_hostname(make_context({"Host": "[::1]:8080"})) == "::1"

    def test_invalid_ipv6_literal_is_empty(self, make_context):
        assert get_hostname(make_context({"Host": "[::1"})) == ""

    def test_empty_without_host(self, make_context):
        assert get_hostname(make_context()) == ""


class TestGetURL:
    """Tests for get_url()."""

    def test_parses_full_url(self, make_context):
        context = make_context({"Host": "example.com"}, path="/items", query="page=2")

        url = get_url(context)

        assert url.scheme == "http"
        assert url.hostname == "example.com"
        assert url.path == "/items"
        assert url.query == "page=2"

    def test_prefers_original_url(self, make_context):
        context = make_context({"Host": "example.com"}, path="/rewritten", original_url="/original?x=1")

        assert get_url(context).path == "/original"

    def test_is_memoized(self, make_context):
        context = make_context({"Host": "example.com"})

        assert get_url(context) is get_url(context)

    def test_unparseable_url_yields_empty_placeholder(self, make_context):
        context = make_context({"Host": "example.com:99999"})

        url = get_url(context)

        assert url.hostname is None
        assert url.path == ""
        assert str(url) == ""

    def test_missing_host_yields_empty_placeholder(self, make_context):
        url = get_url(make_context())

        assert url.hostname is None
        assert url.path == ""


class TestGetHrefAndOrigin:
    """Tests for get_origin() and get_href()."""

    def test_origin(self, make_context):
        context = make_context(
            {"Host": "internal", "X-Forwarded-Host": "app.example.com", "X-Forwarded-Proto": "https"},
            proxy_trusted=True,
        )

        assert get_origin(context) == "https://app.example.com"

    def test_href_prepends_origin(self, make_context):
        context = make_context({"Host": "example.com"}, path="/a", query="b=1")

        assert get_href(context) == "http://example.com/a?b=1"

    def test_absolute_original_url_returned_verbatim(self, make_context):
        context = make_context({"Host": "example.com"}, original_url="HTTPS://other.com/x")

        assert get_href(context) == "HTTPS://other.com/x"


class TestGetIps:
    """Tests for get_ips()."""

    def test_empty_without_proxy_trust(self, make_context):
        context = make_context({"X-Forwarded-For": "1.1.1.1, 2.2.2.2"})

        assert get_ips(context) == []

    def test_empty_without_header(self, make_context):
        assert get_ips(make_context(proxy_trusted=True)) == []

    def test_splits_chain(self, make_context):
        context = make_context({"X-Forwarded-For": "1.1.1.1 ,2.2.2.2,  3.3.3.3"}, proxy_trusted=True)

        assert get_ips(context) == ["1.1.1.1", "2.2.2.2", "3.3.3.3"]

    def test_keeps_last_hops(self, make_context):
        context = make_context(
            {"X-Forwarded-For": "1.1.1.1, 2.2.2.2, 3.3.3.3"},
            proxy_trusted=True,
            max_ips_count=2,
        )

        assert get_ips(context) == ["2.2.2.2", "3.3.3.3"]

    def test_custom_header(self, make_context):
        context = make_context(
            {"X-Forwarded-For": "1.1.1.1", "X-Real-IP": "4.4.4.4"},
            proxy_trusted=True,
            proxy_ip_header="X-Real-IP",
        )

        assert get_ips(context) == ["4.4.4.4"]

    def test_repeated_header_uses_first_occurrence(self, make_context):
        headers = [("x-forwarded-for", "1.1.1.1, 2.2.2.2"), ("x-forwarded-for", "5.5.5.5")]

        assert get_ips(make_context(headers, proxy_trusted=True)) == ["1.1.1.1", "2.2.2.2"]


class TestGetIp:
    """Tests for get_ip() and set_ip()."""

    def test_first_forwarded_ip(self, make_context):
        context = make_context({"X-Forwarded-For": "1.1.1.1, 2.2.2.2"}, proxy_trusted=True)

        assert get_ip(context) == "1.1.1.1"

    def test_falls_back_to_socket_address(self, make_context):
        context = make_context({"X-Forwarded-For": "1.1.1.1"})

        assert get_ip(context) == "10.0.0.1"

    def test_empty_when_socket_unavailable(self, make_context):
        assert get_ip(make_context(client=None)) == ""

    def test_memoized_despite_header_mutation(self, make_context):
        context = make_context({"X-Forwarded-For": "1.1.1.1"}, proxy_trusted=True)

        first = get_ip(context)
        context.scope["headers"] = [(b"x-forwarded-for", b"6.6.6.6")]
        context.request.__dict__.pop("_headers", None)

        assert get_ip(context) == first == "1.1.1.1"

    def test_set_ip_overrides_resolution(self, make_context):
        context = make_context({"X-Forwarded-For": "1.1.1.1"}, proxy_trusted=True)

        set_ip(context, "9.9.9.9")

        assert get_ip(context) == "9.9.9.9"

    def test_set_ip_replaces_memoized_value(self, make_context):
        context = make_context(proxy_trusted=True)
        assert get_ip(context) == "10.0.0.1"

        set_ip(context, "9.9.9.9")

        assert get_ip(context) == "9.9.9.9"
