"""Tests for HttpFetcher."""

import httpx
import pytest

from adoc.core import HttpFetcher, Response, RetryPolicy
from adoc.errors import ConnectionRefused, FetchTimeout, HttpStatusError, MalformedPage

URL = "https://developer.apple.com/documentation/swiftui"


@pytest.fixture
async def fetcher():
    fetcher = HttpFetcher(timeout=5.0)
    yield fetcher
    await fetcher.close()


class TestHttpFetcher:
    async def test_fetch_html(self, fetcher, httpx_mock):
        """Fetch a page and verify response."""
        httpx_mock.add_response(url=URL, html="<h1>SwiftUI</h1>")

        response = await fetcher.fetch(URL)

        assert isinstance(response, Response)
        assert response.status == 200
        assert response.url == URL
        assert "SwiftUI" in response.text
        assert "text/html" in response.headers.get("content-type", "")

    async def test_sends_user_agent(self, httpx_mock):
        """Requests carry the configured User-Agent."""
        httpx_mock.add_response(url=URL, html="<h1>SwiftUI</h1>")

        async with HttpFetcher(user_agent="adoc-test/1.0") as fetcher:
            await fetcher.fetch(URL)

        assert httpx_mock.get_request().headers["User-Agent"] == "adoc-test/1.0"

    async def test_not_found(self, fetcher, httpx_mock):
        """404 should raise a terminal HttpStatusError."""
        httpx_mock.add_response(url=URL, status_code=404)

        with pytest.raises(HttpStatusError) as exc_info:
            await fetcher.fetch(URL)

        assert exc_info.value.status_code == 404
        assert exc_info.value.transient is False

    async def test_server_error(self, fetcher, httpx_mock):
        """5xx should raise a transient HttpStatusError."""
        httpx_mock.add_response(url=URL, status_code=503)

        with pytest.raises(HttpStatusError) as exc_info:
            await fetcher.fetch(URL)

        assert exc_info.value.status_code == 503
        assert exc_info.value.transient is True

    async def test_timeout(self, fetcher, httpx_mock):
        """Timeouts map to FetchTimeout."""
        httpx_mock.add_exception(httpx.ReadTimeout("timed out"), url=URL)

        with pytest.raises(FetchTimeout):
            await fetcher.fetch(URL)

    async def test_connection_refused(self, fetcher, httpx_mock):
        """Connect errors map to ConnectionRefused."""
        httpx_mock.add_exception(httpx.ConnectError("connection refused"), url=URL)

        with pytest.raises(ConnectionRefused):
            await fetcher.fetch(URL)

    async def test_non_html_is_malformed(self, fetcher, httpx_mock):
        """Non-HTML content types are malformed pages."""
        httpx_mock.add_response(url=URL, json={"kind": "symbol"})

        with pytest.raises(MalformedPage):
            await fetcher.fetch(URL)

    async def test_undecodable_body_is_malformed(self, fetcher, httpx_mock):
        """Bytes invalid for the declared charset are a malformed page."""
        httpx_mock.add_response(
            url=URL,
            content=b"<h1>\xff\xfe\xfa</h1>",
            headers={"content-type": "text/html; charset=utf-8"},
        )

        with pytest.raises(MalformedPage):
            await fetcher.fetch(URL)

    async def test_redirect_loop_is_malformed(self, httpx_mock):
        """A redirect loop is a terminal failure, not an escaping httpx error."""
        other = URL + "/other"
        httpx_mock.add_response(url=URL, status_code=302, headers={"Location": other})
        httpx_mock.add_response(url=other, status_code=302, headers={"Location": URL})

        async with HttpFetcher(max_redirects=1) as fetcher:
            with pytest.raises(MalformedPage) as exc_info:
                await fetcher.fetch(URL)

        assert exc_info.value.transient is False

    async def test_corrupt_compressed_body_is_malformed(self, fetcher, httpx_mock):
        """A body that fails content decoding is reported as malformed."""
        httpx_mock.add_response(
            url=URL,
            content=b"not gzip",
            headers={"content-type": "text/html", "content-encoding": "gzip"},
        )

        with pytest.raises(MalformedPage):
            await fetcher.fetch(URL)

    async def test_uses_declared_charset(self, fetcher, httpx_mock):
        """Body is decoded with the declared charset."""
        httpx_mock.add_response(
            url=URL,
            content="<p>café</p>".encode("latin-1"),
            headers={"content-type": "text/html; charset=iso-8859-1"},
        )

        response = await fetcher.fetch(URL)

        assert "café" in response.text

    async def test_retry_policy_recovers_from_server_error(self, fetcher, httpx_mock):
        """Retry policy recovers from a 500 over HTTP."""
        httpx_mock.add_response(url=URL, status_code=502)
        httpx_mock.add_response(url=URL, html="<h1>SwiftUI</h1>")

        async def no_sleep(delay):
            pass

        policy = RetryPolicy(fetcher, max_attempts=3, sleep=no_sleep)
        response = await policy.fetch_with_retry(URL)

        assert response.status == 200
        assert len(httpx_mock.get_requests()) == 2


class TestResponse:
    def test_text_property(self):
        """Verify text property decodes content."""
        response = Response(
            url=URL,
            status=200,
            content=b"Hello, World!",
            headers={},
        )
        assert response.text == "Hello, World!"

    def test_text_handles_invalid_utf8(self):
        """Verify text property handles invalid UTF-8."""
        response = Response(
            url=URL,
            status=200,
            content=b"\xff\xfe",
            headers={},
        )
        # Should not raise, uses replacement character
        assert isinstance(response.text, str)
