"""
Tests for UrlValidator.

Tests cover:
- http:// refusal and the explicit override
- https:// reachability probe (HEAD, then GET fallback)
- Failure reasons surfaced to the client
- Non-URL items passing untouched
"""

import httpx
import pytest

from jukebox.core import ValidationError
from jukebox.security.urls import INSECURE_URL_MESSAGE, UrlValidator


class TestInsecureUrls:
    """Tests for plain http:// handling."""

    async def test_http_refused_by_default(self) -> None:
        validator = UrlValidator()
        with pytest.raises(ValidationError) as exc_info:
            await validator.validate("http://example.com/a.mp3")
        assert str(exc_info.value) == INSECURE_URL_MESSAGE

    async def test_http_scheme_is_case_insensitive(self) -> None:
        validator = UrlValidator()
        with pytest.raises(ValidationError):
            await validator.validate("HTTP://example.com/a.mp3")

    async def test_http_allowed_with_override_and_not_probed(self) -> None:
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(500)

        validator = UrlValidator(allow_insecure=True, transport=httpx.MockTransport(handler))
        await validator.validate("http://example.com/a.mp3")
        assert requests == []


class TestHttpsProbe:
    """Tests for the https:// reachability probe."""

    async def test_head_success(self) -> None:
        methods: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            methods.append(request.method)
            return httpx.Response(200)

        validator = UrlValidator(transport=httpx.MockTransport(handler))
        await validator.validate("https://example.com/a.mp3")
        assert methods == ["HEAD"]

    async def test_get_fallback_when_head_not_allowed(self) -> None:
        """Servers that refuse HEAD are retried with GET."""
        methods: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            methods.append(request.method)
            if request.method == "HEAD":
                return httpx.Response(405)
            return httpx.Response(200, content=b"audio")

        validator = UrlValidator(transport=httpx.MockTransport(handler))
        await validator.validate("https://example.com/a.mp3")
        assert methods == ["HEAD", "GET"]

    async def test_get_fallback_when_head_errors(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "HEAD":
                raise httpx.ConnectError("head refused", request=request)
            return httpx.Response(200)

        validator = UrlValidator(transport=httpx.MockTransport(handler))
        await validator.validate("https://example.com/a.mp3")

    async def test_non_success_status_rejected(self) -> None:
        validator = UrlValidator(transport=httpx.MockTransport(lambda r: httpx.Response(404)))
        with pytest.raises(ValidationError) as exc_info:
            await validator.validate("https://example.com/missing.mp3")
        assert str(exc_info.value) == "url validation failed: non-success status 404"

    async def test_network_error_rejected(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        validator = UrlValidator(transport=httpx.MockTransport(handler))
        with pytest.raises(ValidationError) as exc_info:
            await validator.validate("https://unreachable.invalid/a.mp3")
        assert str(exc_info.value).startswith("url validation failed: ")
        assert "connection refused" in str(exc_info.value)

    async def test_redirects_are_followed(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/old.mp3":
                return httpx.Response(302, headers={"Location": "https://example.com/new.mp3"})
            return httpx.Response(200)

        validator = UrlValidator(transport=httpx.MockTransport(handler))
        assert await validator.probe("https://example.com/old.mp3") is None

    @pytest.mark.parametrize("url", ["https://host:notaport/x", "https://"])
    async def test_malformed_url_rejected(self, url: str) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        validator = UrlValidator(transport=httpx.MockTransport(handler))
        with pytest.raises(ValidationError) as exc_info:
            await validator.validate(url)
        assert str(exc_info.value).startswith("url validation failed: ")

    async def test_surrounding_whitespace_does_not_hide_scheme(self) -> None:
        validator = UrlValidator()
        with pytest.raises(ValidationError) as exc_info:
            await validator.validate(" http://example.com/a.mp3")
        assert str(exc_info.value) == INSECURE_URL_MESSAGE



class TestOtherItems:
    """Items that are not http(s) URLs pass without checks."""

    @pytest.mark.parametrize(
        "item",
        ["/music/a.mp3", "file:///music/a.mp3", "song:12345", "relative/path.flac"],
    )
    async def test_passes_through(self, item: str) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        validator = UrlValidator(transport=httpx.MockTransport(handler))
        await validator.validate(item)
