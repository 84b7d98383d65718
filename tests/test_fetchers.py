"""
Tests for the HTTP fetchers against an in-process upstream server.
"""

import asyncio
import json
from contextlib import asynccontextmanager
from datetime import date

import aiohttp
import pytest
from aiohttp import test_utils, web

from src.config.config_manager import BROWSER_USER_AGENT, ConfigManager
from src.sources import SourceConfig, UniversalContentSource
from src.sources.adapters import CatFactAdapter
from src.sources.factory import ContentSourceManager, SourceFactory
from src.sources.fetchers import DEFAULT_USER_AGENT, HTMLPageFetcher, JSONAPIFetcher

from tests.conftest import CAT_FACT_PAYLOAD, comic_page


class Upstream:
    """Routes standing in for the public content APIs"""

    def __init__(self, first_call_delay: float = 0):
        self.first_call_delay = first_call_delay
        self.calls = 0
        self.user_agents: list[str] = []

    async def fact(self, request):
        self.calls += 1
        self.user_agents.append(request.headers.get('User-Agent'))
        if self.calls == 1 and self.first_call_delay:
            await asyncio.sleep(self.first_call_delay)
        return web.json_response(CAT_FACT_PAYLOAD)

    async def fact_as_html(self, request):
        return web.Response(text=json.dumps(CAT_FACT_PAYLOAD), content_type='text/html')

    async def maintenance_page(self, request):
        return web.Response(text="<html><body>Back soon</body></html>", content_type='text/html')

    async def unavailable(self, request):
        return web.Response(status=503, text="Service Unavailable")

    async def comic(self, request):
        self.user_agents.append(request.headers.get('User-Agent'))
        return web.Response(text=comic_page(date.today()), content_type='text/html')

    def application(self) -> web.Application:
        app = web.Application()
        app.router.add_get('/fact', self.fact)
        app.router.add_get('/fact-as-html', self.fact_as_html)
        app.router.add_get('/maintenance', self.maintenance_page)
        app.router.add_get('/unavailable', self.unavailable)
        app.router.add_get('/garfield', self.comic)
        return app


@asynccontextmanager
async def serve(upstream: Upstream):
    server = test_utils.TestServer(upstream.application())
    await server.start_server()
    try:
        yield server
    finally:
        await server.close()


def cat_fact_source(url: str, timeout: float = 5.0) -> UniversalContentSource:
    config = SourceConfig(name="cat_fact", adapter_class="CatFactAdapter", url=url, timeout=timeout)
    return UniversalContentSource(config, JSONAPIFetcher(timeout=timeout), CatFactAdapter())


class TestJSONAPIFetcher:
    """Test suite for JSONAPIFetcher"""

    @pytest.mark.asyncio
    async def test_fetch_sends_default_user_agent(self):
        upstream = Upstream()
        fetcher = JSONAPIFetcher()
        async with serve(upstream) as server:
            try:
                payload = await fetcher.fetch(str(server.make_url('/fact')))
            finally:
                await fetcher.close()

        assert payload == CAT_FACT_PAYLOAD
        assert upstream.user_agents == [DEFAULT_USER_AGENT]

    @pytest.mark.asyncio
    async def test_json_body_with_html_content_type(self):
        fetcher = JSONAPIFetcher()
        async with serve(Upstream()) as server:
            try:
                payload = await fetcher.fetch(str(server.make_url('/fact-as-html')))
            finally:
                await fetcher.close()

        assert payload == CAT_FACT_PAYLOAD

    @pytest.mark.asyncio
    async def test_server_error_raises(self):
        fetcher = JSONAPIFetcher()
        async with serve(Upstream()) as server:
            try:
                with pytest.raises(aiohttp.ClientResponseError) as exc_info:
                    await fetcher.fetch(str(server.make_url('/unavailable')))
            finally:
                await fetcher.close()

        assert exc_info.value.status == 503

    @pytest.mark.asyncio
    async def test_session_is_reused_between_calls(self):
        fetcher = JSONAPIFetcher()
        async with serve(Upstream()) as server:
            try:
                await fetcher.fetch(str(server.make_url('/fact')))
                session = fetcher.session
                await fetcher.fetch(str(server.make_url('/fact')))
                assert fetcher.session is session
                assert not session.closed
            finally:
                await fetcher.close()

        assert fetcher.session is None


class TestHTMLPageFetcher:
    """Test suite for HTMLPageFetcher"""

    @pytest.mark.asyncio
    async def test_fetch_returns_page_text(self):
        fetcher = HTMLPageFetcher()
        async with serve(Upstream()) as server:
            try:
                page = await fetcher.fetch(str(server.make_url('/maintenance')))
            finally:
                await fetcher.close()

        assert "Back soon" in page

    @pytest.mark.asyncio
    async def test_server_error_raises(self):
        fetcher = HTMLPageFetcher()
        async with serve(Upstream()) as server:
            try:
                with pytest.raises(aiohttp.ClientResponseError):
                    await fetcher.fetch(str(server.make_url('/unavailable')))
            finally:
                await fetcher.close()


class TestFallbackOverHTTP:
    """Upstream failures seen through a real fetcher end in the fallback value"""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ['/unavailable', '/maintenance'])
    async def test_bad_upstream_response(self, path):
        async with serve(Upstream()) as server:
            source = cat_fact_source(str(server.make_url(path)))
            try:
                result = await source.get_content()
            finally:
                await source.fetcher.close()

        assert result.from_fallback is True
        assert result.value == CatFactAdapter().fallback()
        assert result.error

    @pytest.mark.asyncio
    async def test_connection_refused(self):
        source = cat_fact_source(f"http://127.0.0.1:{test_utils.unused_port()}/fact")
        try:
            result = await source.get_content()
        finally:
            await source.fetcher.close()

        assert result.from_fallback is True
        assert result.value == CatFactAdapter().fallback()

    @pytest.mark.asyncio
    async def test_comic_config_sends_browser_user_agent(self):
        upstream = Upstream()
        async with serve(upstream) as server:
            manager = ConfigManager()
            manager.load_defaults()
            config = manager.get_source_config("comic")
            config.adapter_config = {**config.adapter_config, 'sources': [str(server.make_url('/garfield'))]}

            source = SourceFactory().create_source(config)
            try:
                result = await source.get_content()
            finally:
                await source.fetcher.close()

        assert result.from_fallback is False
        assert result.value.image_url == "https://assets.example.com/strip.gif"
        assert upstream.user_agents == [BROWSER_USER_AGENT]


class TestSharedFetcherConcurrency:
    """Requests sharing one source must not tear down each other's transport"""

    @pytest.mark.asyncio
    async def test_overlapping_calls_on_one_source(self):
        upstream = Upstream(first_call_delay=0.5)
        manager = ContentSourceManager()
        async with serve(upstream) as server:
            manager.register(cat_fact_source(str(server.make_url('/fact'))))
            try:
                slow = asyncio.create_task(manager.fetch_source("cat_fact"))
                # Let the first request reach the server before the second starts
                await asyncio.sleep(0.1)
                fast = await manager.fetch_source("cat_fact")
                slow_result = await slow
            finally:
                await manager.close()

        assert upstream.calls == 2
        assert fast.from_fallback is False
        assert slow_result.from_fallback is False
        assert slow_result.value.fact == CAT_FACT_PAYLOAD["fact"]
