"""Tests for opening book sources and the source factory."""

import asyncio
import json

import pytest
from aiohttp import test_utils, web

from gemarena.errors import ConfigurationError
from gemarena.opening.book_sources import (
    BookSourceFactory,
    FileBookSource,
    HttpBookSource,
    StaticBookSource,
)
from gemarena.opening.setup_book import DEFAULT_BOOK_DOCUMENT, OpeningBookService


async def serve_and_load(handler):
    app = web.Application()
    app.router.add_get("/book.json", handler)
    async with test_utils.TestServer(app) as server:
        source = HttpBookSource(str(server.make_url("/book.json")), timeout=5.0)
        return await source.load()


class TestFileBookSource:
    def test_reads_json_document(self, tmp_path):
        path = tmp_path / "book.json"
        path.write_text(json.dumps(DEFAULT_BOOK_DOCUMENT), encoding="utf-8")

        document = asyncio.run(FileBookSource(path).load())

        assert document == DEFAULT_BOOK_DOCUMENT

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError) as exc_info:
            asyncio.run(FileBookSource(tmp_path / "missing.json").load())

        assert "missing.json" in str(exc_info.value)

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "book.json"
        path.write_text("[1, 2", encoding="utf-8")

        with pytest.raises(ConfigurationError):
            asyncio.run(FileBookSource(path).load())


class TestStaticBookSource:
    def test_returns_independent_copies(self):
        source = StaticBookSource(DEFAULT_BOOK_DOCUMENT)

        document = asyncio.run(source.load())
        document["circles"].clear()

        assert asyncio.run(source.load()) == DEFAULT_BOOK_DOCUMENT


class TestHttpBookSource:
    """Test fetching a book over HTTP against a local aiohttp server"""

    def test_fetches_document(self):
        async def handler(request):
            return web.json_response(DEFAULT_BOOK_DOCUMENT)

        assert asyncio.run(serve_and_load(handler)) == DEFAULT_BOOK_DOCUMENT

    def test_accepts_plain_text_content_type(self):
        async def handler(request):
            return web.Response(text=json.dumps(DEFAULT_BOOK_DOCUMENT), content_type="text/plain")

        assert asyncio.run(serve_and_load(handler)) == DEFAULT_BOOK_DOCUMENT

    def test_http_error_status(self):
        async def handler(request):
            return web.Response(status=404)

        with pytest.raises(ConfigurationError) as exc_info:
            asyncio.run(serve_and_load(handler))

        assert "404" in str(exc_info.value)

    def test_invalid_body(self):
        async def handler(request):
            return web.Response(text="<html>", content_type="text/html")

        with pytest.raises(ConfigurationError):
            asyncio.run(serve_and_load(handler))

    def test_service_falls_back_when_server_fails(self):
        async def handler(request):
            return web.Response(status=500)

        async def load_through_service():
            app = web.Application()
            app.router.add_get("/book.json", handler)
            async with test_utils.TestServer(app) as server:
                service = OpeningBookService(HttpBookSource(str(server.make_url("/book.json"))))
                await service.load_book()
                return service

        service = asyncio.run(load_through_service())

        assert service.using_default_book
        assert service.book.setup_ids("circles") == ["SETUP-001"]


class TestBookSourceFactory:
    def test_http_url(self):
        source = BookSourceFactory.create("https://example.org/book.json")
        assert isinstance(source, HttpBookSource)
        assert source.url == "https://example.org/book.json"

    def test_plain_path(self, tmp_path):
        source = BookSourceFactory.create(tmp_path / "book.json")
        assert isinstance(source, FileBookSource)
        assert source.path == tmp_path / "book.json"
