"""Sources an opening book document can be loaded from.

The book service only ever calls ``load()``; whether the document comes from
disk, over HTTP or from memory is decided once, when the source is created.
"""

import asyncio
import copy
import json
from abc import ABC, abstractmethod
from pathlib import Path

import aiohttp

from gemarena.errors import ConfigurationError


class BookSource(ABC):
    """Abstract provider of a raw opening book document."""

    @abstractmethod
    async def load(self) -> dict:
        """Fetch and decode the book document.

        Raises:
            ConfigurationError: If the document cannot be read or decoded
        """
        pass


class FileBookSource(BookSource):
    """Read the book from a local JSON file."""

    def __init__(self, path: Path | str):
        self.path = Path(path)

    async def load(self) -> dict:
        try:
            content = await asyncio.to_thread(self.path.read_text, encoding="utf-8")
            return json.loads(content)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ConfigurationError(
                f"Could not read opening book {self.path}: {e}"
            ) from e

    def __repr__(self) -> str:
        return f"FileBookSource({str(self.path)!r})"


class HttpBookSource(BookSource):
    """Fetch the book from a URL."""

    def __init__(self, url: str, timeout: float = 30.0):
        self.url = url
        self.timeout = timeout

    async def load(self) -> dict:
        try:
            async with aiohttp.ClientSession() as session:
                async with session.get(
                    self.url, timeout=aiohttp.ClientTimeout(total=self.timeout)
                ) as resp:
                    if resp.status != 200:
                        raise ConfigurationError(
                            f"HTTP error fetching opening book {self.url}: "
                            f"status {resp.status}"
                        )
                    return await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, json.JSONDecodeError) as e:
            raise ConfigurationError(
                f"Could not fetch opening book {self.url}: {e}"
            ) from e

    def __repr__(self) -> str:
        return f"HttpBookSource({self.url!r})"


class StaticBookSource(BookSource):
    """Serve an already decoded document, e.g. in tests or embedded setups."""

    def __init__(self, document: dict):
        self.document = document

    async def load(self) -> dict:
        return copy.deepcopy(self.document)


class BookSourceFactory:
    """Factory choosing a book source from a location string."""

    @staticmethod
    def create(location: str | Path) -> BookSource:
        """Create a book source for a path or an http(s) URL.

        Args:
            location: Filesystem path or URL of the book document

        Returns:
            HttpBookSource for http(s) URLs, FileBookSource otherwise
        """
        location_str = str(location)
        if location_str.startswith(("http://", "https://")):
            return HttpBookSource(location_str)
        return FileBookSource(location_str)
