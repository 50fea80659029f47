"""Opening book loading, setup selection and gem placement."""

from .book_sources import (
    BookSource,
    BookSourceFactory,
    FileBookSource,
    HttpBookSource,
    StaticBookSource,
)
from .setup_book import (
    OpeningBook,
    OpeningBookService,
    PlacementOutcome,
    PlacementStatus,
    Setup,
)

__all__ = [
    "BookSource",
    "BookSourceFactory",
    "FileBookSource",
    "HttpBookSource",
    "StaticBookSource",
    "OpeningBook",
    "OpeningBookService",
    "PlacementOutcome",
    "PlacementStatus",
    "Setup",
]
