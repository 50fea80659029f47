"""
Opening book: named starting setups per side and deterministic placement.

A setup tells one side where each of its eight gems goes and in which order
they are placed. Selection is a pure function of (book, side, seed), so the
same seed always seeds the same starting position.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Mapping

from gemarena.errors import (
    BookNotLoadedError,
    ConfigurationError,
    EmptyBookError,
    InvalidSideError,
    OrderOverflowError,
    PlacementCollisionError,
    PlacementExhaustedError,
    ValidationError,
)
from gemarena.game.pieces import (
    GEMS_PER_SIDE,
    Coordinate,
    GameState,
    GemType,
    PlacementRequest,
    format_coordinate,
    parse_coordinate,
    singular_side,
)
from gemarena.opening.book_sources import BookSource, FileBookSource
from gemarena.settings import BUNDLED_OPENING_BOOK

logger = logging.getLogger(__name__)

DEFAULT_SETUP_ID = "SETUP-001"
_DEFAULT_ORDER = ["amber", "pearl", "pearl", "amber", "jade", "jade", "ruby", "ruby"]

DEFAULT_BOOK_DOCUMENT = {
    "circles": {
        DEFAULT_SETUP_ID: {
            "ruby": ["-4,8", "-4,9"],
            "pearl": ["-1,8", "-3,8"],
            "amber": ["-2,7", "-2,9"],
            "jade": ["-5,7", "-5,8"],
            "order": _DEFAULT_ORDER,
        }
    },
    "squares": {
        DEFAULT_SETUP_ID: {
            "ruby": ["4,-8", "4,-9"],
            "pearl": ["1,-8", "3,-8"],
            "amber": ["2,-7", "2,-9"],
            "jade": ["5,-7", "5,-8"],
            "order": _DEFAULT_ORDER,
        }
    },
}


@dataclass(frozen=True)
class Setup:
    """Coordinates per gem type plus the order the gems are placed in."""

    positions: Mapping[GemType, tuple[Coordinate, ...]]
    order: tuple[GemType, ...]

    def coordinates(self, gem: GemType) -> tuple[Coordinate, ...]:
        return self.positions.get(gem, ())

    @classmethod
    def from_dict(cls, raw: Mapping) -> "Setup":
        """Parse a setup entry of a book document.

        Raises:
            ValueError: If a gem type or coordinate cannot be parsed
        """
        if not isinstance(raw, Mapping):
            raise ValueError(f"Setup must be a mapping, got {type(raw).__name__}")
        if "order" not in raw:
            raise ValueError("Setup has no 'order'")

        positions = {}
        for gem in GemType:
            if gem.value in raw:
                positions[gem] = tuple(parse_coordinate(c) for c in raw[gem.value])

        order = tuple(GemType(token) for token in raw["order"])
        return cls(positions=positions, order=order)

    def to_dict(self) -> dict:
        data = {
            gem.value: [format_coordinate(c) for c in coords]
            for gem, coords in self.positions.items()
        }
        data["order"] = [gem.value for gem in self.order]
        return data


@dataclass(frozen=True)
class OpeningBook:
    """Side identifier -> setup identifier -> Setup, in document order."""

    sides: Mapping[str, Mapping[str, Setup]]

    @classmethod
    def from_dict(cls, document: Mapping) -> "OpeningBook":
        """Build a book from a decoded document.

        Raises:
            ConfigurationError: If the document does not have the book structure
        """
        if not isinstance(document, Mapping):
            raise ConfigurationError("Opening book must be a mapping of sides")

        sides = {}
        for side, setups in document.items():
            if not isinstance(setups, Mapping):
                raise ConfigurationError(f"Setups for {side} must be a mapping")
            try:
                sides[side] = {
                    setup_id: Setup.from_dict(raw) for setup_id, raw in setups.items()
                }
            except ValueError as e:
                raise ConfigurationError(f"Malformed setup for {side}: {e}") from e
        return cls(sides=sides)

    @classmethod
    def default(cls) -> "OpeningBook":
        """The built-in book: one canonical setup per side."""
        return cls.from_dict(DEFAULT_BOOK_DOCUMENT)

    def setup_ids(self, side: str) -> list[str]:
        if side not in self.sides:
            raise InvalidSideError(side, list(self.sides))
        return list(self.sides[side])

    def to_dict(self) -> dict:
        return {
            side: {setup_id: setup.to_dict() for setup_id, setup in setups.items()}
            for side, setups in self.sides.items()
        }


class PlacementStatus(str, Enum):
    PLACED = "placed"
    RECOVERED = "recovered"
    COMPLETE = "complete"
    COLLISION = "collision"
    EXHAUSTED = "exhausted"


@dataclass(frozen=True)
class PlacementOutcome:
    """Result of asking for the next gem placement.

    request is set for PLACED and RECOVERED; error is set for COLLISION and
    EXHAUSTED. COMPLETE carries neither.
    """

    status: PlacementStatus
    request: PlacementRequest | None = None
    error: ValidationError | None = None

    @property
    def has_placement(self) -> bool:
        return self.request is not None


# === PURE BOOK OPERATIONS ===


def select_setup_id(book: OpeningBook, side: str, seed: int) -> str:
    setup_ids = book.setup_ids(side)
    if not setup_ids:
        raise EmptyBookError(side)
    return setup_ids[abs(seed) % len(setup_ids)]


def select_setup(book: OpeningBook, side: str, seed: int) -> Setup:
    """Deterministically pick a setup for a side from a seed.

    Raises:
        InvalidSideError: If the side is not in the book
        EmptyBookError: If the side has no setups
    """
    return book.sides[side][select_setup_id(book, side, seed)]


def placement_sequence(setup: Setup) -> list[PlacementRequest]:
    """Expand a setup into its full ordered list of placements.

    Raises:
        OrderOverflowError: If the order uses a gem type more often than it
            has coordinates
    """
    placements = []
    gem_counts = {gem: 0 for gem in GemType}

    for gem in setup.order:
        positions = setup.coordinates(gem)
        count = gem_counts[gem]
        if count >= len(positions):
            raise OrderOverflowError(gem.value, len(positions))

        placements.append(PlacementRequest(gem=gem, coordinate=positions[count]))
        gem_counts[gem] += 1

    return placements


def next_placement(setup: Setup, game_state: GameState, side: str) -> PlacementOutcome:
    """Pick the next gem placement for a side given what is already on the board."""
    gem_counts = game_state.gem_counts(singular_side(side))
    total_placed = sum(gem_counts.values())

    if total_placed >= GEMS_PER_SIDE:
        return PlacementOutcome(PlacementStatus.COMPLETE)

    if total_placed >= len(setup.order):
        error = PlacementExhaustedError(
            f"Setup order has no entry for placement {total_placed + 1}"
        )
        logger.error("%s (side %s)", error, side)
        return PlacementOutcome(PlacementStatus.EXHAUSTED, error=error)

    gem = setup.order[total_placed]
    positions = setup.coordinates(gem)
    gem_index = gem_counts[gem]

    if gem_index >= len(positions):
        error = PlacementExhaustedError(
            f"Invalid position index {gem_index} for {gem.value} "
            f"({len(positions)} defined)"
        )
        logger.error("%s (side %s)", error, side)
        return PlacementOutcome(PlacementStatus.EXHAUSTED, error=error)

    primary = positions[gem_index]
    if not game_state.is_occupied(primary):
        return PlacementOutcome(
            PlacementStatus.PLACED, request=PlacementRequest(gem, primary)
        )

    logger.warning(
        "%s position %s for %s already occupied", gem.value, primary, side
    )

    # Only the next coordinate of the same gem type is tried
    if gem_index + 1 < len(positions):
        fallback = positions[gem_index + 1]
        if not game_state.is_occupied(fallback):
            logger.info("Recovering %s placement at %s", gem.value, fallback)
            return PlacementOutcome(
                PlacementStatus.RECOVERED, request=PlacementRequest(gem, fallback)
            )

    error = PlacementCollisionError(
        f"No free position for {gem.value} of {side}: {primary} is occupied "
        "and no fallback is available"
    )
    return PlacementOutcome(PlacementStatus.COLLISION, error=error)


# === SERVICE ===


class OpeningBookService:
    """Loads the opening book once and answers setup queries against it.

    Main Interface:
    - load_book(): Acquire the book (falls back to the built-in default)
    - select_setup(): Seed -> setup for a side
    - get_next_placement(): Incremental seeding against a live board
    - get_placement_sequence(): Whole setup as an ordered placement list
    """

    def __init__(self, source: BookSource | None = None):
        self.source = source if source is not None else FileBookSource(BUNDLED_OPENING_BOOK)
        self.load_error: ConfigurationError | None = None
        self._book: OpeningBook | None = None
        self._lock = asyncio.Lock()

    async def load_book(self) -> OpeningBook:
        """Load and cache the book. Never raises; substitutes the default book."""
        if self._book is not None:
            return self._book

        async with self._lock:
            if self._book is not None:
                return self._book

            try:
                document = await self.source.load()
                self._book = OpeningBook.from_dict(document)
                logger.info("Loaded opening book from %r", self.source)
            except Exception as e:
                if isinstance(e, ConfigurationError):
                    self.load_error = e
                else:
                    self.load_error = ConfigurationError(str(e))
                    self.load_error.__cause__ = e
                logger.error(
                    "Failed to load opening book from %r, using default book: %s",
                    self.source,
                    e,
                )
                self._book = OpeningBook.default()

        return self._book

    @property
    def is_loaded(self) -> bool:
        return self._book is not None

    @property
    def using_default_book(self) -> bool:
        return self.load_error is not None

    @property
    def book(self) -> OpeningBook:
        if self._book is None:
            raise BookNotLoadedError()
        return self._book

    def select_setup(self, side: str, seed: int) -> Setup:
        return select_setup(self.book, side, seed)

    def select_setup_id(self, side: str, seed: int) -> str:
        return select_setup_id(self.book, side, seed)

    def get_next_placement(
        self, setup: Setup, game_state: GameState, side: str
    ) -> PlacementOutcome:
        return next_placement(setup, game_state, side)

    def get_placement_sequence(self, setup: Setup) -> list[PlacementRequest]:
        return placement_sequence(setup)
