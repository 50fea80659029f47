"""Named seed ranges and per-game seed derivation."""

from dataclasses import dataclass
from typing import Mapping

from gemarena.errors import ConfigurationError, UnknownSeedRangeError


@dataclass(frozen=True)
class SeedRange:
    name: str
    start: int
    count: int

    @property
    def end(self) -> int:
        """Last seed in the range (inclusive)."""
        return self.start + self.count - 1

    def seeds(self) -> list[int]:
        return [game_seed(self.start, i) for i in range(self.count)]


def game_seed(base_seed: int, game_index: int) -> int:
    """Deterministic seed of the game at game_index within a batch."""
    return base_seed + game_index


class SeedRangeCatalog:
    """Read-only lookup of the seed ranges declared in the arena config."""

    def __init__(self, ranges: Mapping[str, SeedRange]):
        self._ranges = dict(ranges)

    @classmethod
    def from_config(cls, document: Mapping) -> "SeedRangeCatalog":
        """Build the catalog from the 'seed_ranges' section of an arena config.

        Raises:
            ConfigurationError: If a range is missing start/count or has count < 1
        """
        ranges = {}
        for name, raw in document.get("seed_ranges", {}).items():
            try:
                seed_range = SeedRange(name=name, start=int(raw["start"]), count=int(raw["count"]))
            except (KeyError, TypeError, ValueError) as e:
                raise ConfigurationError(f"Malformed seed range {name}: {e}") from e
            if seed_range.count < 1:
                raise ConfigurationError(f"Seed range {name} must contain at least one seed")
            ranges[name] = seed_range
        return cls(ranges)

    def get(self, name: str) -> SeedRange:
        if name not in self._ranges:
            raise UnknownSeedRangeError(name, self.list_ids())
        return self._ranges[name]

    def list_ids(self) -> list[str]:
        return list(self._ranges)

    def __contains__(self, name: str) -> bool:
        return name in self._ranges
