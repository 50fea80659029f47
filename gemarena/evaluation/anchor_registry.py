"""
Registry of active anchors: maintained, runnable reference policies.

Unlike a historical baseline, an anchor is live code that the arena plays
against. Anchors may receive bugfixes and API updates but must keep their
strength, which is checked by replaying a fixed validation batch and comparing
the anchor's win rate with the rate recorded in the arena config.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from gemarena.errors import ConfigurationError, UnknownAnchorError
from gemarena.settings import load_arena_config

logger = logging.getLogger(__name__)

SELF_PLAY = "self_play"
VS_OPPONENT = "vs_opponent"
PRIMARY_ANCHOR = "primary_anchor"

DEFAULT_SELF_PLAY_RATE = 0.5
DEFAULT_SELF_PLAY_TOLERANCE = 0.10
DEFAULT_VS_OPPONENT_TOLERANCE = 0.05

_REQUIRED_FIELDS = ("id", "policy_name", "validation_seed_base", "validation_game_count")


@dataclass(frozen=True)
class ValidationParams:
    seed_base: int
    game_count: int
    expected_rate: float
    tolerance: float


@dataclass(frozen=True)
class Anchor:
    id: str
    policy_name: str
    validation_seed_base: int
    validation_game_count: int
    status: str | None = None
    date_established: str | None = None
    description: str | None = None
    competency_level: str | None = None
    validation_mode: str = SELF_PLAY
    expected_self_play_rate: float | None = None
    expected_vs_opponent_rate: float | None = None
    drift_tolerance: float | None = None
    validation_opponent: str | None = None
    promotion_criteria: str | None = None
    note: str | None = None

    @property
    def expected_rate(self) -> float:
        if self.validation_mode == VS_OPPONENT:
            return self.expected_vs_opponent_rate
        if self.expected_self_play_rate is None:
            return DEFAULT_SELF_PLAY_RATE
        return self.expected_self_play_rate

    @property
    def tolerance(self) -> float:
        if self.drift_tolerance is not None:
            return self.drift_tolerance
        if self.validation_mode == VS_OPPONENT:
            return DEFAULT_VS_OPPONENT_TOLERANCE
        return DEFAULT_SELF_PLAY_TOLERANCE

    @classmethod
    def from_config(cls, entry: Mapping) -> "Anchor":
        """Build an anchor from one 'active_anchors' entry.

        Raises:
            ConfigurationError: If the entry is not an object, misses a required
                field, names an unknown validation mode, or is a vs_opponent
                anchor without an opponent and expected rate
        """
        if not isinstance(entry, Mapping):
            raise ConfigurationError(
                f"Anchor entry must be an object, got {type(entry).__name__}"
            )
        missing = [name for name in _REQUIRED_FIELDS if entry.get(name) is None]
        if missing:
            raise ConfigurationError(
                f"Anchor entry {entry.get('id', '?')} is missing: {', '.join(missing)}"
            )

        mode = entry.get("validation_mode") or SELF_PLAY
        if mode not in (SELF_PLAY, VS_OPPONENT):
            raise ConfigurationError(
                f"Anchor {entry['id']} has unknown validation mode {mode!r}"
            )
        if mode == VS_OPPONENT and (
            entry.get("validation_opponent") is None
            or entry.get("expected_vs_opponent_rate") is None
        ):
            raise ConfigurationError(
                f"Anchor {entry['id']} validates vs_opponent but does not name "
                "validation_opponent and expected_vs_opponent_rate"
            )

        try:
            anchor = cls(
                id=entry["id"],
                policy_name=entry["policy_name"],
                validation_seed_base=int(entry["validation_seed_base"]),
                validation_game_count=int(entry["validation_game_count"]),
                status=entry.get("status"),
                date_established=entry.get("date_established"),
                description=entry.get("description"),
                competency_level=entry.get("competency_level"),
                validation_mode=mode,
                expected_self_play_rate=_optional_float(entry.get("expected_self_play_rate")),
                expected_vs_opponent_rate=_optional_float(entry.get("expected_vs_opponent_rate")),
                drift_tolerance=_optional_float(entry.get("drift_tolerance")),
                validation_opponent=entry.get("validation_opponent"),
                promotion_criteria=entry.get("promotion_criteria"),
                note=entry.get("note"),
            )
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Malformed anchor {entry['id']}: {e}") from e
        if anchor.validation_game_count < 1:
            raise ConfigurationError(f"Anchor {anchor.id} must validate on at least one game")
        return anchor


def _optional_float(value) -> float | None:
    return None if value is None else float(value)


class AnchorRegistry:
    """Lookup table of active anchors keyed by id, in config order."""

    def __init__(self, config_path: Path | str):
        self._init_from_document(load_arena_config(config_path))

    @classmethod
    def from_document(cls, document: Mapping) -> "AnchorRegistry":
        """Build a registry from an already decoded config document."""
        registry = cls.__new__(cls)
        registry._init_from_document(document)
        return registry

    def _init_from_document(self, document: Mapping) -> None:
        entries = document.get("active_anchors", [])
        if not isinstance(entries, list):
            raise ConfigurationError("'active_anchors' must be a list")

        anchors = {}
        for entry in entries:
            anchor = Anchor.from_config(entry)
            if anchor.id in anchors:
                raise ConfigurationError(f"Anchor {anchor.id} declared twice")
            anchors[anchor.id] = anchor

        self._anchors = anchors
        logger.debug("Loaded %d active anchors", len(anchors))

    def get(self, anchor_id: str) -> Anchor:
        """Get anchor metadata.

        Raises:
            UnknownAnchorError: If the id is not registered
        """
        anchor = self._anchors.get(anchor_id)
        if anchor is None:
            raise UnknownAnchorError(anchor_id, self.list_ids())
        return anchor

    def list_ids(self) -> list[str]:
        return list(self._anchors)

    def get_primary_anchor(self) -> str:
        """Id of the first anchor with status primary_anchor."""
        for anchor_id, anchor in self._anchors.items():
            if anchor.status == PRIMARY_ANCHOR:
                return anchor_id
        raise ConfigurationError("No primary anchor configured")

    def get_validation_params(self, anchor_id: str) -> ValidationParams:
        anchor = self.get(anchor_id)
        return ValidationParams(
            seed_base=anchor.validation_seed_base,
            game_count=anchor.validation_game_count,
            expected_rate=anchor.expected_rate,
            tolerance=anchor.tolerance,
        )

    def __contains__(self, anchor_id: str) -> bool:
        return anchor_id in self._anchors

    def __len__(self) -> int:
        return len(self._anchors)
