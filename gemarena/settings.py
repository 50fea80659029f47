"""Runtime configuration for the arena."""

import json
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from gemarena.errors import ConfigurationError

# Load environment variables from .env file
load_dotenv()

DATA_DIR = Path(__file__).parent / "data"
BUNDLED_OPENING_BOOK = DATA_DIR / "opening_setups.json"
BUNDLED_ARENA_CONFIG = DATA_DIR / "arena_config.json"


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str) -> int | None:
    value = os.getenv(name)
    return int(value) if value else None


@dataclass
class ArenaSettings:
    """Arena runtime settings.

    opening_book may be a filesystem path or an http(s) URL. engine and
    players are "module:attribute" import paths of the rules-engine factory
    and of the player registry factory.
    """

    opening_book: str = str(BUNDLED_OPENING_BOOK)
    arena_config: str = str(BUNDLED_ARENA_CONFIG)
    max_turns: int = 1000
    use_ray: bool = False
    num_workers: int | None = None
    results_dir: str = "arena_results"
    engine: str | None = None
    players: str = "gemarena.agents.player_registry:default_registry"

    @classmethod
    def from_env(cls) -> "ArenaSettings":
        """Create settings from environment variables or .env file."""
        settings = cls(
            opening_book=os.getenv("GEMARENA_OPENING_BOOK", str(BUNDLED_OPENING_BOOK)),
            arena_config=os.getenv("GEMARENA_ARENA_CONFIG", str(BUNDLED_ARENA_CONFIG)),
            max_turns=int(os.getenv("GEMARENA_MAX_TURNS", "1000")),
            use_ray=_env_bool("GEMARENA_USE_RAY", False),
            num_workers=_env_int("GEMARENA_NUM_WORKERS"),
            results_dir=os.getenv("GEMARENA_RESULTS_DIR", "arena_results"),
            engine=os.getenv("GEMARENA_ENGINE") or None,
            players=os.getenv(
                "GEMARENA_PLAYERS", "gemarena.agents.player_registry:default_registry"
            ),
        )
        settings.validate()
        return settings

    def validate(self):
        if self.max_turns <= 0:
            raise ValueError("max_turns must be positive")
        if self.num_workers is not None and self.num_workers <= 0:
            raise ValueError("num_workers must be positive")


def load_arena_config(path: Path | str) -> dict:
    """Read the arena configuration document (seed ranges, historical archive).

    Raises:
        ConfigurationError: If the file cannot be read or is not a JSON object
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            document = json.load(f)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Could not read arena config {path}: {e}") from e

    if not isinstance(document, dict):
        raise ConfigurationError(f"Arena config {path} must be a JSON object")
    return document
