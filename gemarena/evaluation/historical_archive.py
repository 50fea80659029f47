"""
Read-only registry of frozen historical baselines.

A historical baseline is a version-control tag plus a file of archived match
results. Baselines are data only: nothing here runs old code. The registry is
filled once from the arena config and never changes afterwards.

Use cases:
- Citing historical results in reports
- Comparing a live run against a past AI version
- Documenting the lineage of AI versions
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

from gemarena.errors import ConfigurationError, ResultsLoadError, UnknownBaselineError
from gemarena.settings import load_arena_config

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = ("id", "git_tag", "results_file")


@dataclass(frozen=True)
class HistoricalBaseline:
    id: str
    version_tag: str
    date: str | None
    description: str | None
    seed_range: str | None
    results_file: str
    note: str | None = None

    @classmethod
    def from_config(cls, entry: Mapping) -> "HistoricalBaseline":
        if not isinstance(entry, Mapping):
            raise ConfigurationError(
                f"Historical baseline entry must be an object, got {type(entry).__name__}"
            )
        missing = [name for name in _REQUIRED_FIELDS if not entry.get(name)]
        if missing:
            raise ConfigurationError(
                f"Historical baseline entry {entry.get('id', '?')} is missing: "
                f"{', '.join(missing)}"
            )
        return cls(
            id=entry["id"],
            version_tag=entry["git_tag"],
            date=entry.get("date"),
            description=entry.get("description"),
            seed_range=entry.get("seed_range"),
            results_file=entry["results_file"],
            note=entry.get("note"),
        )


class HistoricalArchive:
    """Lookup table of historical baselines keyed by id."""

    def __init__(self, config_path: Path | str, archive_root: Path | str | None = None):
        """Load the archive once from an arena config file.

        Args:
            config_path: Arena config document with a 'historical_archive' list
            archive_root: Directory results_file paths are relative to.
                Defaults to the directory holding the config.
        """
        config_path = Path(config_path)
        document = load_arena_config(config_path)
        root = Path(archive_root) if archive_root is not None else config_path.parent
        self._init_from_document(document, root)

    @classmethod
    def from_document(
        cls, document: Mapping, archive_root: Path | str
    ) -> "HistoricalArchive":
        """Build an archive from an already decoded config document."""
        archive = cls.__new__(cls)
        archive._init_from_document(document, Path(archive_root))
        return archive

    def _init_from_document(self, document: Mapping, archive_root: Path) -> None:
        self.archive_root = archive_root
        entries = document.get("historical_archive", [])
        if not isinstance(entries, list):
            raise ConfigurationError("'historical_archive' must be a list")

        baselines = {}
        for entry in entries:
            baseline = HistoricalBaseline.from_config(entry)
            if baseline.id in baselines:
                raise ConfigurationError(
                    f"Historical baseline {baseline.id} declared twice"
                )
            baselines[baseline.id] = baseline

        self._baselines = MappingProxyType(baselines)
        logger.debug("Loaded %d historical baselines", len(baselines))

    def get(self, baseline_id: str) -> HistoricalBaseline:
        """Get historical baseline metadata.

        Raises:
            UnknownBaselineError: If the id is not in the archive; the message
                lists every loaded id
        """
        baseline = self._baselines.get(baseline_id)
        if baseline is None:
            raise UnknownBaselineError(baseline_id, self.list_ids())
        return baseline

    def list_ids(self) -> list[str]:
        return list(self._baselines)

    def load_results(self, baseline_id: str) -> Any:
        """Read and parse the archived results payload of a baseline.

        Raises:
            UnknownBaselineError: If the id is not in the archive
            ResultsLoadError: If the results file cannot be read or parsed
        """
        baseline = self.get(baseline_id)
        results_path = self.archive_root / baseline.results_file
        try:
            with open(results_path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ResultsLoadError(baseline_id, e) from e

    def get_checkout_command(self, baseline_id: str) -> str:
        """Git command that reproduces the source state of a baseline. Never executed here."""
        return f"git checkout {self.get(baseline_id).version_tag}"

    def is_historical(self, baseline_id: str) -> bool:
        return baseline_id in self._baselines

    def __contains__(self, baseline_id: str) -> bool:
        return self.is_historical(baseline_id)

    def __len__(self) -> int:
        return len(self._baselines)
