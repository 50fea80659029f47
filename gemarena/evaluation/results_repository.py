"""Repository for archived match reports.

Reports are stored as JSON in the format HistoricalArchive.load_results reads,
so a finished run can later be frozen as a historical baseline.
"""

import json
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from gemarena.arena.arena import MatchReport


class ResultsRepository:
    """Handles persistence of match reports as JSON files."""

    def __init__(self, results_dir: Path | str):
        self.results_dir = Path(results_dir)

    def report_path(self, name: str) -> Path:
        return self.results_dir / f"{name}.json"

    def default_name(self, report: "MatchReport") -> str:
        return f"{report.player_a}_vs_{report.player_b}_{report.base_seed}_{report.games_requested}"

    def save_report(self, report: "MatchReport", name: str | None = None) -> Path:
        """Write a report to disk, replacing an existing file of the same name."""
        self.results_dir.mkdir(parents=True, exist_ok=True)
        path = self.report_path(name or self.default_name(report))

        # Write to a temporary file first so readers never see a partial report
        tmp_path = path.with_suffix(".json.tmp")
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(report.to_dict(), f, indent=2)
            tmp_path.replace(path)
        except Exception:
            tmp_path.unlink(missing_ok=True)
            raise
        return path

    def load_report(self, name: str) -> "MatchReport | None":
        """Load a stored report, or None if it does not exist or is unreadable."""
        from gemarena.arena.arena import MatchReport

        path = self.report_path(name)
        if not path.exists():
            return None

        try:
            with open(path, "r", encoding="utf-8") as f:
                return MatchReport.from_dict(json.load(f))
        except (OSError, json.JSONDecodeError, KeyError, TypeError, ValueError):
            return None

    def list_reports(self) -> list[str]:
        if not self.results_dir.exists():
            return []
        return sorted(path.stem for path in self.results_dir.glob("*.json"))

    def report_exists(self, name: str) -> bool:
        return self.report_path(name).exists()
