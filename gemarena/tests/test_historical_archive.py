"""
Tests for the historical archive.

Baselines are metadata plus archived results; lookups must fail loudly with
the list of known ids, and loading results must never execute anything.
"""

import json

import pytest

from gemarena.errors import ConfigurationError, ResultsLoadError, UnknownBaselineError
from gemarena.evaluation.historical_archive import HistoricalArchive, HistoricalBaseline
from gemarena.settings import BUNDLED_ARENA_CONFIG

from .conftest import write_arena_config

ARCHIVED = {"stats": {"gamesPlayed": 4, "winsByAI": {"V1": 3}}}


class TestArchiveLoading:
    def test_bundled_archive(self):
        archive = HistoricalArchive(BUNDLED_ARENA_CONFIG)

        assert archive.list_ids() == ["AI_v0.0_RANDOM"]
        baseline = archive.get("AI_v0.0_RANDOM")
        assert baseline.seed_range == "BASELINE_S01"
        assert archive.load_results("AI_v0.0_RANDOM")["stats"]["gamesPlayed"] == 500

    def test_entries_in_config_order(self, tmp_path):
        archive = HistoricalArchive(write_arena_config(tmp_path, ARCHIVED))

        assert archive.list_ids() == ["V1", "V2"]
        assert len(archive) == 2

    def test_optional_fields_default_to_none(self, tmp_path):
        archive = HistoricalArchive(write_arena_config(tmp_path))
        baseline = archive.get("V2")

        assert baseline.date is None
        assert baseline.description is None
        assert baseline.seed_range is None

    def test_duplicate_id_rejected(self, tmp_path):
        document = {
            "historical_archive": [
                {"id": "V1", "git_tag": "a", "results_file": "a.json"},
                {"id": "V1", "git_tag": "b", "results_file": "b.json"},
            ]
        }
        with pytest.raises(ConfigurationError):
            HistoricalArchive.from_document(document, tmp_path)

    def test_missing_required_field(self):
        with pytest.raises(ConfigurationError) as exc_info:
            HistoricalBaseline.from_config({"id": "V1", "results_file": "a.json"})

        assert "git_tag" in str(exc_info.value)

    def test_non_object_entry_rejected(self, tmp_path):
        document = {"historical_archive": ["AI_v1.0"]}

        with pytest.raises(ConfigurationError) as exc_info:
            HistoricalArchive.from_document(document, tmp_path)

        assert "str" in str(exc_info.value)

    def test_unreadable_config(self, tmp_path):
        with pytest.raises(ConfigurationError):
            HistoricalArchive(tmp_path / "missing.json")


class TestArchiveLookups:
    """Test lookups against a loaded archive"""

    def test_get_metadata(self, tmp_path):
        archive = HistoricalArchive(write_arena_config(tmp_path, ARCHIVED))
        baseline = archive.get("V1")

        assert baseline.version_tag == "AI_v1.0"
        assert baseline.date == "2026-02-01"
        assert baseline.description == "First tuned version"
        assert baseline.results_file == "archive/V1_DEV.json"

    def test_unknown_id_lists_available(self, tmp_path):
        archive = HistoricalArchive(write_arena_config(tmp_path, ARCHIVED))

        with pytest.raises(UnknownBaselineError) as exc_info:
            archive.get("V9")

        message = str(exc_info.value)
        assert "V9" in message
        assert "V1" in message and "V2" in message
        assert exc_info.value.available == ["V1", "V2"]

    def test_is_historical(self, tmp_path):
        archive = HistoricalArchive(write_arena_config(tmp_path, ARCHIVED))

        assert archive.is_historical("V1")
        assert not archive.is_historical("V9")
        assert "V2" in archive

    def test_checkout_command(self, tmp_path):
        archive = HistoricalArchive(write_arena_config(tmp_path, ARCHIVED))

        assert archive.get_checkout_command("V1") == "git checkout AI_v1.0"
        with pytest.raises(UnknownBaselineError):
            archive.get_checkout_command("V9")

    def test_load_results(self, tmp_path):
        archive = HistoricalArchive(write_arena_config(tmp_path, ARCHIVED))

        assert archive.load_results("V1") == ARCHIVED

    def test_load_results_missing_file(self, tmp_path):
        archive = HistoricalArchive(write_arena_config(tmp_path, ARCHIVED))

        with pytest.raises(ResultsLoadError) as exc_info:
            archive.load_results("V2")

        assert exc_info.value.baseline_id == "V2"
        assert "V2" in str(exc_info.value)

    def test_load_results_malformed_file(self, tmp_path):
        archive = HistoricalArchive(write_arena_config(tmp_path, ARCHIVED))
        (tmp_path / "archive" / "V1_DEV.json").write_text("{oops", encoding="utf-8")

        with pytest.raises(ResultsLoadError):
            archive.load_results("V1")

    def test_load_results_unknown_id(self, tmp_path):
        archive = HistoricalArchive(write_arena_config(tmp_path, ARCHIVED))

        with pytest.raises(UnknownBaselineError):
            archive.load_results("V9")

    def test_custom_archive_root(self, tmp_path):
        config_path = write_arena_config(tmp_path / "config")
        results_root = tmp_path / "results"
        (results_root / "archive").mkdir(parents=True)
        with open(results_root / "archive" / "V1_DEV.json", "w", encoding="utf-8") as f:
            json.dump(ARCHIVED, f)

        archive = HistoricalArchive(config_path, archive_root=results_root)

        assert archive.load_results("V1") == ARCHIVED

    def test_registry_is_read_only(self, tmp_path):
        archive = HistoricalArchive(write_arena_config(tmp_path, ARCHIVED))

        with pytest.raises(TypeError):
            archive._baselines["V3"] = archive.get("V1")
