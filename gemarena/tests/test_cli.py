"""Tests for the gemarena command line."""

import json

import pytest

from gemarena.cli import canonical_summary, load_object, main

from .conftest import PileEngine, make_arena

ENGINE = "gemarena.tests.conftest:PileEngine"
PLAYERS = "gemarena.tests.conftest:fake_registry"


@pytest.fixture
def cli_env(monkeypatch, tmp_path):
    for name in ("GEMARENA_ENGINE", "GEMARENA_PLAYERS", "GEMARENA_USE_RAY", "GEMARENA_MAX_TURNS",
                 "GEMARENA_NUM_WORKERS", "GEMARENA_OPENING_BOOK", "GEMARENA_ARENA_CONFIG"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("GEMARENA_RESULTS_DIR", str(tmp_path / "results"))
    return tmp_path


def run_cli(capsys, *args):
    exit_code = main(list(args))
    captured = capsys.readouterr()
    return exit_code, captured.out, captured.err


class TestLoadObject:
    def test_imports_attribute(self):
        assert load_object(ENGINE) is PileEngine

    def test_rejects_path_without_attribute(self):
        with pytest.raises(ValueError):
            load_object("gemarena.tests.conftest")


class TestListings:
    def test_list_baselines(self, cli_env, capsys):
        exit_code, out, _ = run_cli(capsys, "--list-baselines")

        assert exit_code == 0
        assert "AI_v0.0_RANDOM" in out
        assert "git checkout AI_v0.0_RANDOM" in out

    def test_list_ranges(self, cli_env, capsys):
        exit_code, out, _ = run_cli(capsys, "--list-ranges")

        assert exit_code == 0
        assert "BASELINE_S01: seeds 12345-12844 (500 games)" in out

    def test_list_anchors(self, cli_env, capsys):
        exit_code, out, _ = run_cli(capsys, "--list-anchors")

        assert exit_code == 0
        assert "ANCHOR_RANDOM (primary_anchor)" in out
        assert "policy RANDOM, self_play, expected 0.500 +/- 0.100" in out

    def test_list_players(self, cli_env, capsys):
        exit_code, out, _ = run_cli(capsys, "--players", PLAYERS, "--list-players")

        assert exit_code == 0
        assert out.split() == ["ONES", "TWOS", "CRASHER", "ILLEGAL", "PASSER", "RANDOM"]


class TestRun:
    """Test running a match from the command line"""

    def test_canonical_json_on_stdout(self, cli_env, capsys):
        exit_code, out, _ = run_cli(
            capsys,
            "--engine", ENGINE,
            "--players", PLAYERS,
            "--player-a", "ONES",
            "--player-b", "TWOS",
            "--seed", "100",
            "--games", "4",
        )

        assert exit_code == 0
        summary = json.loads(out)
        assert summary["match_type"] == "HEAD_TO_HEAD"
        assert summary["player_a"] == "ONES"
        assert summary["player_b"] == "TWOS"
        assert summary["seed"] == {"base": 100, "range": [100, 103]}
        assert summary["games"] == {
            "requested": 4,
            "completed": 4,
            "crashes": 0,
            "illegal_moves": 0,
            "draws": 0,
        }
        assert summary["results"]["wins"] == {"playerA": 1, "playerB": 3}
        assert summary["results"]["win_rate"] == {"playerA": 0.25, "playerB": 0.75}
        assert summary["results"]["average_turns"] == 7.75
        assert summary["determinism_check"] == {"rerun_match": True, "byte_identical": True}

    def test_self_play_by_default(self, cli_env, capsys):
        exit_code, out, _ = run_cli(
            capsys, "--engine", ENGINE, "--seed", "1", "--games", "3", "--no-determinism-check"
        )

        summary = json.loads(out)
        assert exit_code == 0
        assert summary["match_type"] == "SELF_PLAY"
        assert summary["player_a"] == summary["player_b"] == "RANDOM"
        assert summary["determinism_check"] is None

    def test_named_seed_range(self, cli_env, capsys):
        exit_code, out, _ = run_cli(
            capsys, "--engine", ENGINE, "--range", "DEV", "--no-determinism-check"
        )

        summary = json.loads(out)
        assert summary["seed"] == {"base": 1000, "range": [1000, 1019]}
        assert summary["games"]["completed"] == 20

    def test_compare_with_baseline(self, cli_env, capsys):
        exit_code, out, _ = run_cli(
            capsys,
            "--engine", ENGINE,
            "--games", "2",
            "--no-determinism-check",
            "--compare", "AI_v0.0_RANDOM",
        )

        comparison = json.loads(out)["baseline_comparison"]
        assert exit_code == 0
        assert comparison["baseline"]["id"] == "AI_v0.0_RANDOM"
        assert comparison["archived_results"]["stats"]["gamesPlayed"] == 500

    def test_output_saves_report(self, cli_env, capsys):
        exit_code, _, _ = run_cli(
            capsys,
            "--engine", ENGINE,
            "--games", "2",
            "--no-determinism-check",
            "--output", "nightly",
        )

        assert exit_code == 0
        saved = json.loads((cli_env / "results" / "nightly.json").read_text(encoding="utf-8"))
        assert saved["stats"]["gamesPlayed"] == 2

    def test_engine_required(self, cli_env, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["--games", "2"])

        assert exc_info.value.code == 2

    def test_unknown_player_fails_cleanly(self, cli_env, capsys):
        exit_code, out, err = run_cli(
            capsys, "--engine", ENGINE, "--player-a", "GHOST", "--games", "2"
        )

        assert exit_code == 1
        assert out == ""
        assert "Unknown player: GHOST" in err

    def test_unknown_range_fails_cleanly(self, cli_env, capsys):
        exit_code, _, err = run_cli(capsys, "--engine", ENGINE, "--range", "NIGHTLY")

        assert exit_code == 1
        assert "NIGHTLY" in err

    def test_unknown_baseline_fails_cleanly(self, cli_env, capsys):
        exit_code, _, err = run_cli(
            capsys, "--engine", ENGINE, "--games", "1", "--compare", "AI_v9"
        )

        assert exit_code == 1
        assert "AI_v9" in err


class TestValidateAnchor:
    @pytest.fixture
    def anchor_config(self, cli_env, monkeypatch):
        def entry(anchor_id, policy_name):
            return {
                "id": anchor_id,
                "policy_name": policy_name,
                "validation_mode": "self_play",
                "validation_seed_base": 100,
                "validation_game_count": 4,
            }

        path = cli_env / "arena_config.json"
        path.write_text(
            json.dumps({"active_anchors": [entry("ANCHOR_TWOS", "TWOS"), entry("ANCHOR_ONES", "ONES")]}),
            encoding="utf-8",
        )
        monkeypatch.setenv("GEMARENA_ARENA_CONFIG", str(path))
        return path

    def test_stable_anchor_passes(self, anchor_config, capsys):
        exit_code, out, _ = run_cli(
            capsys, "--engine", ENGINE, "--players", PLAYERS, "--validate-anchor", "ANCHOR_TWOS"
        )

        summary = json.loads(out)
        assert exit_code == 0
        assert summary["anchor_id"] == "ANCHOR_TWOS"
        assert summary["actual_rate"] == 0.5
        assert summary["passed"] is True

    def test_drifted_anchor_fails(self, anchor_config, capsys):
        exit_code, out, _ = run_cli(
            capsys, "--engine", ENGINE, "--players", PLAYERS, "--validate-anchor", "ANCHOR_ONES"
        )

        summary = json.loads(out)
        assert exit_code == 1
        assert summary["drift"] == 0.5
        assert summary["passed"] is False

    def test_unknown_anchor_fails_cleanly(self, anchor_config, capsys):
        exit_code, out, err = run_cli(
            capsys, "--engine", ENGINE, "--players", PLAYERS, "--validate-anchor", "ANCHOR_GHOST"
        )

        assert exit_code == 1
        assert out == ""
        assert "Unknown anchor: ANCHOR_GHOST" in err


class TestCanonicalSummary:
    def test_stopped_report(self):
        report = make_arena().run_match("ONES", "TWOS", 100, 2)
        report.stopped = True

        summary = canonical_summary(report, None, 1.234)

        assert summary["stopped"] is True
        assert summary["duration_seconds"] == 1.23
        assert summary["determinism_check"] is None

    def test_empty_batch_has_no_seed_range(self):
        report = make_arena().run_match("ONES", "TWOS", 100, 0)

        summary = canonical_summary(report, None, 0.0)

        assert summary["seed"] == {"base": 100, "range": None}
        assert summary["games"]["completed"] == 0
