# tests/test_analyzer.py

import pytest

from owtracker.analyzer import DashboardAnalyzer
from tests.helpers import make_match, player, scenario_matches


def test_dashboard_sections():
    result = DashboardAnalyzer(scenario_matches()).analyze()
    assert set(result) == {"role_filter", "season", "team", "players", "combos", "heroes", "modes", "seasons"}
    assert result["team"]["win_rate"] == 67
    assert [p["name"] for p in result["players"]] == ["Pudel", "Nora", "Philipp"]
    assert result["combos"]["best"][0]["key"] == "Tank:Pudel|Support:Philipp"
    assert len(result["combos"]["all"]) == 2


def test_unknown_role_rejected():
    with pytest.raises(ValueError):
        DashboardAnalyzer([], role_filter="Healer")


def test_role_filter_leaves_hero_and_mode_stats_alone():
    matches = [
        make_match("Win", player("Pudel", "Tank", "Sigma")),
        make_match("Lose", player("Nora", "DPS", "Tracer")),
    ]
    result = DashboardAnalyzer(matches, role_filter="Tank").analyze()
    assert result["team"]["total"] == 1
    assert result["modes"]["total"] == 2
    assert len(result["heroes"]["all"]) == 2


def test_season_filter_applies_first_but_keeps_season_buckets():
    matches = [
        make_match("Win", player("Pudel", "Tank"), created_at="2025-03-01T10:00:00.000Z"),
        make_match("Lose", player("Pudel", "Tank"), created_at="2025-05-01T10:00:00.000Z"),
    ]
    result = DashboardAnalyzer(matches, season="Season 15").analyze()
    assert result["season"] == "Season 15"
    assert result["team"]["total"] == 1
    assert result["team"]["win_rate"] == 100
    assert [s["season"] for s in result["seasons"]["seasons"]] == ["Season 15", "Season 16"]


def test_custom_roster():
    result = DashboardAnalyzer(scenario_matches(), roster=["Nora"]).analyze()
    assert [p["name"] for p in result["players"]] == ["Nora"]


def test_summary_prints_every_section(capsys):
    DashboardAnalyzer(scenario_matches()).summary()
    out = capsys.readouterr().out
    for heading in ("TEAM", "PLAYERS", "LINEUPS", "MODES", "SEASONS"):
        assert heading in out
