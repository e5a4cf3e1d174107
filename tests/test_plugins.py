# tests/test_plugins.py

import pytest

from owtracker.plugins import (
    ComboStatsPlugin,
    HeroStatsPlugin,
    ModeStatsPlugin,
    PlayerBreakdownPlugin,
    SeasonStatsPlugin,
    TeamStatsPlugin,
)
from owtracker.plugins.combo_stats import lineup_key
from owtracker.plugins.common import filter_by_role, tally, top_by_count, win_rate
from owtracker.plugins.season_stats import filter_by_date_range, filter_by_season, match_season
from tests.helpers import make_match, player, scenario_matches


def _player_row(result, name):
    return next(p for p in result["players"] if p["name"] == name)


class TestCommon:

    def test_win_rate_empty_is_zero(self):
        assert win_rate(0, 0) == 0

    def test_win_rate_rounds_to_whole_percent(self):
        assert win_rate(3, 4) == 75
        assert win_rate(2, 3) == 67
        assert win_rate(1, 3) == 33

    def test_tally_counts_unknown_result_in_total_only(self):
        rows = [make_match("Win"), make_match("Lose"), make_match("Draw")]
        assert tally(rows) == {"total": 3, "wins": 1, "losses": 1, "win_rate": 33}

    def test_top_by_count_first_reached_wins_ties(self):
        assert top_by_count({"Ana": 2, "Kiriko": 2}) == ("Ana", 2)
        assert top_by_count({}) == (None, 0)

    def test_filter_by_role(self):
        matches = scenario_matches()
        assert len(filter_by_role(matches, "Support")) == 1
        assert len(filter_by_role(matches, None)) == 3


class TestTeamStats:

    def test_scenario(self):
        r = TeamStatsPlugin(scenario_matches()).analyze()
        assert (r["total"], r["wins"], r["losses"], r["win_rate"]) == (3, 2, 1, 67)

    def test_empty(self):
        r = TeamStatsPlugin([]).analyze()
        assert r["total"] == 0
        assert r["win_rate"] == 0

    def test_three_wins_one_loss(self):
        rows = [make_match("Win"), make_match("Win"), make_match("Win"), make_match("Lose")]
        assert TeamStatsPlugin(rows).analyze()["win_rate"] == 75

    def test_role_filter(self):
        r = TeamStatsPlugin(scenario_matches(), role_filter="DPS").analyze()
        assert (r["total"], r["wins"], r["win_rate"]) == (2, 1, 50)
        assert r["role_filter"] == "DPS"


class TestPlayerBreakdown:

    def test_scenario_win_rates(self):
        r = PlayerBreakdownPlugin(scenario_matches()).analyze()
        assert _player_row(r, "Pudel")["win_rate"] == 67
        assert _player_row(r, "Nora")["win_rate"] == 50
        assert _player_row(r, "Philipp")["win_rate"] == 100

    def test_every_roster_name_listed_even_without_matches(self):
        r = PlayerBreakdownPlugin([], roster=["Pudel", "Nora"]).analyze()
        assert [p["name"] for p in r["players"]] == ["Pudel", "Nora"]
        row = r["players"][0]
        assert row["total"] == 0
        assert row["win_rate"] == 0
        assert row["top_role"] == "-"
        assert row["top_character"] == "-"
        assert row["best_character"] is None
        assert row["highscore"] is None

    def test_role_split_and_top_role(self):
        matches = [
            make_match("Win", player("Nora", "DPS", "Tracer")),
            make_match("Lose", player("Nora", "Support", "Ana")),
            make_match("Win", player("Nora", "DPS", "Genji")),
        ]
        row = _player_row(PlayerBreakdownPlugin(matches).analyze(), "Nora")
        assert row["top_role"] == "DPS"
        assert row["top_role_count"] == 2
        roles = {r["role"]: r for r in row["roles"]}
        assert roles["DPS"] == {"role": "DPS", "count": 2, "wins": 2, "win_rate": 100}
        assert roles["Support"]["win_rate"] == 0
        assert roles["Tank"]["count"] == 0

    def test_top_character_tie_goes_to_newest(self):
        matches = [
            make_match("Win", player("Nora", "DPS", "Tracer")),
            make_match("Win", player("Nora", "DPS", "Genji")),
        ]
        row = _player_row(PlayerBreakdownPlugin(matches).analyze(), "Nora")
        assert row["top_character"] == "Tracer"
        assert row["top_character_count"] == 1

    def test_best_and_worst_need_two_matches(self):
        matches = [
            make_match("Win", player("Pudel", "Tank", "Sigma")),
            make_match("Win", player("Pudel", "Tank", "Sigma")),
            make_match("Lose", player("Pudel", "Tank", "Orisa")),
            make_match("Win", player("Pudel", "Tank", "Orisa")),
            make_match("Lose", player("Pudel", "Tank", "Winston")),
        ]
        row = _player_row(PlayerBreakdownPlugin(matches).analyze(), "Pudel")
        assert row["best_character"]["character"] == "Sigma"
        assert row["best_character"]["win_rate"] == 100
        assert row["worst_character"]["character"] == "Orisa"
        assert row["worst_character"]["win_rate"] == 50

    def test_highscore_only_counts_stadium(self):
        matches = [
            make_match("Win", player("Pudel", "Tank"), queue="Rangliste", score=9000),
            make_match("Win", player("Pudel", "Tank"), queue="Stadion", score=12),
            make_match("Lose", player("Pudel", "Tank"), queue="Stadion", score=30),
            make_match("Lose", player("Pudel", "Tank"), queue="Stadion", score=True),
            make_match("Lose", player("Pudel", "Tank"), queue="Stadion", score="99"),
        ]
        row = _player_row(PlayerBreakdownPlugin(matches).analyze(), "Pudel")
        assert row["highscore"] == 30

    def test_role_filter_requires_player_in_that_role(self):
        matches = [
            make_match("Win", player("Nora", "DPS"), player("Pudel", "Tank")),
            make_match("Lose", player("Nora", "Support"), player("Philipp", "DPS")),
        ]
        r = PlayerBreakdownPlugin(matches, role_filter="DPS").analyze()
        nora = _player_row(r, "Nora")
        assert (nora["total"], nora["win_rate"]) == (1, 100)
        assert _player_row(r, "Pudel")["total"] == 0

    def test_match_history_sorting(self):
        matches = scenario_matches()
        plugin = PlayerBreakdownPlugin(matches)
        newest_first = plugin.match_history("Pudel")
        assert [m["createdAt"][:10] for m in newest_first] == ["2025-03-03", "2025-03-02", "2025-03-01"]
        oldest_first = plugin.match_history("Pudel", direction="asc")
        assert oldest_first[0]["createdAt"][:10] == "2025-03-01"
        by_result = plugin.match_history("Pudel", sort_key="result", direction="asc")
        assert by_result[0]["result"] == "Lose"
        assert all(row["player_role"] == "Tank" for row in newest_first)

    def test_match_history_rejects_unknown_sort(self):
        with pytest.raises(ValueError):
            PlayerBreakdownPlugin([]).match_history("Pudel", sort_key="map")
        with pytest.raises(ValueError):
            PlayerBreakdownPlugin([]).match_history("Pudel", direction="sideways")


class TestComboStats:

    def test_scenario(self):
        r = ComboStatsPlugin(scenario_matches()).analyze()
        combos = {c["key"]: c for c in r["combos"]}
        assert len(combos) == 2
        assert combos["Tank:Pudel|DPS:Nora"]["win_rate"] == 50
        assert combos["Tank:Pudel|DPS:Nora"]["total"] == 2
        assert combos["Tank:Pudel|Support:Philipp"]["win_rate"] == 100
        assert r["best"][0]["key"] == "Tank:Pudel|Support:Philipp"
        assert r["worst"][0]["key"] == "Tank:Pudel|DPS:Nora"

    def test_entry_order_does_not_matter(self):
        a, _ = lineup_key([player("Nora", "DPS"), player("Pudel", "Tank"), player("Ana", "DPS")])
        b, ordered = lineup_key([player("Ana", "DPS"), player("Pudel", "Tank"), player("Nora", "DPS")])
        assert a == b == "Tank:Pudel|DPS:Ana|DPS:Nora"
        assert [p["name"] for p in ordered] == ["Pudel", "Ana", "Nora"]

    def test_names_within_a_role_ignore_case(self):
        key, _ = lineup_key([player("Pudel", "DPS"), player("nora", "DPS")])
        assert key == "DPS:nora|DPS:Pudel"
        same, _ = lineup_key([player("Nora", "DPS"), player("nora", "DPS")])
        again, _ = lineup_key([player("nora", "DPS"), player("Nora", "DPS")])
        assert same == again

    def test_non_win_counts_as_loss(self):
        r = ComboStatsPlugin([make_match("Draw", player("Pudel", "Tank"))]).analyze()
        assert r["combos"][0]["losses"] == 1
        assert r["combos"][0]["win_rate"] == 0

    def test_top_three_with_stable_ties(self):
        matches = [make_match("Win", player(name, "Tank")) for name in ("A", "B", "C", "D")]
        r = ComboStatsPlugin(matches).analyze()
        assert [c["key"] for c in r["best"]] == ["Tank:A", "Tank:B", "Tank:C"]
        assert [c["key"] for c in r["worst"]] == ["Tank:A", "Tank:B", "Tank:C"]

    def test_role_filter(self):
        r = ComboStatsPlugin(scenario_matches(), role_filter="Support").analyze()
        assert [c["key"] for c in r["combos"]] == ["Tank:Pudel|Support:Philipp"]


class TestHeroStats:

    def test_single_match_heroes_are_listed_but_not_ranked(self):
        matches = [
            make_match("Win", player("Pudel", "Tank", "Sigma"), player("Nora", "DPS", "Tracer")),
            make_match("Lose", player("Pudel", "Tank", "Sigma")),
        ]
        r = HeroStatsPlugin(matches).analyze()
        heroes = {h["character"]: h for h in r["heroes"]}
        assert heroes["Tracer"]["total"] == 1
        assert [h["character"] for h in r["best"]] == ["Sigma"]
        assert [h["character"] for h in r["worst"]] == ["Sigma"]
        assert heroes["Sigma"]["role"] == "Tank"
        assert heroes["Sigma"]["win_rate"] == 50

    def test_ties_broken_by_match_count(self):
        matches = (
            [make_match("Win", player("Nora", "DPS", "Genji"))] * 2
            + [make_match("Win", player("Nora", "DPS", "Tracer"))] * 3
        )
        r = HeroStatsPlugin(matches).analyze()
        assert [h["character"] for h in r["best"]] == ["Tracer", "Genji"]

    def test_best_and_worst_capped_at_five(self):
        matches = []
        for hero in ("A", "B", "C", "D", "E", "F"):
            matches += [make_match("Win", player("Nora", "DPS", hero))] * 2
        r = HeroStatsPlugin(matches).analyze()
        assert len(r["heroes"]) == 6
        assert len(r["best"]) == 5
        assert len(r["worst"]) == 5


class TestModeStats:

    def test_split_by_queue(self):
        matches = [
            make_match("Win", queue="Rangliste"),
            make_match("Lose", queue="Stadion"),
            make_match("Win", queue="Stadion"),
        ]
        r = ModeStatsPlugin(matches).analyze()
        assert r["total"] == 3
        modes = {m["queue"]: m for m in r["modes"]}
        assert modes["Stadion"]["win_rate"] == 50
        assert modes["Rangliste"]["win_rate"] == 100
        assert [m["queue"] for m in r["modes"]] == ["Rangliste", "Stadion"]


class TestSeasonStats:

    def test_match_season_falls_back_to_created_at(self):
        assert match_season({"season": "Season 3"}) == "Season 3"
        assert match_season({"createdAt": "2025-03-01T10:00:00.000Z"}) == "Season 15"

    def test_filter_by_season(self):
        matches = [
            make_match("Win", created_at="2025-03-01T10:00:00.000Z"),
            make_match("Win", created_at="2025-05-01T10:00:00.000Z"),
        ]
        assert len(filter_by_season(matches, "Season 15")) == 1
        assert len(filter_by_season(matches, None)) == 2

    def test_filter_by_date_range_is_half_open(self):
        matches = [
            make_match("Win", id="a", created_at="2025-03-01T00:00:00.000Z"),
            make_match("Win", id="b", created_at="2025-03-02T00:00:00.000Z"),
            make_match("Win", id="c"),
        ]
        kept = filter_by_date_range(matches, "2025-03-01T00:00:00Z", "2025-03-02T00:00:00Z")
        assert [m["id"] for m in kept] == ["a"]

    def test_buckets_follow_calendar_order(self):
        matches = [
            make_match("Win", created_at="2025-05-01T10:00:00.000Z"),
            make_match("Lose", season="Custom"),
            make_match("Win", created_at="2025-03-01T10:00:00.000Z"),
        ]
        r = SeasonStatsPlugin(matches).analyze()
        assert [s["season"] for s in r["seasons"]] == ["Season 15", "Season 16", "Custom"]
        assert r["current_season"].startswith("Season ")
