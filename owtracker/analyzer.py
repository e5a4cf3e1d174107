# owtracker/analyzer.py

import logging
from typing import Any, Dict, List, Optional, Sequence

from owtracker.constants import DEFAULT_PLAYER_NAMES, ROLES
from owtracker.plugins import (
    ComboStatsPlugin,
    HeroStatsPlugin,
    ModeStatsPlugin,
    PlayerBreakdownPlugin,
    SeasonStatsPlugin,
    TeamStatsPlugin,
)
from owtracker.plugins.season_stats import filter_by_season

logger = logging.getLogger(__name__)


class DashboardAnalyzer:
    """Run every statistics plugin over one match list.

    ``season`` narrows the input before anything else. ``role_filter`` is
    handed to the plugins that honour it; hero, mode and season breakdowns
    always see the full (season-narrowed) list.
    """

    def __init__(
        self,
        matches: List[Dict[str, Any]],
        roster: Sequence[str] = DEFAULT_PLAYER_NAMES,
        role_filter: Optional[str] = None,
        season: Optional[str] = None,
    ):
        if role_filter and role_filter not in ROLES:
            raise ValueError(f"Unknown role '{role_filter}'")
        self.roster = list(roster)
        self.role_filter = role_filter or None
        self.season = season or None
        self.all_matches = list(matches)
        self.matches = filter_by_season(self.all_matches, self.season)

    def plugins(self) -> list:
        return [
            TeamStatsPlugin(self.matches, role_filter=self.role_filter),
            PlayerBreakdownPlugin(self.matches, roster=self.roster, role_filter=self.role_filter),
            ComboStatsPlugin(self.matches, role_filter=self.role_filter),
            HeroStatsPlugin(self.matches),
            ModeStatsPlugin(self.matches),
            SeasonStatsPlugin(self.all_matches),
        ]

    def analyze(self) -> Dict[str, Any]:
        team, players, combos, heroes, modes, seasons = [p.analyze() for p in self.plugins()]
        logger.debug(
            "Dashboard computed over %s matches (role=%s, season=%s)",
            len(self.matches), self.role_filter, self.season,
        )
        return {
            "role_filter": self.role_filter,
            "season": self.season,
            "team": team,
            "players": players["players"],
            "combos": {"best": combos["best"], "worst": combos["worst"], "all": combos["combos"]},
            "heroes": {"best": heroes["best"], "worst": heroes["worst"], "all": heroes["heroes"]},
            "modes": modes,
            "seasons": seasons,
        }

    def summary(self) -> None:
        for plugin in self.plugins():
            plugin.summary()
