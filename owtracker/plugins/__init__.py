from owtracker.plugins.combo_stats import ComboStatsPlugin
from owtracker.plugins.hero_stats import HeroStatsPlugin
from owtracker.plugins.mode_stats import ModeStatsPlugin
from owtracker.plugins.player_breakdown import PlayerBreakdownPlugin
from owtracker.plugins.season_stats import SeasonStatsPlugin
from owtracker.plugins.team_stats import TeamStatsPlugin

__all__ = [
    "ComboStatsPlugin",
    "HeroStatsPlugin",
    "ModeStatsPlugin",
    "PlayerBreakdownPlugin",
    "SeasonStatsPlugin",
    "TeamStatsPlugin",
]
