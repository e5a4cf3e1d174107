# owtracker/constants.py

ROLES = ("Tank", "DPS", "Support")
ROLE_ORDER = {"Tank": 0, "DPS": 1, "Support": 2}

RESULT_WIN = "Win"
RESULT_LOSE = "Lose"
RESULTS = (RESULT_WIN, RESULT_LOSE)

QUEUE_RANKED = "Rangliste"
QUEUE_STADIUM = "Stadion"
QUEUES = (QUEUE_RANKED, QUEUE_STADIUM)

DEFAULT_PLAYER_NAMES = ("Pudel", "Nora", "Philipp")

COMPETITIVE_TIERS = (
    "Bronze",
    "Silver",
    "Gold",
    "Platinum",
    "Diamond",
    "Master",
    "Grandmaster",
    "Champion",
)
COMPETITIVE_DIVISIONS = (5, 4, 3, 2, 1)
COMPETITIVE_RANKS = tuple(
    f"{tier} {division}" for tier in COMPETITIVE_TIERS for division in COMPETITIVE_DIVISIONS
)

STADIUM_RANKS = ("Rookie", "Challenger", "Contender", "Elite", "Legend")

RANK_OPTIONS = {
    QUEUE_RANKED: COMPETITIVE_RANKS,
    QUEUE_STADIUM: STADIUM_RANKS,
}

ROLE_CHARACTERS = {
    "DPS": (
        "Ashe",
        "Bastion",
        "Cassidy",
        "Echo",
        "Genji",
        "Hanzo",
        "Junkrat",
        "Mei",
        "Pharah",
        "Reaper",
        "Sojourn",
        "Soldier: 76",
        "Sombra",
        "Symmetra",
        "Torbjörn",
        "Tracer",
        "Venture",
        "Widowmaker",
    ),
    "Support": (
        "Ana",
        "Baptiste",
        "Brigitte",
        "Illari",
        "Juno",
        "Kiriko",
        "Lifeweaver",
        "Lúcio",
        "Mercy",
        "Moira",
        "Zenyatta",
    ),
    "Tank": (
        "D.Va",
        "Doomfist",
        "Junker Queen",
        "Mauga",
        "Orisa",
        "Ramattra",
        "Reinhardt",
        "Roadhog",
        "Sigma",
        "Winston",
        "Wrecking Ball",
        "Zarya",
    ),
}

# Aggregation thresholds
MIN_CHARACTER_MATCHES = 2
MIN_HERO_MATCHES = 2
MAX_COMBO_ENTRIES = 3
MAX_HERO_ENTRIES = 5

NO_VALUE = "-"
