# tests/test_normalizer.py

import logging
from datetime import datetime, timezone

import pytest

from owtracker.normalizer import (
    ValidationError,
    normalize_archive_link,
    normalize_improvement,
    normalize_match,
    utc_now_iso,
    validate_archive_link,
    validate_improvement,
    validate_match,
    validate_player_rank,
)
from owtracker.seasons import resolve_season

NOW = datetime(2025, 3, 1, 18, 30, tzinfo=timezone.utc)


def test_utc_now_iso_shape():
    assert utc_now_iso(NOW) == "2025-03-01T18:30:00.000Z"


class TestMatchNormalization:

    def test_fills_created_at_and_season(self):
        normalized = normalize_match({"id": "m1", "result": "Win"}, now=NOW)
        assert normalized["createdAt"] == "2025-03-01T18:30:00.000Z"
        assert normalized["season"] == "Season 15"

    def test_season_follows_created_at(self):
        normalized = normalize_match({"id": "m1", "createdAt": "2024-05-01T10:00:00.000Z"}, now=NOW)
        assert normalized["createdAt"] == "2024-05-01T10:00:00.000Z"
        assert normalized["season"] == resolve_season("2024-05-01T10:00:00Z")

    def test_caller_values_are_kept(self):
        match = {"id": "m1", "createdAt": "2024-05-01T10:00:00.000Z", "season": "Custom"}
        assert normalize_match(match, now=NOW) == match

    def test_absent_optional_fields_stay_absent(self):
        normalized = normalize_match({"id": "m1", "result": "Lose"}, now=NOW)
        assert "rank" not in normalized
        assert "map" not in normalized
        assert "score" not in normalized

    def test_input_not_mutated(self):
        match = {"id": "m1"}
        normalize_match(match, now=NOW)
        assert match == {"id": "m1"}


class TestImprovementNormalization:

    def test_defaults(self):
        normalized = normalize_improvement({"id": "t1", "title": "x"}, now=NOW)
        assert normalized["createdAt"] == "2025-03-01T18:30:00.000Z"
        assert normalized["completed"] is False
        assert normalized["completedAt"] is None

    def test_truthy_completed_is_coerced(self):
        normalized = normalize_improvement({"id": "t1", "title": "x", "completed": "yes"}, now=NOW)
        assert normalized["completed"] is True
        assert normalized["completedAt"] == "2025-03-01T18:30:00.000Z"

    def test_caller_completed_at_kept_when_completed(self):
        normalized = normalize_improvement(
            {"id": "t1", "title": "x", "completed": True, "completedAt": "2024-01-01T00:00:00.000Z"},
            now=NOW,
        )
        assert normalized["completedAt"] == "2024-01-01T00:00:00.000Z"

    def test_stale_completed_at_cleared_when_not_completed(self):
        normalized = normalize_improvement(
            {"id": "t1", "title": "x", "completed": 0, "completedAt": "2024-01-01T00:00:00.000Z"},
            now=NOW,
        )
        assert normalized["completed"] is False
        assert normalized["completedAt"] is None


def test_archive_link_created_at_default():
    normalized = normalize_archive_link({"id": "l1", "title": "t", "url": "https://x"}, now=NOW)
    assert normalized["createdAt"] == "2025-03-01T18:30:00.000Z"


class TestValidation:

    @pytest.mark.parametrize("payload", [None, {}, {"id": ""}, {"id": "   "}, {"id": 5}, []])
    def test_match_rejected(self, payload):
        with pytest.raises(ValidationError):
            validate_match(payload)

    def test_match_accepted(self):
        assert validate_match({"id": "m1"}) == {"id": "m1"}

    def test_improvement_requires_title(self):
        with pytest.raises(ValidationError, match="title"):
            validate_improvement({"id": "t1", "title": "  "})

    def test_archive_link_requires_url(self):
        with pytest.raises(ValidationError, match="url"):
            validate_archive_link({"id": "l1", "title": "t"})

    def test_validation_error_is_value_error(self):
        assert issubclass(ValidationError, ValueError)

    def test_player_rank_key_and_default_rank(self):
        cleaned = validate_player_rank(
            {"player": " Pudel ", "season": "Season 15", "queue": "Rangliste", "role": "Tank"}
        )
        assert cleaned == {
            "player": "Pudel",
            "season": "Season 15",
            "queue": "Rangliste",
            "role": "Tank",
            "rank": "",
        }

    def test_player_rank_missing_role(self):
        with pytest.raises(ValidationError, match="role"):
            validate_player_rank({"player": "Pudel", "season": "S", "queue": "Q"})


def test_unreadable_created_at_is_logged(caplog):
    with caplog.at_level(logging.DEBUG, logger="owtracker.normalizer"):
        normalized = normalize_match({"id": "legacy", "createdAt": "last tuesday"}, now=NOW)
    assert normalized["createdAt"] == "last tuesday"
    assert normalized["season"] == resolve_season()
    assert "legacy" in caplog.text
    assert "unreadable createdAt" in caplog.text


def test_readable_created_at_is_not_logged(caplog):
    with caplog.at_level(logging.DEBUG, logger="owtracker.normalizer"):
        normalize_match({"id": "m1", "createdAt": "2025-03-01T10:00:00.000Z"}, now=NOW)
    assert "unreadable" not in caplog.text
