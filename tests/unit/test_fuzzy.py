"""Unit tests for node-type suggestion ranking."""

import pytest

from src.validation.fuzzy import levenshtein, rank_alternatives, similarity_score


class TestLevenshtein:
    """Edit distance."""

    @pytest.mark.parametrize(
        ("a", "b", "expected"),
        [
            ("", "", 0),
            ("abc", "", 3),
            ("", "abc", 3),
            ("slack", "slack", 0),
            ("slak", "slack", 1),
            ("kitten", "sitting", 3),
        ],
    )
    def test_distance(self, a, b, expected):
        assert levenshtein(a, b) == expected

    def test_symmetric(self):
        assert levenshtein("requst", "request") == levenshtein("request", "requst")


class TestSimilarityScore:
    """Score components."""

    def test_exact_trailing_segment(self):
        # exact + contains + one fragment + full contains + distance 0
        assert similarity_score("n8n-nodes-base.slack", "n8n-nodes-base.slack") == 100 + 50 + 20 + 30 + 100

    def test_typo_gets_distance_bonus_only(self):
        assert similarity_score("http.requst", "http.request") == 90

    def test_containment(self):
        score = similarity_score("sheets", "n8n-nodes-base.googleSheets")
        # contains (50) + fragment (20) + full-name contains (30)
        assert score == 100

    def test_short_fragments_ignored(self):
        assert similarity_score("ab", "n8n-nodes-base.xyzzyq") == 0

    def test_case_insensitive(self):
        assert similarity_score("SLACK", "n8n-nodes-base.slack") > 100


class TestRankAlternatives:
    """Ranking."""

    def test_typo_top_suggestion(self):
        ranked = rank_alternatives("http.requst", ["http.request", "http.response"])
        assert ranked[0] == "http.request"

    def test_zero_scores_dropped(self):
        assert rank_alternatives("zzz", ["http.request", "slack"]) == []

    def test_limit(self):
        candidates = [f"n8n-nodes-base.slack{i}" for i in range(10)]
        assert len(rank_alternatives("slack", candidates)) == 5
        assert len(rank_alternatives("slack", candidates, limit=2)) == 2

    def test_ties_keep_registry_order(self):
        candidates = ["a.slackOne", "b.slackTwo", "c.slackOne"]
        assert rank_alternatives("slack", candidates) == candidates
