"""Unit tests for stats entry and retroactive corrections."""

import pytest

from ultifantasy.errors import NotFound, ValidationFailed
from ultifantasy.pricing import finalize_week_prices
from ultifantasy.scorer import calculate_and_save_week_score
from ultifantasy.snapshots import create_snapshot
from ultifantasy.stats import correct_player_stats, get_week_stats, record_player_stats


class TestRecordPlayerStats:
    """Tests for entering stat lines."""

    def test_points_derived(self, store):
        """Test the points column is derived from the counts."""
        stats = record_player_stats(store, 'h1', 'g1', goals=2, assists=1, blocks=1, drops=1)
        assert stats.points == 6
        assert stats.played is True

    def test_upsert_per_player_and_game(self, store):
        """Test recording twice updates the same row."""
        first = record_player_stats(store, 'h1', 'g1', goals=2)
        second = record_player_stats(store, 'h1', 'g1', goals=5)
        assert second.id == first.id
        assert second.points == 5
        assert len(store.player_stats) == 1

    def test_negative_counts_rejected(self, store):
        """Test negative counts are rejected."""
        with pytest.raises(ValidationFailed):
            record_player_stats(store, 'h1', 'g1', goals=-1)

    def test_unknown_player(self, store):
        """Test an unknown player raises NotFound."""
        with pytest.raises(NotFound):
            record_player_stats(store, 'ghost', 'g1', goals=1)

    def test_unknown_game(self, store):
        with pytest.raises(NotFound):
            record_player_stats(store, 'h1', 'ghost', goals=1)

    def test_week_stats(self, store):
        """Test week stats cover the week's games and can filter by player."""
        record_player_stats(store, 'h1', 'g1', goals=1)
        record_player_stats(store, 'h2', 'g1', goals=1)
        record_player_stats(store, 'h1', 'g2', goals=1)
        assert len(get_week_stats(store, 'w1')) == 2
        assert [s.player_id for s in get_week_stats(store, 'w1', player_id='h2')] == ['h2']


class TestCorrectPlayerStats:
    """Tests for cascading corrections."""

    def test_missing_stats(self, store):
        """Test correcting a missing stat line raises NotFound."""
        with pytest.raises(NotFound):
            correct_player_stats(store, 'h1', 'g1', goals=1)

    def test_unknown_field(self, store):
        """Test unknown stat names are rejected."""
        record_player_stats(store, 'h1', 'g1', goals=1)
        with pytest.raises(ValidationFailed):
            correct_player_stats(store, 'h1', 'g1', hucks=3)

    def test_keeps_unchanged_counts(self, store):
        """Test counts not named in the correction are kept."""
        record_player_stats(store, 'h1', 'g1', goals=1, blocks=2)
        result = correct_player_stats(store, 'h1', 'g1', goals=3)
        assert result.stats.blocks == 2
        assert result.stats.points == 9

    def test_rescore_and_reprice(self, store, lineup):
        """Test a correction reprices later rounds and rescores teams."""
        create_snapshot(store, 'ft1', 'w1', lineup)
        create_snapshot(store, 'ft1', 'w2', lineup)
        record_player_stats(store, 'h2', 'g1', goals=2)
        finalize_week_prices(store, 'w1')
        calculate_and_save_week_score(store, 'ft1', 'w1')
        assert store.value_changes.find_by_player_and_round('h2', 2).value == 46.25

        result = correct_player_stats(store, 'h2', 'g1', goals=10)

        assert result.scores_recalculated == 2
        assert result.prices.rounds_updated == [2]
        assert store.value_changes.find_by_player_and_round('h2', 2).value == 66.25
        assert store.scores.find_by_fantasy_team_and_week('ft1', 'w1').total_points == 10

    def test_unfinalized_week_not_repriced(self, store, lineup):
        """Test a correction in an unfinalized week only rescores."""
        create_snapshot(store, 'ft1', 'w1', lineup)
        record_player_stats(store, 'h2', 'g1', goals=2)
        result = correct_player_stats(store, 'h2', 'g1', played=False)
        assert result.prices is None
        assert result.stats.played is False
        assert store.value_changes.find_by_round(2) == []
        assert store.scores.find_by_fantasy_team_and_week('ft1', 'w1').total_points == 0
