"""Unit tests for player price calculation."""

import pytest

from ultifantasy.errors import NotFound
from ultifantasy.pricing import (
    calculate_from_window,
    calculate_new_price,
    calculate_price_progression,
    calculate_price_table,
    finalize_week_prices,
    get_current_player_prices,
    get_player_points_by_week,
    preview_stats_update,
    save_calculated_prices,
)
from ultifantasy.stats import record_player_stats
from ultifantasy.windows import open_window


class TestNewPrice:
    """Tests for the price formula."""

    def test_average_equal_to_tenth_of_price_keeps_price(self):
        """Test 100 + (100 - 100) / 4 = 100."""
        assert calculate_new_price(100, 10) == 100

    def test_higher_average_raises_price(self):
        """Test 100 + (200 - 100) / 4 = 125."""
        assert calculate_new_price(100, 20) == 125

    def test_moderate_points(self):
        """Test avg 5 on $50 leaves the price at $50."""
        assert calculate_new_price(50, 5) == 50

    def test_high_points(self):
        """Test avg 10 on $50 raises the price to $62.50."""
        assert calculate_new_price(50, 10) == 62.5

    def test_zero_points(self):
        """Test a zero average cuts the price by a quarter."""
        assert calculate_new_price(50, 0) == 37.5

    def test_decimal_average(self):
        """Test fractional averages price to the cent."""
        assert calculate_new_price(50, 7.5) == 56.25

    def test_negative_average(self):
        """Test negative points push the price below the starting value."""
        assert calculate_new_price(50, -2) == 32.5

    def test_rounds_half_up_to_cents(self):
        """Test 62.5 + (90 - 62.5) / 4 = 69.375 rounds to 69.38."""
        assert calculate_new_price(62.5, 9) == 69.38


class TestPriceProgression:
    """Tests for played-only price progression."""

    def test_plays_every_week(self):
        """Test a player who plays every week."""
        prices = calculate_price_progression(50, [(10, True), (8, True), (12, True)])
        assert prices == [50, 62.5, 69.38, 77.04]

    def test_missed_week_freezes_price(self):
        """Test a missed week carries the price forward unchanged."""
        prices = calculate_price_progression(50, [(15, True), (0, False), (10, True)])
        assert prices == [50, 75, 75, 87.5]

    def test_average_uses_last_two_played_weeks(self):
        """Test consecutive missed weeks are skipped when averaging."""
        prices = calculate_price_progression(50, [(10, True), (0, False), (0, False), (8, True)])
        # avg(10, 8) = 9 -> 62.5 + (90 - 62.5) / 4
        assert prices[1:] == [62.5, 62.5, 62.5, 69.38]

    def test_points_in_unplayed_week_are_ignored(self):
        """Test points recorded for a week the player did not play never count."""
        with_points = calculate_price_progression(42, [(4, True), (30, False)])
        assert with_points[1:] == [41.5, 41.5]

    def test_zero_points_while_playing_moves_price(self):
        """Test playing for zero points still reprices the player."""
        prices = calculate_price_progression(50, [(0, True), (0, True)])
        assert prices[1:] == [37.5, 28.13]

    def test_no_weeks(self):
        assert calculate_price_progression(50, []) == [50]

    def test_never_plays(self):
        """Test a player who never plays keeps the starting price."""
        assert calculate_price_progression(50, [(0, False)] * 3) == [50, 50, 50, 50]

    def test_deterministic(self):
        """Test the same history always yields the same prices."""
        weekly = [(3, True), (0, False), (11, True), (7, True)]
        assert calculate_price_progression(48.5, weekly) == calculate_price_progression(48.5, weekly)


class TestPointsByWeek:
    """Tests for the played-only points aggregation."""

    def test_sums_played_games_per_week(self, store):
        """Test points of several games in one week are summed."""
        store.games.create(id='g1b', week_id='w1')
        record_player_stats(store, 'h1', 'g1', goals=2)
        record_player_stats(store, 'h1', 'g1b', assists=1)
        points = get_player_points_by_week(store, 's1')
        assert points['h1'] == {'w1': 4.0}

    def test_unplayed_rows_excluded(self, store):
        """Test stat rows marked not played are ignored."""
        record_player_stats(store, 'h1', 'g1', goals=5, played=False)
        record_player_stats(store, 'h2', 'g1', blocks=1)
        points = get_player_points_by_week(store, 's1')
        assert 'h1' not in points
        assert points['h2'] == {'w1': 3.0}

    def test_no_stats(self, store):
        """Test an empty season has no points."""
        assert get_player_points_by_week(store, 's1') == {}

    def test_unknown_season(self, store):
        assert get_player_points_by_week(store, 'missing') == {}


class TestPriceTable:
    """Tests for the stored-history price table."""

    def test_week_one_uses_starting_value(self, store):
        """Test every player starts at the season starting value."""
        table = calculate_price_table(store, 's1')
        row = next(r for r in table.players if r.player_id == 'h1')
        assert row.week_data[1].price == 60.0
        assert [w.week_number for w in table.weeks] == [1, 2, 3, 4]

    def test_prices_follow_played_weeks(self, store):
        """Test prices move only after played weeks."""
        record_player_stats(store, 'h3', 'g1', goals=4, assists=3)  # 10 points
        record_player_stats(store, 'h3', 'g3', goals=8)
        table = calculate_price_table(store, 's1')
        row = next(r for r in table.players if r.player_id == 'h3')

        assert row.week_data[1].played is True
        assert row.week_data[2].played is False
        assert row.week_data[2].price == 62.5
        assert row.week_data[3].price == 62.5
        assert row.week_data[4].price == 69.38

    def test_draft_week_left_out(self, store):
        """Test a draft week gets no price column and its points never count."""
        store.weeks.update('w1', is_draft_week=True)
        record_player_stats(store, 'h3', 'g1', goals=8)
        record_player_stats(store, 'h3', 'g2', goals=4, assists=3)  # 10 points
        table = calculate_price_table(store, 's1')
        row = next(r for r in table.players if r.player_id == 'h3')

        assert [w.week_number for w in table.weeks] == [2, 3, 4]
        assert 1 not in row.week_data
        assert row.week_data[2].price == 50.0
        assert row.week_data[3].price == 62.5

    def test_sorted_by_starting_price(self, store):
        """Test rows are ordered by starting price, highest first."""
        table = calculate_price_table(store, 's1')
        starting = [r.starting_price for r in table.players]
        assert starting == sorted(starting, reverse=True)
        assert table.players[0].player_id == 'r4'

    def test_team_names_resolved(self, store):
        """Test player and team names are filled in."""
        table = calculate_price_table(store, 's1')
        row = next(r for r in table.players if r.player_id == 'h1')
        assert row.team_name == 'Sky'
        assert row.player_name == 'H1 Player'

    def test_deterministic(self, store):
        """Test the table is a pure function of stored history."""
        record_player_stats(store, 'c1', 'g1', goals=1, drops=2)
        record_player_stats(store, 'c1', 'g2', blocks=2)
        first = calculate_price_table(store, 's1')
        second = calculate_price_table(store, 's1')
        assert first == second


class TestSavePrices:
    """Tests for persisting prices to value changes."""

    def test_saves_rounds_after_played_weeks(self, store):
        """Test only rounds following a played week are saved."""
        record_player_stats(store, 'h1', 'g1', goals=10)
        saved = save_calculated_prices(store, 's1')
        # 13 players x round 2
        assert saved == 13
        change = store.value_changes.find_by_player_and_round('h1', 2)
        assert change.value == 60 + (100 - 60) / 4
        assert store.value_changes.find_by_round(3) == []

    def test_resave_updates_in_place(self, store):
        """Test saving again updates existing rounds."""
        record_player_stats(store, 'h1', 'g1', goals=10)
        save_calculated_prices(store, 's1')
        record_player_stats(store, 'h1', 'g1', goals=2)
        save_calculated_prices(store, 's1')

        changes = store.value_changes.find_by_player('h1')
        assert len(changes) == 1
        assert changes[0].value == 60 + (20 - 60) / 4

    def test_nothing_saved_without_stats(self, store):
        """Test no prices are saved before any stats exist."""
        assert save_calculated_prices(store, 's1') == 0

    def test_finalize_marks_week(self, store):
        """Test finalizing saves prices and flags the week."""
        record_player_stats(store, 'h1', 'g1', goals=10)
        finalize_week_prices(store, 'w1')
        assert store.weeks.find_by_id('w1').prices_calculated is True
        assert store.value_changes.find_by_player_and_round('h1', 2) is not None

    def test_finalize_missing_week(self, store):
        with pytest.raises(NotFound):
            finalize_week_prices(store, 'nope')

    def test_calculate_from_window_only_later_rounds(self, store):
        """Test recalculation from a week leaves earlier rounds alone."""
        record_player_stats(store, 'h1', 'g1', goals=10)
        record_player_stats(store, 'h1', 'g2', goals=6)
        result = calculate_from_window(store, 's1', 2)
        assert result.rounds_updated == [3]
        assert store.value_changes.find_by_round(2) == []


class TestCurrentPrices:
    """Tests for current player prices."""

    def test_starting_values_when_unpriced(self, store):
        """Test unpriced players report their starting value."""
        prices = {p.player_id: p for p in get_current_player_prices(store, 's1')}
        assert prices['h1'].current_value == 60.0
        assert prices['h1'].previous_value is None
        assert prices['h1'].change is None

    def test_change_since_previous_round(self, store):
        """Test the change is measured against the previous round."""
        record_player_stats(store, 'h1', 'g1', goals=10)
        record_player_stats(store, 'h1', 'g2', goals=10)
        save_calculated_prices(store, 's1')
        prices = {p.player_id: p for p in get_current_player_prices(store, 's1')}
        # round 2: 70.0, round 3: 70 + (100 - 70) / 4 = 77.5
        assert prices['h1'].current_value == 77.5
        assert prices['h1'].previous_value == 70.0
        assert prices['h1'].change == 7.5

    def test_first_round_compares_to_starting_value(self, store):
        """Test the first priced round compares to the starting value."""
        record_player_stats(store, 'h1', 'g1', goals=0)
        save_calculated_prices(store, 's1')
        prices = {p.player_id: p for p in get_current_player_prices(store, 's1')}
        assert prices['h1'].current_value == 45.0
        assert prices['h1'].change == -15.0


class TestPreviewStatsUpdate:
    """Tests for previewing a stats change."""

    def test_affects_later_rounds(self, store):
        """Test every later round is affected by a stats change."""
        preview = preview_stats_update(store, 's1', 2)
        assert preview.affected_rounds == [3, 4]
        assert preview.affected_windows == []
        assert preview.requires_confirmation is False

    def test_reports_open_windows(self, store):
        """Test windows already opened on affected prices need confirmation."""
        record_player_stats(store, 'h1', 'g1', goals=3)
        finalize_week_prices(store, 'w1')
        open_window(store, 'w2')
        preview = preview_stats_update(store, 's1', 1)
        assert preview.affected_windows == [2]
        assert preview.open_window_week == 2
        assert preview.requires_confirmation is True
