"""Tests for odds conversion, consensus odds and market quality."""

from datetime import timedelta

import pytest

from conftest import AWAY, HOME, NOW, h2h, make_snapshot, spread, totals
from nfl_edge.services.features.consensus import calculate_consensus, window_snapshots
from nfl_edge.services.ml.probability import (
    devig_two_way_odds,
    implied_probability,
)
from nfl_edge.services.scoring.market_quality import coverage_quality, line_volatility


class TestProbabilityConversion:
    def test_implied_probability(self):
        assert implied_probability(2.0) == pytest.approx(0.5)
        assert implied_probability(4.0) == pytest.approx(0.25)

    def test_implied_probability_rejects_price_at_or_below_one(self):
        with pytest.raises(ValueError):
            implied_probability(1.0)

    def test_devig_sums_to_one(self):
        home, away = devig_two_way_odds(1.91, 1.91)
        assert home == pytest.approx(0.5)
        assert home + away == pytest.approx(1.0)

    def test_devig_favorite(self):
        home, away = devig_two_way_odds(1.50, 2.70)
        assert home > away
        assert home + away == pytest.approx(1.0)


class TestWindowSnapshots:
    def test_keeps_most_recent_per_book_and_market(self):
        snaps = [
            spread("book-a", -3.0 - i, snapshot_time=NOW - timedelta(hours=i))
            for i in range(5)
        ]
        snaps.append(h2h("book-a", 1.8, 2.0))

        windows = window_snapshots(snaps, per_book=3)

        spreads = windows[("book-a", "spreads")]
        assert len(spreads) == 3
        assert [s.snapshot_time for s in spreads] == [
            NOW,
            NOW - timedelta(hours=1),
            NOW - timedelta(hours=2),
        ]
        assert len(windows[("book-a", "h2h")]) == 1


class TestCalculateConsensus:
    def test_no_snapshots_gives_neutral_defaults(self):
        consensus = calculate_consensus([], HOME, AWAY)

        assert consensus.ml_home is None
        assert consensus.ml_away is None
        assert consensus.implied_prob_home == 0.5
        assert consensus.implied_prob_away == 0.5
        assert consensus.spread == 0.0
        assert consensus.total == 47.0
        assert consensus.coverage_quality == 0.0
        assert consensus.volatility == 0.0
        assert consensus.bookmaker_count == 0

    def test_median_moneyline_and_devig(self):
        snaps = [
            h2h("book-a", 1.67, 2.30),
            h2h("book-b", 1.70, 2.25),
            h2h("book-c", 1.60, 2.45),
        ]

        consensus = calculate_consensus(snaps, HOME, AWAY)

        assert consensus.ml_home == pytest.approx(1.67)
        assert consensus.ml_away == pytest.approx(2.30)
        assert consensus.implied_prob_home + consensus.implied_prob_away == pytest.approx(1.0)
        assert consensus.implied_prob_home > 0.5
        assert consensus.bookmaker_count == 3
        assert consensus.coverage_quality == pytest.approx(0.75)

    def test_single_bookmaker(self):
        consensus = calculate_consensus([h2h("book-a", 1.91, 1.91)], HOME, AWAY)

        assert consensus.implied_prob_home == pytest.approx(0.5)
        assert consensus.bookmaker_count == 1
        assert consensus.coverage_quality == pytest.approx(0.25)
        assert consensus.volatility == 0.0

    def test_latest_spread_per_book_and_windowed_volatility(self):
        points = [-3.0, -3.5, -4.0, -10.0, -10.0]
        snaps = [
            spread("book-a", p, snapshot_time=NOW - timedelta(hours=i))
            for i, p in enumerate(points)
        ]

        consensus = calculate_consensus(snaps, HOME, AWAY, per_book=3)

        assert consensus.spread == pytest.approx(-3.0)
        # Only the newest three points move the volatility
        assert consensus.volatility == pytest.approx(0.4082, abs=1e-4)

    def test_home_spread_from_away_side_only(self):
        snap = make_snapshot("book-a", "spreads", [{"name": AWAY, "price": 1.91, "point": 3.5}])

        consensus = calculate_consensus([snap], HOME, AWAY)

        assert consensus.spread == pytest.approx(-3.5)

    def test_team_names_match_case_insensitively(self):
        snap = make_snapshot(
            "book-a",
            "h2h",
            [{"name": HOME.upper(), "price": 1.5}, {"name": AWAY.lower(), "price": 2.7}],
        )

        consensus = calculate_consensus([snap], HOME, AWAY)

        assert consensus.ml_home == pytest.approx(1.5)

    def test_median_total(self):
        snaps = [totals("book-a", 47.5), totals("book-b", 48.5), totals("book-c", 49.0)]

        consensus = calculate_consensus(snaps, HOME, AWAY)

        assert consensus.total == pytest.approx(48.5)

    def test_invalid_prices_are_ignored(self):
        snaps = [h2h("book-a", 1.0, 2.0), h2h("book-b", 1.8, 2.1)]

        consensus = calculate_consensus(snaps, HOME, AWAY)

        assert consensus.ml_home == pytest.approx(1.8)
        assert consensus.bookmaker_count == 1

    def test_coverage_saturates(self):
        snaps = [h2h(f"book-{i}", 1.9, 1.95) for i in range(6)]

        consensus = calculate_consensus(snaps, HOME, AWAY)

        assert consensus.bookmaker_count == 6
        assert consensus.coverage_quality == 1.0
        assert 0.0 <= consensus.implied_prob_home <= 1.0

    def test_book_counted_once_across_markets(self):
        snaps = [h2h("book-a", 1.8, 2.1), spread("book-a", -2.5), totals("book-a", 44.0)]

        consensus = calculate_consensus(snaps, HOME, AWAY)

        assert consensus.bookmaker_count == 1


class TestMarketQuality:
    @pytest.mark.parametrize(
        "books,expected", [(0, 0.0), (1, 0.25), (2, 0.5), (4, 1.0), (9, 1.0)]
    )
    def test_coverage_quality(self, books, expected):
        assert coverage_quality(books, 4) == pytest.approx(expected)

    def test_volatility_needs_two_points(self):
        assert line_volatility([]) == 0.0
        assert line_volatility([-3.0]) == 0.0

    def test_volatility_is_population_std(self):
        assert line_volatility([-2.0, -4.0]) == pytest.approx(1.0)
