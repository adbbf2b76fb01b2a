"""Consensus odds across bookmakers.

Turns a game's raw odds snapshots into a single market view: median
moneyline prices, de-vigged implied probabilities, median spread and total,
spread volatility and a coverage score. Medians keep one stale or outlying
book from dragging the consensus.
"""

from collections import defaultdict
from dataclasses import dataclass

import numpy as np

from nfl_edge.schemas import OddsSnapshot
from nfl_edge.services.ml.probability import devig_two_way_odds
from nfl_edge.services.scoring.market_quality import compute_market_quality

DEFAULT_TOTAL = 47.0


@dataclass
class ConsensusOdds:
    """Market consensus for one game."""

    ml_home: float | None = None
    ml_away: float | None = None
    implied_prob_home: float = 0.5
    implied_prob_away: float = 0.5
    spread: float = 0.0  # home line, negative when home is favored
    total: float = DEFAULT_TOTAL
    volatility: float = 0.0
    coverage_quality: float = 0.0
    bookmaker_count: int = 0


def window_snapshots(
    snapshots: list[OddsSnapshot], per_book: int = 3
) -> dict[tuple[str, str], list[OddsSnapshot]]:
    """Keep the ``per_book`` most recent snapshots per (bookmaker, market), newest first."""
    grouped: dict[tuple[str, str], list[OddsSnapshot]] = defaultdict(list)
    ordered = sorted(snapshots, key=lambda s: s.snapshot_time, reverse=True)
    for snapshot in ordered:
        key = (snapshot.bookmaker, snapshot.market_type)
        if len(grouped[key]) < per_book:
            grouped[key].append(snapshot)
    return dict(grouped)


def _valid_price(price: float | None) -> bool:
    return price is not None and price > 1.0


def moneyline_prices(
    snapshot: OddsSnapshot, home_team: str, away_team: str
) -> tuple[float, float] | None:
    """Home/away decimal prices when the book quoted both sides."""
    home = snapshot.odds_data.find(home_team)
    away = snapshot.odds_data.find(away_team)
    if home is None or away is None:
        return None
    if not (_valid_price(home.price) and _valid_price(away.price)):
        return None
    return home.price, away.price


def home_spread_point(
    snapshot: OddsSnapshot, home_team: str, away_team: str
) -> float | None:
    """Home-team spread point, derived from the away side when that is all we have."""
    home = snapshot.odds_data.find(home_team)
    if home is not None and home.point is not None:
        return float(home.point)
    away = snapshot.odds_data.find(away_team)
    if away is not None and away.point is not None:
        return -float(away.point)
    return None


def over_point(snapshot: OddsSnapshot) -> float | None:
    over = snapshot.odds_data.find("Over")
    if over is not None and over.point is not None:
        return float(over.point)
    return None


def _latest(values: list[float | None]):
    """First non-missing value of a newest-first list."""
    for value in values:
        if value is not None:
            return value
    return None


def calculate_consensus(
    snapshots: list[OddsSnapshot],
    home_team: str,
    away_team: str,
    per_book: int = 3,
    full_coverage_books: int = 4,
    default_total: float = DEFAULT_TOTAL,
) -> ConsensusOdds:
    """
    Build the consensus view of a game's market.

    Args:
        snapshots: The game's odds snapshots, any order
        home_team: Home team name as quoted by the books
        away_team: Away team name as quoted by the books
        per_book: Snapshots kept per (bookmaker, market)
        full_coverage_books: Book count giving full coverage quality
        default_total: Total used when no book quoted one

    Returns:
        ConsensusOdds; neutral defaults when nothing usable was quoted
    """
    windows = window_snapshots(snapshots, per_book)

    home_prices: list[float] = []
    away_prices: list[float] = []
    spreads: list[float] = []
    totals: list[float] = []
    windowed_spreads: list[float] = []
    contributing_books: set[str] = set()

    for (book, market), window in windows.items():
        if market == "h2h":
            prices = _latest([moneyline_prices(s, home_team, away_team) for s in window])
            if prices is not None:
                home_prices.append(prices[0])
                away_prices.append(prices[1])
                contributing_books.add(book)
        elif market == "spreads":
            points = [home_spread_point(s, home_team, away_team) for s in window]
            windowed_spreads.extend(p for p in points if p is not None)
            latest = _latest(points)
            if latest is not None:
                spreads.append(latest)
                contributing_books.add(book)
        elif market == "totals":
            latest = _latest([over_point(s) for s in window])
            if latest is not None:
                totals.append(latest)
                contributing_books.add(book)

    consensus = ConsensusOdds(total=default_total)

    if home_prices:
        consensus.ml_home = float(np.median(home_prices))
        consensus.ml_away = float(np.median(away_prices))
        consensus.implied_prob_home, consensus.implied_prob_away = devig_two_way_odds(
            consensus.ml_home, consensus.ml_away
        )
    if spreads:
        consensus.spread = float(np.median(spreads))
    if totals:
        consensus.total = float(np.median(totals))

    quality = compute_market_quality(
        len(contributing_books), windowed_spreads, full_coverage_books
    )
    consensus.volatility = quality.line_volatility
    consensus.coverage_quality = quality.coverage_quality
    consensus.bookmaker_count = quality.book_count
    return consensus
