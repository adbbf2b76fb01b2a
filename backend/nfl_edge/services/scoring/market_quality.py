"""Market quality: how much the consensus line can be trusted."""

from dataclasses import dataclass

import numpy as np


@dataclass
class MarketQualityResult:
    """Result of market quality calculation."""

    book_count: int
    coverage_quality: float
    line_volatility: float


def coverage_quality(num_books: int, full_coverage_books: int = 4) -> float:
    """
    Fraction of full bookmaker coverage, in [0, 1].

    Args:
        num_books: Distinct bookmakers contributing any quote
        full_coverage_books: Book count at which coverage saturates
    """
    if num_books <= 0 or full_coverage_books <= 0:
        return 0.0
    return float(min(1.0, num_books / full_coverage_books))


def line_volatility(points: list[float]) -> float:
    """Population standard deviation of spread points (0 for fewer than two)."""
    if len(points) < 2:
        return 0.0
    return float(np.std(np.asarray(points, dtype=float), ddof=0))


def compute_market_quality(
    num_books: int,
    spread_points: list[float],
    full_coverage_books: int = 4,
) -> MarketQualityResult:
    return MarketQualityResult(
        book_count=num_books,
        coverage_quality=coverage_quality(num_books, full_coverage_books),
        line_volatility=line_volatility(spread_points),
    )
