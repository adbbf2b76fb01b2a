"""Odds and probability conversion helpers."""


def implied_probability(decimal_odds: float) -> float:
    """
    Raw (vigged) implied probability of a decimal price.

    Args:
        decimal_odds: Decimal odds, must be greater than 1.0

    Returns:
        1 / decimal_odds
    """
    if decimal_odds <= 1.0:
        raise ValueError(f"decimal odds must exceed 1.0, got {decimal_odds}")
    return 1.0 / decimal_odds


def devig_two_way_odds(home_odds: float, away_odds: float) -> tuple[float, float]:
    """
    Remove the bookmaker margin from a two-way market.

    Uses the proportional (multiplicative) method: each side's raw implied
    probability is divided by the overround, so the pair sums to 1.

    Args:
        home_odds: Decimal odds for the home side
        away_odds: Decimal odds for the away side

    Returns:
        Tuple of (home_prob, away_prob)
    """
    raw_home = implied_probability(home_odds)
    raw_away = implied_probability(away_odds)
    overround = raw_home + raw_away
    return raw_home / overround, raw_away / overround
