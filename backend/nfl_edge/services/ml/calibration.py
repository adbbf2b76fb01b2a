"""Post-game evaluation metrics and reliability analysis."""

import math
from datetime import datetime, timezone

import numpy as np
import structlog

from nfl_edge.schemas import (
    CalibrationSummary,
    Evaluation,
    Game,
    Prediction,
    ReliabilityBin,
)

logger = structlog.get_logger()

LOG_LOSS_EPSILON = 1e-15


def home_win_outcome(game: Game) -> int:
    """1 if the home team won, else 0. A tie counts as a home non-win."""
    return 1 if game.home_margin is not None and game.home_margin > 0 else 0


def brier_score(probability: float, outcome: int) -> float:
    return (probability - outcome) ** 2


def log_loss(probability: float, outcome: int) -> float:
    """Binary log loss with the probability clamped away from 0 and 1."""
    p = min(max(probability, LOG_LOSS_EPSILON), 1 - LOG_LOSS_EPSILON)
    return -(outcome * math.log(p) + (1 - outcome) * math.log(1 - p))


def reliability_curve(
    probabilities: list[float], outcomes: list[int], n_bins: int = 10
) -> list[ReliabilityBin]:
    """
    Fixed-width reliability curve.

    Bins are ``[lower, upper)`` except the last, which also holds 1.0.
    Empty bins are reported with a count of 0 and no rates.

    Args:
        probabilities: Predicted home win probabilities
        outcomes: Matching 0/1 outcomes
        n_bins: Number of equal-width bins over [0, 1]

    Returns:
        One ReliabilityBin per bin, ascending
    """
    counts = [0] * n_bins
    predicted_sums = [0.0] * n_bins
    win_sums = [0] * n_bins

    for p, y in zip(probabilities, outcomes):
        # Small epsilon so 0.8 * 10 lands in bin 8 despite float error
        idx = min(max(int(math.floor(p * n_bins + 1e-9)), 0), n_bins - 1)
        counts[idx] += 1
        predicted_sums[idx] += p
        win_sums[idx] += y

    curve = []
    for idx in range(n_bins):
        lower = idx / n_bins
        upper = (idx + 1) / n_bins
        count = counts[idx]
        curve.append(
            ReliabilityBin(
                lower=lower,
                upper=upper,
                midpoint=(lower + upper) / 2,
                count=count,
                mean_predicted=predicted_sums[idx] / count if count else None,
                empirical_rate=win_sums[idx] / count if count else None,
            )
        )
    return curve


def calibration_slope(curve: list[ReliabilityBin]) -> float | None:
    """Least-squares slope of empirical rate on mean prediction over non-empty bins."""
    points = [
        (b.mean_predicted, b.empirical_rate)
        for b in curve
        if b.count > 0 and b.mean_predicted is not None
    ]
    if len(points) < 2:
        return None
    x = np.array([p[0] for p in points])
    y = np.array([p[1] for p in points])
    if np.ptp(x) == 0:
        return None
    return float(np.polyfit(x, y, 1)[0])


def evaluate_game(
    game: Game,
    predictions: list[Prediction],
    now: datetime | None = None,
) -> list[Evaluation]:
    """
    Score a completed game's predictions against its final result.

    Returns an empty list when the game has no final score or no moneyline
    prediction.
    """
    if not game.has_final_score:
        return []

    by_market = {p.market_type: p for p in predictions}
    moneyline = by_market.get("moneyline")
    if moneyline is None:
        return []

    evaluated_at = now or datetime.now(timezone.utc)
    outcome = home_win_outcome(game)
    probability = moneyline.predicted_value

    evaluations = [
        Evaluation(
            prediction_id=moneyline.id,
            game_id=game.id,
            market_type="moneyline",
            predicted_value=probability,
            actual_value=float(outcome),
            absolute_error=abs(probability - outcome),
            squared_error=(probability - outcome) ** 2,
            brier_score=brier_score(probability, outcome),
            log_loss=log_loss(probability, outcome),
            evaluated_at=evaluated_at,
        )
    ]

    actuals = {"spread": game.home_margin, "total": game.total_points}
    for market, actual in actuals.items():
        prediction = by_market.get(market)
        if prediction is None:
            continue
        error = prediction.predicted_value - actual
        evaluations.append(
            Evaluation(
                prediction_id=prediction.id,
                game_id=game.id,
                market_type=market,
                predicted_value=prediction.predicted_value,
                actual_value=float(actual),
                absolute_error=abs(error),
                squared_error=error**2,
                evaluated_at=evaluated_at,
            )
        )
    return evaluations


def _mean(values: list[float]) -> float | None:
    return float(np.mean(values)) if values else None


def summarize(evaluations: list[Evaluation], n_bins: int = 10) -> CalibrationSummary:
    """Aggregate accuracy and calibration across evaluations."""
    moneyline = [e for e in evaluations if e.market_type == "moneyline"]
    spread = [e for e in evaluations if e.market_type == "spread"]
    total = [e for e in evaluations if e.market_type == "total"]

    curve = reliability_curve(
        [e.predicted_value for e in moneyline],
        [int(e.actual_value) for e in moneyline],
        n_bins,
    )

    summary = CalibrationSummary(
        games_evaluated=len({e.game_id for e in moneyline}),
        predictions_evaluated=len(evaluations),
        mean_brier_score=_mean([e.brier_score for e in moneyline if e.brier_score is not None]),
        mean_log_loss=_mean([e.log_loss for e in moneyline if e.log_loss is not None]),
        mean_spread_error=_mean([e.absolute_error for e in spread]),
        mean_total_error=_mean([e.absolute_error for e in total]),
        calibration_slope=calibration_slope(curve),
        reliability_curve=curve,
    )

    logger.info(
        "Calibration summary",
        games=summary.games_evaluated,
        brier=summary.mean_brier_score,
        log_loss=summary.mean_log_loss,
        slope=summary.calibration_slope,
    )
    return summary
