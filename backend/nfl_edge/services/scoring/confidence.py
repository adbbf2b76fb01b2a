"""Prediction confidence and uncertainty band calculation."""

from dataclasses import dataclass

import numpy as np

MIN_CONFIDENCE = 0.1
MAX_CONFIDENCE = 1.0


@dataclass
class ConfidenceComponents:
    """Components of a prediction's confidence."""

    coverage_quality: float
    volatility_discount: float
    final_confidence: float


def compute_confidence(
    coverage_quality: float,
    odds_volatility: float,
    volatility_threshold: float = 1.5,
    volatility_discount: float = 0.8,
) -> ConfidenceComponents:
    """
    Compute prediction confidence from market coverage and line movement.

    Confidence starts at the coverage quality of the consensus. A market
    whose spread moved more than ``volatility_threshold`` points across the
    window is discounted. The result is clamped to [0.1, 1.0].

    Args:
        coverage_quality: Consensus coverage (0-1)
        odds_volatility: Std of windowed home-spread points
        volatility_threshold: Volatility above which the discount applies
        volatility_discount: Multiplier applied to unstable markets

    Returns:
        ConfidenceComponents with the applied factors and final value
    """
    discount = volatility_discount if odds_volatility > volatility_threshold else 1.0
    final = float(np.clip(coverage_quality * discount, MIN_CONFIDENCE, MAX_CONFIDENCE))
    return ConfidenceComponents(
        coverage_quality=coverage_quality,
        volatility_discount=discount,
        final_confidence=final,
    )


def probability_band(probability: float, confidence: float) -> tuple[float, float]:
    """Band of ``0.1 * (1 - confidence)`` either side, clamped to [0, 1]."""
    half_width = 0.1 * (1.0 - confidence)
    return (
        float(max(0.0, probability - half_width)),
        float(min(1.0, probability + half_width)),
    )
