"""Blended win-probability model.

The moneyline probability blends a hand-tuned heuristic (home field, spread,
injuries, weather) with the de-vigged market probability. Spread and total
predictions derive from that probability and the consensus total.
"""

import hashlib
import json
from dataclasses import dataclass
from datetime import datetime, timezone

from nfl_edge.config import Settings, settings as default_settings
from nfl_edge.schemas import GameFeatures, Prediction, UncertaintyBand
from nfl_edge.services.scoring.confidence import compute_confidence, probability_band

MIN_PROBABILITY = 0.02
MAX_PROBABILITY = 0.98
SPREAD_BAND = 7.0
TOTAL_BAND = 6.0


@dataclass(frozen=True)
class BlendPolicy:
    """Weights of the heuristic and the market in the home win probability."""

    heuristic_weight: float = 0.6
    market_weight: float = 0.4

    def __post_init__(self):
        if abs(self.heuristic_weight + self.market_weight - 1.0) > 1e-9:
            raise ValueError("blend weights must sum to 1.0")

    @classmethod
    def heuristic_led(cls) -> "BlendPolicy":
        return cls(heuristic_weight=0.6, market_weight=0.4)

    @classmethod
    def market_led(cls) -> "BlendPolicy":
        return cls(heuristic_weight=0.15, market_weight=0.85)

    @classmethod
    def from_settings(cls, settings: Settings) -> "BlendPolicy":
        return cls(
            heuristic_weight=settings.blend_heuristic_weight,
            market_weight=settings.blend_market_weight,
        )


@dataclass
class GamePrediction:
    """Model output for one game before it is split into market rows."""

    home_probability: float
    heuristic_probability: float
    predicted_margin: float
    predicted_total: float
    confidence: float


def heuristic_probability(features: GameFeatures, settings: Settings) -> float:
    """Home win probability from home field, the spread, injuries and weather.

    A negative spread means the home side is favored, so it raises the
    probability.
    """
    return (
        settings.home_field_probability
        - features.consensus_spread / settings.spread_probability_divisor
        + (features.injury_impact_away - features.injury_impact_home)
        * settings.injury_probability_weight
        - features.weather_severity * settings.weather_probability_penalty
    )


def blend_probability(
    features: GameFeatures, policy: BlendPolicy, settings: Settings
) -> tuple[float, float]:
    """Return (blended home probability, raw heuristic probability)."""
    heuristic = heuristic_probability(features, settings)
    if features.has_market:
        blended = (
            policy.heuristic_weight * heuristic
            + policy.market_weight * features.implied_prob_home
        )
    else:
        # No quotes: the neutral 0.5 would only drag the heuristic toward a coin flip
        blended = heuristic
    return min(max(blended, MIN_PROBABILITY), MAX_PROBABILITY), heuristic


def predict(
    features: GameFeatures,
    policy: BlendPolicy | None = None,
    settings: Settings | None = None,
) -> GamePrediction:
    settings = settings or default_settings
    policy = policy or BlendPolicy.from_settings(settings)

    probability, heuristic = blend_probability(features, policy, settings)
    confidence = compute_confidence(
        features.coverage_quality,
        features.odds_volatility,
        settings.volatility_threshold,
        settings.volatility_confidence_discount,
    ).final_confidence

    return GamePrediction(
        home_probability=probability,
        heuristic_probability=heuristic,
        predicted_margin=(probability - 0.5) * settings.margin_scale,
        predicted_total=features.consensus_total
        - settings.weather_total_penalty * features.weather_severity,
        confidence=confidence,
    )


def provenance_hash(game_id: str, features: GameFeatures, model_version: str) -> str:
    """SHA-256 over the canonical JSON of the prediction's inputs.

    No timestamps go in, so identical inputs always reproduce the hash.
    """
    payload = json.dumps(
        {
            "game_id": game_id,
            "features": features.model_dump(mode="json"),
            "model_version": model_version,
        },
        sort_keys=True,
        separators=(",", ":"),
    )
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def predict_game(
    game_id: str,
    features: GameFeatures,
    policy: BlendPolicy | None = None,
    settings: Settings | None = None,
    now: datetime | None = None,
) -> list[Prediction]:
    """
    Produce the moneyline, spread and total predictions for one game.

    Args:
        game_id: Game the features belong to
        features: Latest feature set of the game
        policy: Blend weights (defaults to the configured policy)
        settings: Model constants (defaults to application settings)
        now: Creation timestamp for the rows

    Returns:
        Three predictions: moneyline, spread, total
    """
    settings = settings or default_settings
    result = predict(features, policy, settings)
    digest = provenance_hash(game_id, features, settings.model_version)
    created_at = now or datetime.now(timezone.utc)

    model_probability = implied_probability = edge = None
    if features.has_market:
        model_probability = result.home_probability
        implied_probability = features.implied_prob_home
        edge = (model_probability - implied_probability) * 100

    lower, upper = probability_band(result.home_probability, result.confidence)

    common = {
        "game_id": game_id,
        "confidence": result.confidence,
        "model_version": settings.model_version,
        "provenance_hash": digest,
        "created_at": created_at,
    }
    return [
        Prediction(
            market_type="moneyline",
            predicted_value=result.home_probability,
            uncertainty_band=UncertaintyBand(lower=lower, upper=upper),
            model_probability=model_probability,
            implied_probability=implied_probability,
            edge_vs_implied=edge,
            **common,
        ),
        Prediction(
            market_type="spread",
            predicted_value=result.predicted_margin,
            uncertainty_band=UncertaintyBand(
                lower=result.predicted_margin - SPREAD_BAND,
                upper=result.predicted_margin + SPREAD_BAND,
            ),
            model_probability=model_probability,
            implied_probability=implied_probability,
            edge_vs_implied=edge,
            **common,
        ),
        Prediction(
            market_type="total",
            predicted_value=result.predicted_total,
            uncertainty_band=UncertaintyBand(
                lower=result.predicted_total - TOTAL_BAND,
                upper=result.predicted_total + TOTAL_BAND,
            ),
            **common,
        ),
    ]
