"""Tests for the blended win-probability model and the prediction stage."""

from datetime import timedelta

import pytest

from conftest import NOW, make_game
from nfl_edge.schemas import GameFeatures
from nfl_edge.services.ml.predictor import (
    BlendPolicy,
    blend_probability,
    heuristic_probability,
    predict,
    predict_game,
    provenance_hash,
)
from nfl_edge.services.scoring.confidence import compute_confidence, probability_band
from nfl_edge.tasks.predictions import generate_predictions


def by_market(predictions):
    return {p.market_type: p for p in predictions}


class TestBlendPolicy:
    def test_weights_must_sum_to_one(self):
        with pytest.raises(ValueError):
            BlendPolicy(heuristic_weight=0.5, market_weight=0.6)

    def test_from_settings(self, settings):
        policy = BlendPolicy.from_settings(settings)
        assert policy.heuristic_weight == 0.6
        assert policy.market_weight == 0.4


class TestBlendProbability:
    def test_heuristic_components(self, features, settings):
        # 0.55 + 3/28 + 0.08 * 0.1 - 0.3 * 0.05
        assert heuristic_probability(features, settings) == pytest.approx(0.650143, abs=1e-6)

    def test_heuristic_led_blend(self, features, settings):
        probability, _ = blend_probability(features, BlendPolicy.heuristic_led(), settings)
        assert probability == pytest.approx(0.622086, abs=1e-6)

    def test_market_led_blend(self, features, settings):
        probability, _ = blend_probability(features, BlendPolicy.market_led(), settings)
        assert probability == pytest.approx(0.590521, abs=1e-6)

    def test_no_market_uses_heuristic_alone(self, settings):
        probability, heuristic = blend_probability(
            GameFeatures(), BlendPolicy.heuristic_led(), settings
        )
        assert probability == pytest.approx(0.55)
        assert heuristic == pytest.approx(0.55)

    def test_spread_shift_matches_margin_scale(self, settings):
        # A line a touchdown further toward home moves the predicted margin by a touchdown
        pick = predict(GameFeatures(consensus_spread=0.0), settings=settings)
        favored = predict(GameFeatures(consensus_spread=-7.0), settings=settings)

        assert favored.heuristic_probability - pick.heuristic_probability == pytest.approx(0.25)
        assert favored.predicted_margin - pick.predicted_margin == pytest.approx(7.0)

    @pytest.mark.parametrize("spread,expected", [(-20.0, 0.98), (20.0, 0.02)])
    def test_clamped(self, settings, spread, expected):
        features = GameFeatures(consensus_spread=spread)
        probability, _ = blend_probability(features, BlendPolicy.heuristic_led(), settings)
        assert probability == pytest.approx(expected)


class TestConfidence:
    def test_full_coverage_stable_market(self):
        assert compute_confidence(1.0, 0.5).final_confidence == 1.0

    def test_volatile_market_is_discounted(self):
        components = compute_confidence(1.0, 2.0)
        assert components.volatility_discount == 0.8
        assert components.final_confidence == pytest.approx(0.8)

    def test_floor(self):
        assert compute_confidence(0.0, 0.0).final_confidence == pytest.approx(0.1)

    def test_band_clamped_to_unit_interval(self):
        assert probability_band(0.97, 0.1) == (pytest.approx(0.88), 1.0)


class TestPredictGame:
    def test_three_markets(self, features, settings):
        predictions = predict_game("game-1", features, settings=settings, now=NOW)

        assert [p.market_type for p in predictions] == ["moneyline", "spread", "total"]
        assert all(p.model_version == settings.model_version for p in predictions)
        assert len({p.provenance_hash for p in predictions}) == 1

    def test_values(self, features, settings):
        predictions = by_market(predict_game("game-1", features, settings=settings, now=NOW))

        moneyline = predictions["moneyline"]
        assert moneyline.predicted_value == pytest.approx(0.622086, abs=1e-6)
        assert moneyline.confidence == 1.0
        assert predictions["spread"].predicted_value == pytest.approx(3.41840, abs=1e-4)
        assert predictions["total"].predicted_value == pytest.approx(47.6)

    def test_predicted_value_inside_band(self, features, settings):
        for prediction in predict_game("game-1", features, settings=settings, now=NOW):
            band = prediction.uncertainty_band
            assert band.lower <= prediction.predicted_value <= band.upper

    def test_fixed_bands_for_spread_and_total(self, features, settings):
        predictions = by_market(predict_game("game-1", features, settings=settings, now=NOW))

        spread = predictions["spread"]
        assert spread.uncertainty_band.upper - spread.uncertainty_band.lower == pytest.approx(14.0)
        total = predictions["total"]
        assert total.uncertainty_band.upper - total.uncertainty_band.lower == pytest.approx(12.0)

    def test_edge_against_market(self, features, settings):
        predictions = by_market(predict_game("game-1", features, settings=settings, now=NOW))

        moneyline = predictions["moneyline"]
        assert moneyline.implied_probability == pytest.approx(0.58)
        assert moneyline.edge_vs_implied == pytest.approx(4.2086, abs=1e-4)
        assert predictions["spread"].edge_vs_implied == moneyline.edge_vs_implied
        assert predictions["total"].edge_vs_implied is None

    def test_game_without_odds(self, settings):
        predictions = by_market(predict_game("game-1", GameFeatures(), settings=settings, now=NOW))

        moneyline = predictions["moneyline"]
        assert moneyline.predicted_value == pytest.approx(0.55)
        assert moneyline.confidence == pytest.approx(0.1)
        assert moneyline.uncertainty_band.lower == pytest.approx(0.46)
        assert moneyline.uncertainty_band.upper == pytest.approx(0.64)
        assert moneyline.edge_vs_implied is None
        assert moneyline.implied_probability is None
        assert predictions["total"].predicted_value == pytest.approx(47.0)


class TestProvenanceHash:
    def test_stable_across_runs(self, features, settings):
        first = predict_game("game-1", features, settings=settings, now=NOW)
        second = predict_game("game-1", features, settings=settings, now=NOW + timedelta(hours=6))
        assert first[0].provenance_hash == second[0].provenance_hash

    def test_changes_with_inputs(self, features):
        base = provenance_hash("game-1", features, "2.1.0")
        moved = features.model_copy(update={"consensus_spread": -3.5})

        assert provenance_hash("game-1", moved, "2.1.0") != base
        assert provenance_hash("game-2", features, "2.1.0") != base
        assert provenance_hash("game-1", features, "2.2.0") != base

    def test_is_sha256_hex(self, features):
        digest = provenance_hash("game-1", features, "2.1.0")
        assert len(digest) == 64
        int(digest, 16)


class TestGeneratePredictionsStage:
    @pytest.mark.asyncio
    async def test_predicts_games_with_features(self, store, settings, features):
        store.games["game-1"] = make_game("game-1")
        store.games["game-2"] = make_game("game-2", home_team="Denver Broncos")
        await store.write_feature_set("game-1", features)

        result = await generate_predictions(store, settings, now=NOW)

        assert result.success
        assert result.processed == 1
        assert result.details["without_features"] == 1
        assert set(store.predictions) == {
            ("game-1", "moneyline"),
            ("game-1", "spread"),
            ("game-1", "total"),
        }

    @pytest.mark.asyncio
    async def test_rerun_replaces_rows(self, store, settings, features):
        store.games["game-1"] = make_game("game-1")
        await store.write_feature_set("game-1", features)
        await generate_predictions(store, settings, now=NOW)
        first_ids = {k: p.id for k, p in store.predictions.items()}

        await generate_predictions(store, settings, policy=BlendPolicy.market_led(), now=NOW)

        assert len(store.predictions) == 3
        assert {k: p.id for k, p in store.predictions.items()} == first_ids
        assert store.predictions[("game-1", "moneyline")].predicted_value == pytest.approx(
            0.590521, abs=1e-6
        )

    @pytest.mark.asyncio
    async def test_uses_latest_feature_set(self, store, settings, features):
        store.games["game-1"] = make_game("game-1")
        await store.write_feature_set("game-1", GameFeatures())
        await store.write_feature_set("game-1", features)

        await generate_predictions(store, settings, now=NOW)

        assert store.predictions[("game-1", "moneyline")].confidence == 1.0
