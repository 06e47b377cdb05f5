from __future__ import annotations

import pytest

from sentiment_engine.sentiment_types import PredictionResult, SentimentResult
from sentiment_engine.strategies import (
    MaxConfidenceStrategy,
    ThresholdOverrideStrategy,
    WeightedAverageStrategy,
    build_strategy,
    prediction_to_result,
)


def _rule(score: float = 0.5, label: str = "positive", confidence: float = 0.4) -> SentimentResult:
    return SentimentResult(
        score=score,
        magnitude=abs(score),
        label=label,  # type: ignore[arg-type]
        confidence=confidence,
        method="rule",
    )


def _prediction(label: str, pos: float, neg: float, neu: float) -> PredictionResult:
    probs = {"positive": pos, "negative": neg, "neutral": neu}
    return PredictionResult(label=label, confidence=probs[label], probabilities=probs)  # type: ignore[arg-type]


def test_confident_disagreeing_classifier_overrides():
    r = ThresholdOverrideStrategy().combine(_rule(), _prediction("negative", 0.05, 0.9, 0.05))
    assert r.method == "naive"
    assert r.label == "very_negative"
    assert r.score == pytest.approx(-0.85)
    assert r.confidence == pytest.approx(0.9)


def test_agreement_is_tagged_hybrid():
    r = ThresholdOverrideStrategy().combine(_rule(), _prediction("positive", 0.8, 0.1, 0.1))
    assert r.method == "hybrid"
    assert r.label == "positive"
    assert r.score == pytest.approx(0.6)
    assert r.confidence == pytest.approx(0.8)


def test_unconfident_disagreement_keeps_rule_label():
    rule = _rule()
    r = ThresholdOverrideStrategy().combine(rule, _prediction("negative", 0.2, 0.6, 0.2))
    assert r.method == "rule"
    assert r.label == rule.label
    assert r.score == pytest.approx(rule.score)


def test_confidence_equal_to_threshold_does_not_override():
    r = ThresholdOverrideStrategy(threshold=0.6).combine(_rule(), _prediction("negative", 0.2, 0.6, 0.2))
    assert r.method == "rule"


def test_very_labels_fold_before_comparison():
    r = ThresholdOverrideStrategy().combine(
        _rule(score=0.8, label="very_positive"), _prediction("positive", 0.9, 0.05, 0.05)
    )
    assert r.method == "hybrid"
    assert r.label == "very_positive"


def test_max_confidence_follows_more_confident_component():
    r = MaxConfidenceStrategy().combine(_rule(), _prediction("positive", 0.8, 0.1, 0.1))
    assert r.score == pytest.approx(0.7)
    assert r.confidence == pytest.approx(0.8)


def test_weighted_average_mixes_scores():
    r = WeightedAverageStrategy(rule_weight=0.4).combine(_rule(), _prediction("positive", 0.8, 0.1, 0.1))
    assert r.method == "hybrid"
    assert r.score == pytest.approx(0.4 * 0.5 + 0.6 * 0.7)
    assert r.confidence == pytest.approx(0.4 * 0.4 + 0.6 * 0.8)


def test_combined_values_stay_in_range():
    for strategy in (ThresholdOverrideStrategy(), MaxConfidenceStrategy(), WeightedAverageStrategy()):
        r = strategy.combine(_rule(score=1.0, label="very_positive", confidence=0.95), _prediction("negative", 0.0, 1.0, 0.0))
        assert -1.0 <= r.score <= 1.0
        assert 0.0 <= r.confidence <= 1.0
        assert r.magnitude >= 0.0


def test_prediction_to_result():
    r = prediction_to_result(_prediction("positive", 0.5, 0.2, 0.3))
    assert r.method == "naive"
    assert r.score == pytest.approx(0.3)
    assert r.magnitude == pytest.approx(0.3)
    assert r.label == "positive"


def test_build_strategy():
    assert isinstance(build_strategy("max_confidence", 0.5), MaxConfidenceStrategy)
    assert build_strategy("weighted_average").threshold == pytest.approx(0.7)
    with pytest.raises(ValueError):
        build_strategy("coin_flip")
    with pytest.raises(ValueError):
        build_strategy("threshold_override", 1.5)
