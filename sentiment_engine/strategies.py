from __future__ import annotations

from typing import Literal, Mapping, Optional

from sentiment_engine.sentiment_types import (
    AnalysisMethod,
    PredictionResult,
    SentimentLabel,
    SentimentResult,
    coarse_label,
    label_for_score,
)

StrategyName = Literal["threshold_override", "max_confidence", "weighted_average"]

DEFAULT_OVERRIDE_THRESHOLD = 0.7
DEFAULT_RULE_WEIGHT = 0.4


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def prediction_label(prediction: PredictionResult, score: float) -> SentimentLabel:
    """
    Five-way label for a classifier verdict.

    The classifier only knows three classes; a strong polarity promotes its
    positive/negative verdict to the very_* label.
    """
    fine = label_for_score(score)
    if coarse_label(fine) == prediction.label:
        return fine
    return prediction.label


def prediction_to_result(
        prediction: PredictionResult,
        emotions=None,
) -> SentimentResult:
    """Map a classifier verdict into a SentimentResult tagged method=naive."""
    score = _clamp(prediction.polarity, -1.0, 1.0)
    return SentimentResult(
        score=score,
        magnitude=abs(score),
        label=prediction_label(prediction, score),
        confidence=_clamp(prediction.confidence, 0.0, 1.0),
        method="naive",
        emotions=emotions,
    )


class CombinationStrategy:
    """
    Reconciles a rule-engine result with a classifier prediction.

    The label decision is shared by every strategy:
    - the classifier label wins when its confidence exceeds the threshold
      and its coarse label disagrees with the rule engine's
    - otherwise the rule label is kept

    Subclasses only decide how score and confidence are blended.
    """

    name: StrategyName = "threshold_override"

    def __init__(self, threshold: float = DEFAULT_OVERRIDE_THRESHOLD):
        if not 0.0 <= threshold <= 1.0:
            raise ValueError("threshold must be in [0, 1]")
        self.threshold = threshold

    def overrides(self, rule: SentimentResult, prediction: PredictionResult) -> bool:
        return prediction.confidence > self.threshold and coarse_label(rule.label) != prediction.label

    def combine(self, rule: SentimentResult, prediction: PredictionResult) -> SentimentResult:
        naive = prediction_to_result(prediction, emotions=rule.emotions)
        if self.overrides(rule, prediction):
            score, confidence = self.blend_override(rule, naive)
            label = naive.label
            if coarse_label(label_for_score(score)) == prediction.label:
                label = label_for_score(score)
            method: AnalysisMethod = "naive"
        else:
            score, confidence = self.blend_agree(rule, naive)
            label = rule.label
            agree = coarse_label(rule.label) == prediction.label
            method = "hybrid" if agree else "rule"

        score = _clamp(score, -1.0, 1.0)
        return SentimentResult(
            score=score,
            magnitude=max(rule.magnitude, abs(score)),
            label=label,
            confidence=_clamp(confidence, 0.0, 1.0),
            method=method,
            emotions=rule.emotions,
        )

    def blend_override(self, rule: SentimentResult, naive: SentimentResult) -> tuple[float, float]:
        return naive.score, naive.confidence

    def blend_agree(self, rule: SentimentResult, naive: SentimentResult) -> tuple[float, float]:
        if coarse_label(rule.label) == coarse_label(naive.label):
            return (rule.score + naive.score) / 2.0, max(rule.confidence, naive.confidence)
        return rule.score, rule.confidence


class ThresholdOverrideStrategy(CombinationStrategy):
    """Default: plain override; agreement averages scores and keeps the higher confidence."""

    name: StrategyName = "threshold_override"


class MaxConfidenceStrategy(CombinationStrategy):
    """Score and confidence follow whichever component is more confident."""

    name: StrategyName = "max_confidence"

    def blend_agree(self, rule: SentimentResult, naive: SentimentResult) -> tuple[float, float]:
        if coarse_label(rule.label) == coarse_label(naive.label) and naive.confidence > rule.confidence:
            return naive.score, naive.confidence
        return rule.score, rule.confidence


class WeightedAverageStrategy(CombinationStrategy):
    """Score and confidence are a fixed-weight mix of both components."""

    name: StrategyName = "weighted_average"

    def __init__(self, threshold: float = DEFAULT_OVERRIDE_THRESHOLD, rule_weight: float = DEFAULT_RULE_WEIGHT):
        super().__init__(threshold)
        if not 0.0 <= rule_weight <= 1.0:
            raise ValueError("rule_weight must be in [0, 1]")
        self.rule_weight = rule_weight

    def _mix(self, rule: SentimentResult, naive: SentimentResult) -> tuple[float, float]:
        w = self.rule_weight
        return (
            w * rule.score + (1.0 - w) * naive.score,
            w * rule.confidence + (1.0 - w) * naive.confidence,
        )

    def blend_override(self, rule: SentimentResult, naive: SentimentResult) -> tuple[float, float]:
        return self._mix(rule, naive)

    def blend_agree(self, rule: SentimentResult, naive: SentimentResult) -> tuple[float, float]:
        if coarse_label(rule.label) == coarse_label(naive.label):
            return self._mix(rule, naive)
        return rule.score, rule.confidence


STRATEGIES: Mapping[str, type[CombinationStrategy]] = {
    "threshold_override": ThresholdOverrideStrategy,
    "max_confidence": MaxConfidenceStrategy,
    "weighted_average": WeightedAverageStrategy,
}


def build_strategy(name: str, threshold: Optional[float] = None) -> CombinationStrategy:
    """
    Raises:
        ValueError: unknown strategy name or threshold outside [0, 1].
    """
    try:
        cls = STRATEGIES[name]
    except KeyError:
        raise ValueError(f"Unknown combination strategy: {name}") from None
    if threshold is None:
        return cls()
    return cls(threshold=threshold)
