from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Literal, Mapping, Optional


SentimentLabel = Literal["very_negative", "negative", "neutral", "positive", "very_positive"]
ClassLabel = Literal["positive", "negative", "neutral"]
AnalysisMethod = Literal["rule", "naive", "hybrid"]
LanguageCode = Literal["en", "es", "de", "fr"]

# Iteration order doubles as the arg-max tie-break order.
CLASS_LABELS: tuple[ClassLabel, ...] = ("positive", "negative", "neutral")
EMOTION_NAMES = ("joy", "sadness", "anger", "fear", "surprise", "disgust")


def label_for_score(score: float) -> SentimentLabel:
    """Step function from a polarity score in [-1, 1] to a five-way label."""
    if score >= 0.6:
        return "very_positive"
    if score >= 0.2:
        return "positive"
    if score <= -0.6:
        return "very_negative"
    if score <= -0.2:
        return "negative"
    return "neutral"


def coarse_label(label: str) -> ClassLabel:
    """Fold very_* labels onto the three classifier classes."""
    if label == "very_positive":
        return "positive"
    if label == "very_negative":
        return "negative"
    return label  # type: ignore[return-value]


@dataclass(frozen=True)
class EmotionVector:
    """
    Independent emotion intensities, each in [0, 1].

    Not a probability distribution: several emotions may be high at once.
    """

    joy: float = 0.0
    sadness: float = 0.0
    anger: float = 0.0
    fear: float = 0.0
    surprise: float = 0.0
    disgust: float = 0.0

    def to_dict(self) -> dict[str, float]:
        return asdict(self)

    def dominant(self) -> Optional[str]:
        name, value = max(self.to_dict().items(), key=lambda kv: kv[1])
        return name if value > 0.0 else None


@dataclass(frozen=True)
class SentimentResult:
    """
    Standardized sentiment output.

    - score: polarity in [-1, 1]
    - magnitude: overall emotional strength, >= 0
    - label: five-way label
    - confidence: [0, 1], how much the producing path trusts its label
    - emotions: emotion profile from the rule engine (None when disabled)
    - method: rule|naive|hybrid, the path that produced the label
    """

    score: float
    magnitude: float
    label: SentimentLabel
    confidence: float
    method: AnalysisMethod
    emotions: Optional[EmotionVector] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "magnitude": self.magnitude,
            "label": self.label,
            "confidence": self.confidence,
            "method": self.method,
            "emotions": self.emotions.to_dict() if self.emotions is not None else None,
        }


def neutral_result(
        method: AnalysisMethod = "rule",
        confidence: float = 0.0,
        emotions: Optional[EmotionVector] = None,
) -> SentimentResult:
    return SentimentResult(
        score=0.0,
        magnitude=0.0,
        label="neutral",
        confidence=confidence,
        method=method,
        emotions=emotions,
    )


@dataclass(frozen=True)
class PredictionResult:
    """
    Statistical classifier output.

    - label: positive|negative|neutral
    - confidence: probability of the predicted label
    - probabilities: mapping of every class to probability (sum 1)
    """

    label: ClassLabel
    confidence: float
    probabilities: Mapping[ClassLabel, float]

    @property
    def polarity(self) -> float:
        """p(positive) - p(negative), in [-1, 1]."""
        return float(self.probabilities.get("positive", 0.0) - self.probabilities.get("negative", 0.0))

    def to_dict(self) -> dict[str, Any]:
        return {
            "label": self.label,
            "confidence": self.confidence,
            "probabilities": dict(self.probabilities),
        }


@dataclass(frozen=True)
class TrainingExample:
    text: str
    label: ClassLabel


@dataclass(frozen=True)
class BrandMention:
    """A brand keyword found in the text with the rule-engine sentiment of its context."""

    brand: str
    context: str
    count: int
    sentiment: SentimentResult

    def to_dict(self) -> dict[str, Any]:
        return {
            "brand": self.brand,
            "context": self.context,
            "count": self.count,
            "sentiment": self.sentiment.to_dict(),
        }


@dataclass(frozen=True)
class HashtagSentiment:
    hashtag: str
    frequency: int
    sentiment: SentimentResult

    def to_dict(self) -> dict[str, Any]:
        return {
            "hashtag": self.hashtag,
            "frequency": self.frequency,
            "sentiment": self.sentiment.to_dict(),
        }


@dataclass(frozen=True)
class AnalyzedText:
    """
    Output schema for downstream consumers (HTTP layer, insight derivation).

    keywords, brand mentions and hashtag sentiment always come from the rule
    engine, whichever path supplied the label.
    """

    text: str
    language: LanguageCode
    sentiment: SentimentResult
    keywords: list[str] = field(default_factory=list)
    brand_mentions: list[BrandMention] = field(default_factory=list)
    hashtags: list[HashtagSentiment] = field(default_factory=list)
    rule_result: Optional[SentimentResult] = None
    prediction: Optional[PredictionResult] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "language": self.language,
            "sentiment": self.sentiment.to_dict(),
            "keywords": list(self.keywords),
            "brand_mentions": [m.to_dict() for m in self.brand_mentions],
            "hashtags": [h.to_dict() for h in self.hashtags],
            "rule_result": self.rule_result.to_dict() if self.rule_result else None,
            "prediction": self.prediction.to_dict() if self.prediction else None,
        }
