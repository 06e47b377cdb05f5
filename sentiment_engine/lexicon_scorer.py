from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from sentiment_engine.lexicons import Lexicons, load_lexicons
from sentiment_engine.normalizer import normalize_and_tokenize
from sentiment_engine.sentiment_types import (
    EMOTION_NAMES,
    EmotionVector,
    SentimentResult,
    label_for_score,
    neutral_result,
)

logger = logging.getLogger(__name__)

# Tokens scanned before a polarity word for an intensifier / a negator.
INTENSIFIER_WINDOW = 3
NEGATION_WINDOW = 4

# Negation flips polarity and dampens it; it never cancels the magnitude.
N_SCALAR = -0.75

# Later words weigh up to 30% more than the first one.
POSITION_BOOST = 0.3

# Texts of 19+ tokens get the full length factor.
LENGTH_SATURATION = 20

MIN_CONFIDENCE = 0.1
MAX_CONFIDENCE = 0.95

# Emotion keyword density is scaled by this before clamping.
EMOTION_DENSITY_SCALE = 3.0
SUBSTRING_MATCH_WEIGHT = 0.5

# Overall-polarity bias applied to the emotion profile.
JOY_BIAS_THRESHOLD = 0.3
JOY_BIAS = 0.4
NEGATIVE_BIAS_THRESHOLD = -0.3
SADNESS_BIAS = 0.3
ANGER_BIAS = 0.2


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def find_intensifier(words: Sequence[str], i: int, intensifiers) -> float:
    """
    Multiplier of the nearest intensifier within INTENSIFIER_WINDOW tokens
    before position i, or 1.0 when there is none.
    """
    for j in range(i - 1, max(-1, i - INTENSIFIER_WINDOW - 1), -1):
        multiplier = intensifiers.get(words[j])
        if multiplier is not None:
            return multiplier
    return 1.0


def negated(words: Sequence[str], i: int, negators) -> bool:
    """True if a negator appears within NEGATION_WINDOW tokens before position i."""
    start = max(0, i - NEGATION_WINDOW)
    return any(words[j] in negators for j in range(start, i))


def length_factor(token_count: int) -> float:
    return min(1.0, math.log(token_count + 1) / math.log(LENGTH_SATURATION))


@dataclass(frozen=True)
class TokenContribution:
    token: str
    position: int
    base: float
    intensity: float
    negated: bool
    position_weight: float

    @property
    def adjusted(self) -> float:
        value = self.base * self.intensity
        if self.negated:
            value *= N_SCALAR
        return value * self.position_weight


@dataclass(frozen=True)
class ScoreBreakdown:
    """Per-token signals behind a rule-engine score."""

    normalized_text: str
    tokens: list[str]
    contributions: list[TokenContribution] = field(default_factory=list)

    @property
    def negation_flips(self) -> int:
        return sum(1 for c in self.contributions if c.negated)

    @property
    def intensified(self) -> int:
        return sum(1 for c in self.contributions if c.intensity != 1.0)


class LexiconScorer:
    """
    Lexicon-driven contextual polarity scorer (the rule engine).

    Needs no training data, so it is always available and serves as the
    fallback path of the combiner.
    """

    def __init__(self, lexicons: Optional[Lexicons] = None):
        self._lex = lexicons if lexicons is not None else load_lexicons()
        self._emotion_patterns: dict[str, list[tuple[str, re.Pattern[str]]]] = {
            name: [(kw, re.compile(rf"\b{re.escape(kw)}\b")) for kw in self._lex.emotions.get(name, ())]
            for name in EMOTION_NAMES
        }

    @property
    def lexicons(self) -> Lexicons:
        return self._lex

    def explain(self, text: Any) -> ScoreBreakdown:
        normalized, tokens = normalize_and_tokenize(text)
        contributions: list[TokenContribution] = []
        n = len(tokens)
        for i, token in enumerate(tokens):
            base = self._lex.polarity(token.lstrip("#"))
            if base == 0.0:
                continue
            contributions.append(
                TokenContribution(
                    token=token,
                    position=i,
                    base=base,
                    intensity=find_intensifier(tokens, i, self._lex.intensifiers),
                    negated=negated(tokens, i, self._lex.negators),
                    position_weight=1.0 + (i / n) * POSITION_BOOST,
                )
            )
        return ScoreBreakdown(normalized_text=normalized, tokens=tokens, contributions=contributions)

    def score(self, text: Any, enable_emotions: bool = True) -> SentimentResult:
        """
        Score polarity, magnitude, label, confidence and emotions.

        Rules:
        - empty/blank/non-string -> neutral, score 0, confidence MIN_CONFIDENCE
        - never raises on bad input
        """
        breakdown = self.explain(text)
        token_count = len(breakdown.tokens)
        if token_count == 0:
            return neutral_result(
                method="rule",
                confidence=MIN_CONFIDENCE,
                emotions=EmotionVector() if enable_emotions else None,
            )

        flagged = len(breakdown.contributions)
        raw_score = sum(c.adjusted for c in breakdown.contributions)
        raw_magnitude = sum(abs(c.adjusted) for c in breakdown.contributions)

        score = 0.0
        magnitude = 0.0
        if flagged > 0:
            factor = length_factor(token_count)
            score = clamp((raw_score / flagged) * factor, -1.0, 1.0)
            magnitude = (raw_magnitude / flagged) * factor

        density = flagged / token_count
        confidence = clamp(
            0.4 * density + 0.3 * min(1.0, token_count / 10) + 0.3 * min(1.0, magnitude),
            MIN_CONFIDENCE,
            MAX_CONFIDENCE,
        )

        emotions = (
            self.emotions(breakdown.normalized_text, token_count, score) if enable_emotions else None
        )

        logger.debug(
            "Rule score: tokens=%s flagged=%s score=%.3f magnitude=%.3f confidence=%.3f",
            token_count,
            flagged,
            score,
            magnitude,
            confidence,
        )
        return SentimentResult(
            score=score,
            magnitude=magnitude,
            label=label_for_score(score),
            confidence=confidence,
            method="rule",
            emotions=emotions,
        )

    def emotions(self, normalized_text: str, token_count: int, score: float) -> EmotionVector:
        """
        Keyword-density emotion profile, biased by overall polarity.

        Exact word matches weigh 1.0, substring-only matches SUBSTRING_MATCH_WEIGHT.
        """
        values: dict[str, float] = {}
        denominator = max(token_count, 1)
        for name, patterns in self._emotion_patterns.items():
            weighted = 0.0
            for keyword, pattern in patterns:
                total = normalized_text.count(keyword)
                if total == 0:
                    continue
                exact = len(pattern.findall(normalized_text))
                weighted += exact + max(0, total - exact) * SUBSTRING_MATCH_WEIGHT
            values[name] = min(1.0, EMOTION_DENSITY_SCALE * weighted / denominator)

        if score > JOY_BIAS_THRESHOLD:
            values["joy"] += score * JOY_BIAS
        elif score < NEGATIVE_BIAS_THRESHOLD:
            values["sadness"] += abs(score) * SADNESS_BIAS
            values["anger"] += abs(score) * ANGER_BIAS

        return EmotionVector(**{name: clamp(v, 0.0, 1.0) for name, v in values.items()})
