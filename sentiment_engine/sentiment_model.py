from __future__ import annotations

import logging
import math
import threading
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional, Sequence, Union

import numpy as np

from sentiment_engine.errors import TrainingDataError, UntrainedModelError
from sentiment_engine.language import LanguageDetector
from sentiment_engine.lexicons import SUPPORTED_LANGUAGES, Lexicons, load_lexicons
from sentiment_engine.normalizer import normalize_and_tokenize
from sentiment_engine.sentiment_types import (
    CLASS_LABELS,
    ClassLabel,
    LanguageCode,
    PredictionResult,
    TrainingExample,
)

logger = logging.getLogger(__name__)

ExampleLike = Union[TrainingExample, Mapping[str, Any]]

# Returned when a text has no usable tokens after filtering.
FALLBACK_PROBABILITIES: Mapping[ClassLabel, float] = MappingProxyType(
    {"positive": 0.33, "negative": 0.33, "neutral": 0.34}
)
FALLBACK_CONFIDENCE = 0.5

# Content words after a negator are counted as NOT_<word> instead of <word>.
NEGATION_FEATURE_WINDOW = 3
NEGATION_PREFIX = "NOT_"


@dataclass(frozen=True)
class ClassifierConfig:
    smoothing: float = 1.0
    batch_size: int = 64
    default_language: LanguageCode = "en"
    detect_language: bool = True
    filter_stopwords: bool = True

    def __post_init__(self) -> None:
        if self.smoothing <= 0.0:
            raise ValueError("smoothing must be > 0")
        if self.batch_size <= 0:
            raise ValueError("batch_size must be > 0")
        if self.default_language not in SUPPORTED_LANGUAGES:
            raise ValueError(f"Unsupported default_language: {self.default_language}")


@dataclass(frozen=True)
class ClassModel:
    """
    Immutable count tables produced by one train() call.

    Shared read-only by concurrent predictions; a retrain builds a new
    instance instead of mutating this one.
    """

    class_counts: Mapping[ClassLabel, int]
    token_counts: Mapping[ClassLabel, Mapping[str, int]]
    total_tokens: Mapping[ClassLabel, int]
    vocabulary: Mapping[str, int]
    total_documents: int
    dataset_size: int
    trained_at: str  # ISO8601 UTC

    @property
    def vocabulary_size(self) -> int:
        return len(self.vocabulary)


def freeze_model(
        class_counts: Mapping[str, int],
        token_counts: Mapping[str, Mapping[str, int]],
        vocabulary: Mapping[str, int],
        dataset_size: int,
        trained_at: Optional[str] = None,
        total_tokens: Optional[Mapping[str, int]] = None,
) -> ClassModel:
    """Wrap plain count tables into a read-only ClassModel covering every class."""
    frozen_tokens = {
        label: MappingProxyType(dict(token_counts.get(label, {}))) for label in CLASS_LABELS
    }
    if total_tokens is None:
        totals = {label: sum(frozen_tokens[label].values()) for label in CLASS_LABELS}
    else:
        totals = {label: int(total_tokens.get(label, 0)) for label in CLASS_LABELS}
    counts = {label: int(class_counts.get(label, 0)) for label in CLASS_LABELS}
    return ClassModel(
        class_counts=MappingProxyType(counts),
        token_counts=MappingProxyType(frozen_tokens),
        total_tokens=MappingProxyType(totals),
        vocabulary=MappingProxyType(dict(vocabulary)),
        total_documents=sum(counts.values()),
        dataset_size=dataset_size,
        trained_at=trained_at or datetime.now(timezone.utc).isoformat(),
    )


class NaiveBayesClassifier:
    """
    Multinomial naive Bayes over bag-of-words features:
    - train() rebuilds every count table and swaps them in at once
    - predict() reads one immutable ClassModel reference, no locking
    - Laplace smoothing with the vocabulary size shared by all classes

    Concurrent train() calls are serialized by a writer lock; a predict()
    racing a train() sees either the old model or the new one, never a mix.
    """

    def __init__(
            self,
            cfg: Optional[ClassifierConfig] = None,
            lexicons: Optional[Lexicons] = None,
            detector: Optional[LanguageDetector] = None,
    ):
        self._cfg = cfg or ClassifierConfig()
        self._lex = lexicons if lexicons is not None else load_lexicons()
        self._detector = detector or LanguageDetector.from_lexicons(
            self._lex, fallback=self._cfg.default_language
        )
        self._write_lock = threading.Lock()
        self._model: Optional[ClassModel] = None

    @property
    def config(self) -> ClassifierConfig:
        return self._cfg

    @property
    def is_trained(self) -> bool:
        return self._model is not None

    @property
    def model(self) -> Optional[ClassModel]:
        return self._model

    def tokens(self, text: Any, language: Optional[LanguageCode] = None) -> list[str]:
        """
        Feature tokens: normalized words minus stop words and 1-char tokens.

        Rules:
        - stop words and negators come from the hinted language, else the detected one
        - the NEGATION_FEATURE_WINDOW content words after a negator become NOT_<word>
        """
        _, words = normalize_and_tokenize(text)
        if not words:
            return []
        if language is None:
            language = (
                self._detector.detect(text) if self._cfg.detect_language else self._cfg.default_language
            )
        stopwords: frozenset[str] = frozenset()
        if self._cfg.filter_stopwords:
            stopwords = self._lex.stopwords.get(language, frozenset())
        negators = self._lex.negators_by_language.get(language, self._lex.negators)
        out: list[str] = []
        negated_left = 0
        for w in words:
            w = w.lstrip("#")
            if w in negators:
                negated_left = NEGATION_FEATURE_WINDOW
                if len(w) > 1 and w not in stopwords:
                    out.append(w)
                continue
            if len(w) <= 1 or w in stopwords:
                continue
            if negated_left:
                out.append(NEGATION_PREFIX + w)
                negated_left -= 1
            else:
                out.append(w)
        return out

    def train(self, examples: Iterable[ExampleLike]) -> int:
        """
        Replace all prior state with counts built from examples.

        Rules:
        - unusable examples (no text, unknown label, zero tokens) are skipped and logged
        - zero usable examples -> prior state kept as-is (untrained stays untrained)
        - returns the number of examples used
        """
        with self._write_lock:
            class_counts: Counter[str] = Counter()
            token_counts: dict[str, Counter[str]] = {label: Counter() for label in CLASS_LABELS}
            vocabulary: Counter[str] = Counter()
            seen = 0
            skipped = 0

            for index, example in enumerate(examples):
                seen += 1
                try:
                    label, tokens = self._prepare_example(index, example)
                except TrainingDataError as e:
                    skipped += 1
                    logger.warning("Training example skipped: index=%s reason=%s", e.index, e.reason)
                    continue

                class_counts[label] += 1
                vocabulary.update(tokens)
                token_counts[label].update(tokens)

            used = sum(class_counts.values())
            if used == 0:
                logger.warning(
                    "Training produced no usable examples: seen=%s skipped=%s trained=%s",
                    seen,
                    skipped,
                    self.is_trained,
                )
                return 0

            model = freeze_model(class_counts, token_counts, vocabulary, dataset_size=used)
            self._model = model

        logger.info(
            "Training completed: documents=%s skipped=%s vocabulary=%s classes=%s",
            model.total_documents,
            skipped,
            model.vocabulary_size,
            dict(model.class_counts),
        )
        return used

    def install(self, model: ClassModel) -> None:
        """Swap in a prebuilt model (e.g. one restored from a snapshot)."""
        with self._write_lock:
            self._model = model
        logger.info(
            "Model installed: documents=%s vocabulary=%s trained_at=%s",
            model.total_documents,
            model.vocabulary_size,
            model.trained_at,
        )

    def predict(self, text: Any, language: Optional[LanguageCode] = None) -> PredictionResult:
        """
        Predict the class of one text.

        Rules:
        - zero usable tokens -> neutral fallback (0.33/0.33/0.34), confidence 0.5
        - ties resolve in the order positive, negative, neutral

        Raises:
            UntrainedModelError: if train() never succeeded and no model was installed.
        """
        model = self._model
        if model is None:
            raise UntrainedModelError()

        tokens = self.tokens(text, language)
        if not tokens:
            return PredictionResult(
                label="neutral",
                confidence=FALLBACK_CONFIDENCE,
                probabilities=dict(FALLBACK_PROBABILITIES),
            )

        log_scores = np.array([self._log_score(model, label, tokens) for label in CLASS_LABELS])
        probs = _softmax(log_scores)
        pos, neg, neu = float(probs[0]), float(probs[1]), float(probs[2])
        label = _argmax_label(neg, neu, pos)
        probabilities: dict[ClassLabel, float] = {"positive": pos, "negative": neg, "neutral": neu}
        return PredictionResult(
            label=label,
            confidence=probabilities[label],
            probabilities=probabilities,
        )

    def predict_many(self, texts: Sequence[Any]) -> list[PredictionResult]:
        """
        Predict a list of texts, preserving order.

        Raises:
            UntrainedModelError: if the classifier is untrained.
        """
        if self._model is None:
            raise UntrainedModelError()

        results: list[PredictionResult] = []
        for batch in _batched(texts, self._cfg.batch_size):
            results.extend(self.predict(t) for t in batch)
        return results

    def stats(self) -> dict[str, Any]:
        model = self._model
        if model is None:
            return {"trained": False, "vocabulary_size": 0, "total_documents": 0}
        return {
            "trained": True,
            "vocabulary_size": model.vocabulary_size,
            "total_documents": model.total_documents,
            "dataset_size": model.dataset_size,
            "class_counts": dict(model.class_counts),
            "total_tokens": dict(model.total_tokens),
            "smoothing": self._cfg.smoothing,
            "trained_at": model.trained_at,
        }

    def _prepare_example(self, index: int, example: ExampleLike) -> tuple[ClassLabel, list[str]]:
        if isinstance(example, TrainingExample):
            text, label = example.text, example.label
        elif isinstance(example, Mapping):
            text, label = example.get("text"), example.get("label")
        else:
            raise TrainingDataError(index, f"unsupported example type {type(example).__name__}")

        if not isinstance(text, str) or not text.strip():
            raise TrainingDataError(index, "missing text")
        if label not in CLASS_LABELS:
            raise TrainingDataError(index, f"missing or unknown label {label!r}")

        tokens = self.tokens(text)
        if not tokens:
            raise TrainingDataError(index, "no usable tokens")
        return label, tokens

    def _log_score(self, model: ClassModel, label: ClassLabel, tokens: Sequence[str]) -> float:
        class_count = model.class_counts[label]
        if class_count == 0:
            return -math.inf

        alpha = self._cfg.smoothing
        counts = model.token_counts[label]
        denominator = model.total_tokens[label] + alpha * model.vocabulary_size
        score = math.log(class_count / model.total_documents)
        for token in tokens:
            score += math.log((counts.get(token, 0) + alpha) / denominator)
        return score


def _softmax(log_scores: np.ndarray) -> np.ndarray:
    # Max-subtracted; -inf entries (classes without documents) map to 0.
    shifted = log_scores - np.max(log_scores)
    exp = np.exp(shifted)
    return exp / exp.sum()


def _argmax_label(neg: float, neu: float, pos: float) -> ClassLabel:
    if pos >= neu and pos >= neg:
        return "positive"
    if neg >= neu and neg >= pos:
        return "negative"
    return "neutral"


def _batched(items: Sequence[Any], batch_size: int) -> Iterable[Sequence[Any]]:
    for i in range(0, len(items), batch_size):
        yield items[i : i + batch_size]
