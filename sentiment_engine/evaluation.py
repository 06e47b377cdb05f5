from __future__ import annotations

import logging
import math
from collections import Counter
from dataclasses import dataclass
from typing import Any, Callable, Sequence

import numpy as np
from sklearn import metrics, model_selection

from sentiment_engine.sentiment_types import CLASS_LABELS, ClassLabel, TrainingExample, coarse_label

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClassMetrics:
    precision: float
    recall: float
    f1: float
    support: int

    def to_dict(self) -> dict[str, Any]:
        return {"precision": self.precision, "recall": self.recall, "f1": self.f1, "support": self.support}


@dataclass(frozen=True)
class EvaluationReport:
    """
    Classification metrics over a labelled test set.

    confusion[i][j] counts examples of true class labels[i] predicted as labels[j].
    """

    labels: tuple[ClassLabel, ...]
    confusion: list[list[int]]
    accuracy: float
    per_class: dict[ClassLabel, ClassMetrics]
    macro_precision: float
    macro_recall: float
    macro_f1: float
    total: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "labels": list(self.labels),
            "confusion": self.confusion,
            "accuracy": self.accuracy,
            "per_class": {k: v.to_dict() for k, v in self.per_class.items()},
            "macro_precision": self.macro_precision,
            "macro_recall": self.macro_recall,
            "macro_f1": self.macro_f1,
            "total": self.total,
        }


def confusion_matrix(
        expected: Sequence[str],
        predicted: Sequence[str],
        labels: Sequence[str] = CLASS_LABELS,
) -> np.ndarray:
    """
    Raises:
        ValueError: if the sequences differ in length or hold an unknown label.
    """
    if len(expected) != len(predicted):
        raise ValueError("expected and predicted must have the same length")
    # sklearn silently drops labels outside `labels`.
    unknown = (set(expected) | set(predicted)) - set(labels)
    if unknown:
        raise ValueError(f"Unknown label: {next(iter(unknown))!r}")
    if not expected:
        return np.zeros((len(labels), len(labels)), dtype=np.int64)
    return metrics.confusion_matrix(list(expected), list(predicted), labels=list(labels))


def evaluate_labels(
        expected: Sequence[str],
        predicted: Sequence[str],
        labels: Sequence[ClassLabel] = CLASS_LABELS,
) -> EvaluationReport:
    """Accuracy, per-class precision/recall/F1 and macro averages from label pairs."""
    matrix = confusion_matrix(expected, predicted, labels)
    total = len(expected)
    if total == 0:
        zero = ClassMetrics(precision=0.0, recall=0.0, f1=0.0, support=0)
        return EvaluationReport(
            labels=tuple(labels),
            confusion=matrix.tolist(),
            accuracy=0.0,
            per_class={label: zero for label in labels},
            macro_precision=0.0,
            macro_recall=0.0,
            macro_f1=0.0,
            total=0,
        )

    precision, recall, f1, support = metrics.precision_recall_fscore_support(
        list(expected), list(predicted), labels=list(labels), zero_division=0
    )
    per_class: dict[ClassLabel, ClassMetrics] = {
        label: ClassMetrics(
            precision=float(precision[i]),
            recall=float(recall[i]),
            f1=float(f1[i]),
            support=int(support[i]),
        )
        for i, label in enumerate(labels)
    }
    return EvaluationReport(
        labels=tuple(labels),
        confusion=matrix.tolist(),
        accuracy=float(metrics.accuracy_score(list(expected), list(predicted))),
        per_class=per_class,
        macro_precision=float(np.mean(precision)),
        macro_recall=float(np.mean(recall)),
        macro_f1=float(np.mean(f1)),
        total=total,
    )


def evaluate(
        predict_label: Callable[[str], str],
        examples: Sequence[TrainingExample],
) -> EvaluationReport:
    """
    Run predict_label over examples and score it.

    predict_label may return five-way labels; they are folded to the three
    classifier classes before comparison.
    """
    expected = [ex.label for ex in examples]
    predicted = [coarse_label(predict_label(ex.text)) for ex in examples]
    report = evaluate_labels(expected, predicted)
    logger.info(
        "Evaluation completed: examples=%s accuracy=%.3f macro_f1=%.3f",
        report.total,
        report.accuracy,
        report.macro_f1,
    )
    return report


def train_test_split(
        examples: Sequence[TrainingExample],
        test_fraction: float = 0.2,
        seed: int = 42,
) -> tuple[list[TrainingExample], list[TrainingExample]]:
    """
    Deterministic split, stratified by label whenever the counts allow it.

    Rules:
    - same examples and seed -> same split
    - stratified when every label has 2+ examples and each side can hold one per label
    - fewer than 2 examples -> everything goes to train

    Raises:
        ValueError: if test_fraction is outside (0, 1).
    """
    if not 0.0 < test_fraction < 1.0:
        raise ValueError("test_fraction must be in (0, 1)")

    items = list(examples)
    if len(items) < 2:
        return items, []

    labels = [ex.label for ex in items]
    counts = Counter(labels)
    n_test = math.ceil(test_fraction * len(items))
    n_train = len(items) - n_test
    stratify = (
        labels
        if min(counts.values()) >= 2 and min(n_test, n_train) >= len(counts)
        else None
    )
    if stratify is None:
        logger.warning("Split is not stratified: examples=%s classes=%s", len(items), dict(counts))

    train, test = model_selection.train_test_split(
        items, test_size=test_fraction, random_state=seed, stratify=stratify
    )
    return list(train), list(test)
