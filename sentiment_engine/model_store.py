from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError

from sentiment_engine.errors import ConfigurationError, UntrainedModelError
from sentiment_engine.sentiment_model import (
    ClassifierConfig,
    ClassModel,
    NaiveBayesClassifier,
    freeze_model,
)
from sentiment_engine.sentiment_types import ClassLabel

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = "1.0"


class ModelSnapshot(BaseModel):
    """On-disk JSON form of a trained classifier."""

    version: str = SNAPSHOT_VERSION
    vocabulary_size: int = Field(..., ge=0)
    training_date: str
    dataset_size: int = Field(..., ge=0)
    class_counts: dict[ClassLabel, int]
    total_tokens_per_class: dict[ClassLabel, int]
    token_counts: dict[ClassLabel, dict[str, int]]
    vocabulary: dict[str, int]
    smoothing: float = Field(1.0, gt=0)


def to_snapshot(classifier: NaiveBayesClassifier) -> ModelSnapshot:
    """
    Raises:
        UntrainedModelError: if the classifier has no model to snapshot.
    """
    model = classifier.model
    if model is None:
        raise UntrainedModelError("nothing to snapshot: classifier is not trained")
    return ModelSnapshot(
        vocabulary_size=model.vocabulary_size,
        training_date=model.trained_at,
        dataset_size=model.dataset_size,
        class_counts=dict(model.class_counts),
        total_tokens_per_class=dict(model.total_tokens),
        token_counts={label: dict(counts) for label, counts in model.token_counts.items()},
        vocabulary=dict(model.vocabulary),
        smoothing=classifier.config.smoothing,
    )


def model_from_snapshot(snapshot: ModelSnapshot) -> ClassModel:
    """
    Raises:
        ConfigurationError: if the count tables are inconsistent.
    """
    if snapshot.vocabulary_size != len(snapshot.vocabulary):
        raise ConfigurationError(
            f"Snapshot vocabulary_size={snapshot.vocabulary_size} "
            f"does not match vocabulary entries={len(snapshot.vocabulary)}"
        )
    if sum(snapshot.class_counts.values()) == 0:
        raise ConfigurationError("Snapshot has no training documents")
    return freeze_model(
        class_counts=snapshot.class_counts,
        token_counts=snapshot.token_counts,
        vocabulary=snapshot.vocabulary,
        dataset_size=snapshot.dataset_size,
        trained_at=snapshot.training_date,
        total_tokens=snapshot.total_tokens_per_class,
    )


def from_snapshot(
        snapshot: ModelSnapshot,
        cfg: Optional[ClassifierConfig] = None,
) -> NaiveBayesClassifier:
    """Build a trained classifier from a snapshot; smoothing comes from the snapshot."""
    model = model_from_snapshot(snapshot)
    base = cfg or ClassifierConfig()
    classifier = NaiveBayesClassifier(
        ClassifierConfig(
            smoothing=snapshot.smoothing,
            batch_size=base.batch_size,
            default_language=base.default_language,
            detect_language=base.detect_language,
            filter_stopwords=base.filter_stopwords,
        )
    )
    classifier.install(model)
    return classifier


def save_snapshot(path: str | Path, classifier: NaiveBayesClassifier) -> Path:
    """
    Write the classifier state as JSON. Parent directories are created.

    Raises:
        UntrainedModelError: if the classifier is untrained.
    """
    snapshot = to_snapshot(classifier)
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(snapshot.model_dump_json(indent=2), encoding="utf-8")
    logger.info(
        "Snapshot saved: path=%s vocabulary=%s documents=%s",
        out,
        snapshot.vocabulary_size,
        snapshot.dataset_size,
    )
    return out


def load_snapshot(path: str | Path, cfg: Optional[ClassifierConfig] = None) -> NaiveBayesClassifier:
    """
    Raises:
        FileNotFoundError: if path does not exist.
        ConfigurationError: if the file is not a valid snapshot.
    """
    p = Path(path)
    raw = p.read_text(encoding="utf-8")
    try:
        snapshot = ModelSnapshot.model_validate(json.loads(raw))
    except (json.JSONDecodeError, ValidationError) as e:
        raise ConfigurationError(f"Malformed model snapshot {p}: {e}") from e

    if snapshot.version != SNAPSHOT_VERSION:
        logger.warning("Snapshot version mismatch: path=%s version=%s expected=%s", p, snapshot.version, SNAPSHOT_VERSION)

    classifier = from_snapshot(snapshot, cfg)
    logger.info("Snapshot loaded: path=%s trained_at=%s", p, snapshot.training_date)
    return classifier
