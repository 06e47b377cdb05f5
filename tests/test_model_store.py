from __future__ import annotations

import json

import pytest

from conftest import balanced_examples
from sentiment_engine.errors import ConfigurationError, UntrainedModelError
from sentiment_engine.model_store import load_snapshot, save_snapshot
from sentiment_engine.sentiment_model import ClassifierConfig, NaiveBayesClassifier


def _trained(smoothing: float = 1.0) -> NaiveBayesClassifier:
    clf = NaiveBayesClassifier(ClassifierConfig(smoothing=smoothing))
    clf.train(balanced_examples())
    return clf


def test_round_trip_reproduces_predictions(tmp_path):
    clf = _trained()
    path = save_snapshot(tmp_path / "nested" / "model.json", clf)
    restored = load_snapshot(path)

    for text in ("the app is amazing", "my order is broken", "arrived on friday", "hello there"):
        assert restored.predict(text) == clf.predict(text)
    assert restored.stats() == clf.stats()


def test_snapshot_file_layout(tmp_path):
    path = save_snapshot(tmp_path / "model.json", _trained(smoothing=0.5))
    data = json.loads(path.read_text(encoding="utf-8"))
    assert set(data) == {
        "version",
        "vocabulary_size",
        "training_date",
        "dataset_size",
        "class_counts",
        "total_tokens_per_class",
        "token_counts",
        "vocabulary",
        "smoothing",
    }
    assert data["dataset_size"] == 100
    assert data["class_counts"] == {"positive": 34, "negative": 33, "neutral": 33}
    assert data["vocabulary_size"] == len(data["vocabulary"])
    assert data["smoothing"] == 0.5


def test_smoothing_is_restored_from_snapshot(tmp_path):
    path = save_snapshot(tmp_path / "model.json", _trained(smoothing=0.5))
    assert load_snapshot(path).config.smoothing == 0.5


def test_saving_untrained_classifier_raises(tmp_path):
    with pytest.raises(UntrainedModelError):
        save_snapshot(tmp_path / "model.json", NaiveBayesClassifier())


def test_malformed_snapshot_raises(tmp_path):
    bad_json = tmp_path / "bad.json"
    bad_json.write_text("{not json", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_snapshot(bad_json)

    missing_fields = tmp_path / "partial.json"
    missing_fields.write_text(json.dumps({"version": "1.0", "vocabulary_size": 3}), encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_snapshot(missing_fields)


def test_inconsistent_vocabulary_raises(tmp_path):
    path = save_snapshot(tmp_path / "model.json", _trained())
    data = json.loads(path.read_text(encoding="utf-8"))
    data["vocabulary_size"] += 1
    path.write_text(json.dumps(data), encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_snapshot(path)


def test_missing_snapshot_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_snapshot(tmp_path / "nope.json")
