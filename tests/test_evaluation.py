from __future__ import annotations

import pytest

from conftest import balanced_examples
from sentiment_engine.evaluation import confusion_matrix, evaluate, evaluate_labels, train_test_split
from sentiment_engine.sentiment_types import TrainingExample


def test_metrics_match_hand_computed_confusion():
    expected = ["positive", "positive", "negative", "neutral"]
    predicted = ["positive", "negative", "negative", "positive"]

    report = evaluate_labels(expected, predicted)

    assert report.confusion == [[1, 1, 0], [0, 1, 0], [1, 0, 0]]
    assert report.accuracy == pytest.approx(0.5)
    assert report.total == 4

    pos, neg, neu = report.per_class["positive"], report.per_class["negative"], report.per_class["neutral"]
    assert (pos.precision, pos.recall, pos.f1, pos.support) == pytest.approx((0.5, 0.5, 0.5, 2))
    assert (neg.precision, neg.recall, neg.f1, neg.support) == pytest.approx((0.5, 1.0, 2 / 3, 1))
    assert (neu.precision, neu.recall, neu.f1, neu.support) == pytest.approx((0.0, 0.0, 0.0, 1))
    assert report.macro_f1 == pytest.approx((0.5 + 2 / 3 + 0.0) / 3)


def test_confusion_matrix_rejects_bad_input():
    with pytest.raises(ValueError):
        confusion_matrix(["positive"], [])
    with pytest.raises(ValueError):
        confusion_matrix(["positive"], ["sarcastic"])


def test_evaluate_folds_five_way_labels():
    examples = [TrainingExample("x", "positive"), TrainingExample("y", "negative")]
    report = evaluate(lambda t: "very_positive" if t == "x" else "very_negative", examples)
    assert report.accuracy == 1.0


def test_split_is_stratified_and_deterministic():
    examples = balanced_examples()
    train, test = train_test_split(examples, test_fraction=0.2, seed=3)

    assert len(train) + len(test) == len(examples)
    labels = [ex.label for ex in test]
    counts = (labels.count("positive"), labels.count("negative"), labels.count("neutral"))
    # 34/33/33 examples at 20%: 20 held out, the largest class rounds up.
    assert len(test) == 20
    assert counts[0] == 7
    assert sorted(counts[1:]) == [6, 7]
    assert train_test_split(examples, test_fraction=0.2, seed=3) == (train, test)


def test_split_keeps_each_label_on_both_sides():
    examples = [TrainingExample("a b", "positive"), TrainingExample("c d", "positive")]
    train, test = train_test_split(examples, test_fraction=0.1)
    assert len(train) == 1 and len(test) == 1


def test_split_rejects_bad_fraction():
    with pytest.raises(ValueError):
        train_test_split([], test_fraction=1.0)


def test_split_falls_back_when_a_label_is_too_rare():
    examples = [TrainingExample(f"text {i}", "positive") for i in range(9)]
    examples.append(TrainingExample("lonely", "negative"))
    train, test = train_test_split(examples, test_fraction=0.2, seed=1)
    assert len(test) == 2
    assert sorted(ex.text for ex in train + test) == sorted(ex.text for ex in examples)


def test_split_of_tiny_input_keeps_everything_in_train():
    one = [TrainingExample("only", "neutral")]
    assert train_test_split(one) == (one, [])
    assert train_test_split([]) == ([], [])


def test_empty_labels_give_zero_report():
    report = evaluate_labels([], [])
    assert report.total == 0
    assert report.accuracy == 0.0
    assert report.confusion == [[0, 0, 0], [0, 0, 0], [0, 0, 0]]
