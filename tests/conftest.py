from __future__ import annotations

import pytest

from sentiment_engine.sentiment_types import TrainingExample

_SUBJECTS = ["this phone", "the service", "my order", "the app", "the delivery"]
_POSITIVE = ["love", "great", "amazing", "excellent", "wonderful", "fantastic", "awesome", "perfect", "happy", "best"]
_NEGATIVE = ["hate", "terrible", "awful", "horrible", "worst", "bad", "disappointing", "useless", "broken", "angry"]
_DAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]
_NOUNS = ["receipt", "invoice", "manual", "charger", "label", "box"]


def balanced_examples() -> list[TrainingExample]:
    """100 templated examples: 34 positive, 33 negative, 33 neutral."""
    out: list[TrainingExample] = []
    for i in range(34):
        subject = _SUBJECTS[i % len(_SUBJECTS)]
        out.append(TrainingExample(f"{subject} is {_POSITIVE[i % 10]} and {_POSITIVE[(i + 3) % 10]}", "positive"))
    for i in range(33):
        subject = _SUBJECTS[i % len(_SUBJECTS)]
        out.append(TrainingExample(f"{subject} is {_NEGATIVE[i % 10]} and {_NEGATIVE[(i + 3) % 10]}", "negative"))
    for i in range(33):
        subject = _SUBJECTS[i % len(_SUBJECTS)]
        out.append(TrainingExample(f"{subject} arrived on {_DAYS[i % 7]} with the {_NOUNS[i % 6]}", "neutral"))
    return out


@pytest.fixture
def examples() -> list[TrainingExample]:
    return balanced_examples()
