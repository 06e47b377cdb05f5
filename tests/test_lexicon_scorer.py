from __future__ import annotations

import math

import pytest

from sentiment_engine.lexicon_scorer import MIN_CONFIDENCE, LexiconScorer, length_factor
from sentiment_engine.sentiment_types import label_for_score


def _scorer() -> LexiconScorer:
    return LexiconScorer()


@pytest.mark.parametrize(
    "text",
    [
        "I love this",
        "I hate this so much, worst purchase ever!!!",
        "not very good",
        "Me encanta, es increíble 😍",
        "Das ist nicht gut",
        "C'est vraiment nul :(",
        "the package arrived on tuesday",
        "",
    ],
)
def test_result_ranges(text):
    r = _scorer().score(text)
    assert -1.0 <= r.score <= 1.0
    assert r.magnitude >= 0.0
    assert 0.0 <= r.confidence <= 1.0
    assert r.method == "rule"
    assert r.label == label_for_score(r.score)
    assert r.emotions is not None
    assert all(0.0 <= v <= 1.0 for v in r.emotions.to_dict().values())


def test_positive_text():
    r = _scorer().score("I love this")
    assert r.score > 0.2
    assert r.label in ("positive", "very_positive")


def test_negative_text():
    r = _scorer().score("I hate this")
    assert r.score < -0.2
    assert r.label in ("negative", "very_negative")


def test_negation_flips_and_dampens():
    s = _scorer()
    assert s.score("not very good").score < 0.0 < s.score("very good").score
    assert s.score("not bad").score > 0.0


def test_intensity_never_lowers_magnitude():
    s = _scorer()
    assert abs(s.score("SO GOOD!!!").score) >= abs(s.score("good").score)


def test_empty_text_is_neutral_low_confidence():
    for text in ("", "   ", None, 123):
        r = _scorer().score(text)
        assert r.score == 0.0
        assert r.label == "neutral"
        assert r.confidence == pytest.approx(MIN_CONFIDENCE)


def test_text_without_sentiment_words_is_neutral():
    r = _scorer().score("the package arrived on tuesday")
    assert r.score == 0.0
    assert r.magnitude == 0.0
    assert r.label == "neutral"


def test_multilingual_lexicons():
    s = _scorer()
    assert s.score("es excelente y fantastico").score > 0.2
    assert s.score("das ist schrecklich").score < 0.0


def test_joy_emotion_for_happy_text():
    r = _scorer().score("I am so happy today")
    assert r.emotions is not None
    assert r.emotions.joy > 0.0
    assert r.emotions.dominant() == "joy"


def test_emotions_can_be_disabled():
    assert _scorer().score("I love this", enable_emotions=False).emotions is None


def test_explain_reports_negation_and_intensifiers():
    b = _scorer().explain("not very good")
    assert b.tokens == ["not", "very", "good"]
    assert b.negation_flips == 1
    assert b.intensified == 1


def _intensity(text: str) -> float:
    return _scorer().explain(text).contributions[-1].intensity


def test_single_word_score_is_exact():
    # "hate" at position 1 of 3: weight 1.1, length factor ln(4)/ln(20).
    assert _scorer().score("I hate this").score == pytest.approx(-1.1 * math.log(4) / math.log(20))


def test_intensified_score_is_exact():
    assert _scorer().score("very good").score == pytest.approx(1.5 * 1.15 * math.log(3) / math.log(20))


@pytest.mark.parametrize(
    ("text", "multiplier"),
    [
        ("extremely good", 2.0),
        ("very good", 1.5),
        ("deeply good", 1.3),
        ("somewhat good", 1.2),
        ("good", 1.0),
    ],
)
def test_intensifier_tiers(text, multiplier):
    assert _intensity(text) == pytest.approx(multiplier)


def test_nearest_intensifier_wins():
    assert _intensity("somewhat extremely good") == pytest.approx(2.0)
    assert _intensity("extremely somewhat good") == pytest.approx(1.2)


def test_intensifier_window_is_three_tokens():
    assert _intensity("very the red good") == pytest.approx(1.5)
    assert _intensity("very the red car good") == pytest.approx(1.0)


def test_negation_window_is_four_tokens():
    s = _scorer()
    assert s.explain("not the red car good").contributions[0].negated
    assert not s.explain("not the red blue car good").contributions[0].negated
    assert s.score("not the red blue car good").score > 0.0


def test_position_weight_and_length_factor():
    c = _scorer().explain("i think this is good").contributions[0]
    assert c.position_weight == pytest.approx(1.24)
    assert length_factor(19) == pytest.approx(1.0)
    assert length_factor(100) == 1.0
    assert length_factor(1) == pytest.approx(math.log(2) / math.log(20))


def test_positive_polarity_biases_joy():
    r = _scorer().score("very good")
    assert r.emotions.joy == pytest.approx(0.4 * r.score)
    assert r.emotions.sadness == 0.0


def test_negative_polarity_splits_sadness_and_anger():
    r = _scorer().score("useless product")
    assert r.score == pytest.approx(-math.log(3) / math.log(20))
    assert r.emotions.sadness == pytest.approx(0.3 * abs(r.score))
    assert r.emotions.anger == pytest.approx(0.2 * abs(r.score))
    assert r.emotions.joy == 0.0


def test_english_name_is_not_read_as_negation():
    b = _scorer().explain("Ned is great")
    assert b.negation_flips == 0
    assert _scorer().score("Ned is great").score > 0.0
