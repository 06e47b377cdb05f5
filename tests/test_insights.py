from __future__ import annotations

from sentiment_engine.insights import (
    MAX_KEYWORDS,
    extract_brand_mentions,
    extract_keywords,
    hashtag_sentiments,
)
from sentiment_engine.lexicon_scorer import LexiconScorer


def test_keywords_put_tags_first_and_skip_stop_words():
    kws = extract_keywords("The new shoes are great #running @nike", stopwords={"the", "are"})
    assert kws == ["#running", "@nike", "new", "shoes", "great"]


def test_keywords_are_unique_and_limited():
    text = " ".join(f"term{chr(97 + i)}" for i in range(15))
    assert extract_keywords("great great great") == ["great"]
    assert len(extract_keywords(text)) == MAX_KEYWORDS
    assert extract_keywords(None) == []


def test_brand_mentions_use_rule_sentiment_of_context():
    scorer = LexiconScorer()
    text = "Honestly the Nike store was awful, but my nike shoes are great"
    mentions = extract_brand_mentions(text, ["nike", "adidas"], scorer)

    assert len(mentions) == 1
    m = mentions[0]
    assert m.brand == "nike"
    assert m.count == 2
    assert "Nike store was awful" in m.context
    assert m.sentiment == scorer.score(m.context, enable_emotions=False)
    assert m.sentiment.method == "rule"


def test_brand_mentions_match_whole_words_only():
    mentions = extract_brand_mentions("pumas are cats", ["puma"], LexiconScorer())
    assert mentions == []


def test_multiword_brand():
    mentions = extract_brand_mentions("Love my New Balance runners", ["new balance"], LexiconScorer())
    assert [m.brand for m in mentions] == ["new balance"]


def test_hashtag_sentiments():
    scorer = LexiconScorer()
    tags = hashtag_sentiments("#Fail again, worst update ever #fail #android", scorer)
    assert [(t.hashtag, t.frequency) for t in tags] == [("#fail", 2), ("#android", 1)]
    assert tags[0].sentiment.score < 0.0
    assert hashtag_sentiments("", scorer) == []
