from __future__ import annotations

import re
from typing import Any, Iterable, Optional, Sequence

from sentiment_engine.lexicon_scorer import LexiconScorer
from sentiment_engine.normalizer import normalize_and_tokenize
from sentiment_engine.sentiment_types import BrandMention, HashtagSentiment, LanguageCode

MAX_KEYWORDS = 10
MIN_KEYWORD_LENGTH = 3

# Characters of raw text kept on each side of a brand or hashtag occurrence.
CONTEXT_CHARS = 30

_HASHTAG_RE = re.compile(r"#(\w+)")


def context_window(text: str, start: int, end: int, width: int = CONTEXT_CHARS) -> str:
    return text[max(0, start - width) : min(len(text), end + width)].strip()


def extract_keywords(
        text: Any,
        stopwords: Iterable[str] = (),
        limit: int = MAX_KEYWORDS,
) -> list[str]:
    """
    Keywords in order of appearance, hashtags and mentions first.

    Rules:
    - plain words need MIN_KEYWORD_LENGTH+ letters and must not be stop words
    - duplicates are dropped
    - at most `limit` entries
    """
    _, tokens = normalize_and_tokenize(text)
    stop = frozenset(stopwords)

    tagged = [t for t in tokens if t[0] in "#@" and len(t) > 1]
    words = [
        t
        for t in tokens
        if t.isalpha() and len(t) >= MIN_KEYWORD_LENGTH and t not in stop
    ]

    out: list[str] = []
    seen: set[str] = set()
    for t in tagged + words:
        if t in seen:
            continue
        seen.add(t)
        out.append(t)
        if len(out) >= limit:
            break
    return out


def extract_brand_mentions(
        text: Any,
        brands: Sequence[str],
        scorer: LexiconScorer,
) -> list[BrandMention]:
    """
    One BrandMention per brand keyword found in text (whole-word, case-insensitive).

    The mention sentiment is the rule engine's score of the text around the
    first occurrence, so it stays stable whichever path labelled the text.
    """
    if not isinstance(text, str) or not text.strip():
        return []

    mentions: list[BrandMention] = []
    for brand in brands:
        brand = brand.strip()
        if not brand:
            continue
        pattern = re.compile(rf"(?<!\w){re.escape(brand)}(?!\w)", re.IGNORECASE)
        matches = list(pattern.finditer(text))
        if not matches:
            continue
        first = matches[0]
        context = context_window(text, first.start(), first.end())
        mentions.append(
            BrandMention(
                brand=brand,
                context=context,
                count=len(matches),
                sentiment=scorer.score(context, enable_emotions=False),
            )
        )
    return mentions


def hashtag_sentiments(text: Any, scorer: LexiconScorer) -> list[HashtagSentiment]:
    """Rule-engine sentiment of each distinct hashtag, scored with its surrounding text."""
    if not isinstance(text, str) or not text.strip():
        return []

    found: dict[str, list[re.Match[str]]] = {}
    for m in _HASHTAG_RE.finditer(text):
        found.setdefault(m.group(1).lower(), []).append(m)

    out: list[HashtagSentiment] = []
    for tag, matches in found.items():
        first = matches[0]
        context = context_window(text, first.start(), first.end())
        out.append(
            HashtagSentiment(
                hashtag=f"#{tag}",
                frequency=len(matches),
                sentiment=scorer.score(context, enable_emotions=False),
            )
        )
    return out


def keyword_stopwords(scorer: LexiconScorer, language: Optional[LanguageCode]) -> frozenset[str]:
    stopwords = scorer.lexicons.stopwords
    if language is None:
        return frozenset().union(*stopwords.values())
    return stopwords.get(language, frozenset())
