from __future__ import annotations

import logging
import re
import unicodedata
from functools import lru_cache
from typing import Any, Mapping

from sentiment_engine.resources import load_json

logger = logging.getLogger(__name__)

URL_PLACEHOLDER = "link"

# Letters NFKD does not decompose into base + combining mark.
_SPECIAL_FOLDS = {
    "ß": "ss",
    "ø": "o",
    "æ": "ae",
    "œ": "oe",
    "đ": "d",
    "ł": "l",
    "ı": "i",
}

_APOSTROPHES_RE = re.compile(r"[‘’ʼ`´]")
_URL_RE = re.compile(r"(?:https?://|www\.)\S+")
_EXCLAIM_RE = re.compile(r"!{2,}")
_QUESTION_RE = re.compile(r"\?{2,}")
_ELLIPSIS_RE = re.compile(r"\.{4,}")
_CHAR_RUN_RE = re.compile(r"(\w)\1{2,}")
_DISALLOWED_RE = re.compile(r"[^\w\s.,!?#@]")
_WHITESPACE_RE = re.compile(r"\s+")
_SINGLE_CHAR_RE = re.compile(r"\b\w\b")
_TOKEN_RE = re.compile(r"[#@]?\w+")

# Pronouns/conjunctions kept even though they are one character long.
KEPT_SINGLE_CHARS = frozenset({"a", "i", "y", "o", "u"})


def fold_accents(text: str) -> str:
    """Fold accented Latin letters to their base form (é -> e, ñ -> n, ß -> ss)."""
    decomposed = unicodedata.normalize("NFKD", text)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return "".join(_SPECIAL_FOLDS.get(ch, ch) for ch in stripped)


def _alternation(keys: list[str]) -> str:
    # Longest first so "don't" wins over "d" at the same position.
    return "|".join(re.escape(k) for k in sorted(keys, key=len, reverse=True))


def _edge_guarded(token: str) -> str:
    pattern = re.escape(token)
    if re.match(r"\w", token):
        pattern = r"(?<!\w)" + pattern
    if re.search(r"\w$", token):
        pattern = pattern + r"(?!\w)"
    return pattern


class TextNormalizer:
    """
    Canonicalizes raw social-media text.

    Steps (in order):
    - lowercase, URLs -> placeholder word
    - fold accents
    - expand contractions (en/es/de/fr)
    - collapse repeated punctuation, then runs of 3+ identical letters to 2
    - emoticons/emoji -> sentiment-bearing words
    - strip characters outside word chars and .,!?#@
    - collapse whitespace, drop 1-char tokens outside KEPT_SINGLE_CHARS

    Never raises: non-string or empty input yields "".
    """

    def __init__(self, contractions: Mapping[str, str], emoticons: Mapping[str, str]):
        self._contractions = {
            fold_accents(k.lower()): fold_accents(v.lower()) for k, v in contractions.items()
        }
        self._contraction_re = (
            re.compile(r"(?<!\w)(?:" + _alternation(list(self._contractions)) + r")(?!\w)")
            if self._contractions
            else None
        )

        self._emoticons = {fold_accents(k.lower()): fold_accents(v.lower()) for k, v in emoticons.items()}
        ordered = sorted(self._emoticons, key=len, reverse=True)
        self._emoticon_re = (
            re.compile("|".join(_edge_guarded(e) for e in ordered)) if ordered else None
        )

    @classmethod
    def from_resources(cls, data_dir: str | None = None) -> "TextNormalizer":
        per_language: Mapping[str, Mapping[str, str]] = load_json("contractions.json", data_dir)
        merged: dict[str, str] = {}
        for table in per_language.values():
            for key, value in table.items():
                merged.setdefault(key, value)
        emoticons: Mapping[str, str] = load_json("emoticons.json", data_dir)
        logger.debug("Normalizer ready: contractions=%s emoticons=%s", len(merged), len(emoticons))
        return cls(merged, emoticons)

    def normalize(self, text: Any) -> str:
        if not isinstance(text, str) or not text.strip():
            return ""

        s = _APOSTROPHES_RE.sub("'", text.lower().strip())
        s = _URL_RE.sub(f" {URL_PLACEHOLDER} ", s)
        # NFKD expands some symbols to uppercase letters (™ -> TM).
        s = fold_accents(s).lower()

        if self._contraction_re is not None:
            s = self._contraction_re.sub(lambda m: self._contractions[m.group(0)], s)

        s = _EXCLAIM_RE.sub("!", s)
        s = _QUESTION_RE.sub("?", s)
        s = _ELLIPSIS_RE.sub("...", s)
        s = _CHAR_RUN_RE.sub(r"\1\1", s)

        if self._emoticon_re is not None:
            s = self._emoticon_re.sub(lambda m: f" {self._emoticons[m.group(0)]} ", s)

        s = _DISALLOWED_RE.sub(" ", s)
        s = _WHITESPACE_RE.sub(" ", s)
        s = _SINGLE_CHAR_RE.sub(lambda m: m.group(0) if m.group(0) in KEPT_SINGLE_CHARS else " ", s)
        return _WHITESPACE_RE.sub(" ", s).strip()


@lru_cache(maxsize=1)
def default_normalizer() -> TextNormalizer:
    return TextNormalizer.from_resources()


def normalize(text: Any) -> str:
    return default_normalizer().normalize(text)


def tokenize(normalized: str) -> list[str]:
    """
    Split already-normalized text into word tokens.

    Punctuation is dropped; #hashtag and @mention keep their marker.
    """
    if not normalized:
        return []
    return _TOKEN_RE.findall(normalized)


def normalize_and_tokenize(text: Any) -> tuple[str, list[str]]:
    normalized = normalize(text)
    return normalized, tokenize(normalized)
