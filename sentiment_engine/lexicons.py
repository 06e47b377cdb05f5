from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from types import MappingProxyType
from typing import Iterable, Mapping

from sentiment_engine.errors import ConfigurationError
from sentiment_engine.normalizer import fold_accents
from sentiment_engine.resources import load_json

logger = logging.getLogger(__name__)

SUPPORTED_LANGUAGES = ("en", "es", "de", "fr")

# Tier lookup order: a word listed in several tiers keeps the strongest one.
INTENSIFIER_TIERS = ("strong", "moderate", "mild", "generic")


def _fold_all(words: Iterable[str]) -> frozenset[str]:
    return frozenset(fold_accents(w.strip().lower()) for w in words if w and w.strip())


@dataclass(frozen=True)
class Lexicons:
    """
    Word lists driving the rule engine, the classifier's stop-word filter
    and language detection. Every entry is lowercased and accent-folded so it
    compares equal to normalizer output.
    """

    positive: frozenset[str]
    negative: frozenset[str]
    intensifiers: Mapping[str, float]
    negators: frozenset[str]
    negators_by_language: Mapping[str, frozenset[str]]
    emotions: Mapping[str, tuple[str, ...]]
    stopwords: Mapping[str, frozenset[str]]
    language_markers: Mapping[str, frozenset[str]]

    def polarity(self, token: str) -> float:
        """+1.0 for positive words, -1.0 for negative words, 0.0 otherwise."""
        if token in self.positive:
            return 1.0
        if token in self.negative:
            return -1.0
        return 0.0


def build_lexicons(
        lexicon: Mapping[str, Mapping[str, list[str]]],
        modifiers: Mapping[str, object],
        emotions: Mapping[str, list[str]],
        stopwords: Mapping[str, list[str]],
        language_markers: Mapping[str, list[str]],
) -> Lexicons:
    """
    Build a Lexicons bundle from raw (JSON-shaped) tables.

    Raises:
        ConfigurationError: if a required section is missing or malformed.
    """
    try:
        positive = _fold_all(w for group in lexicon["positive"].values() for w in group)
        negative = _fold_all(w for group in lexicon["negative"].values() for w in group)

        intensifiers: dict[str, float] = {}
        tiers = modifiers["intensifiers"]
        for tier in INTENSIFIER_TIERS:
            table = tiers[tier]  # type: ignore[index]
            multiplier = float(table["multiplier"])
            for word in _fold_all(table["words"]):
                intensifiers.setdefault(word, multiplier)

        negator_table = {
            lang: _fold_all(words) for lang, words in modifiers["negators"].items()  # type: ignore[attr-defined]
        }
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise ConfigurationError(f"Malformed lexicon resources: {e}") from e

    emotion_table = {
        name: tuple(sorted(_fold_all(words))) for name, words in emotions.items()
    }
    stop_table = {lang: _fold_all(words) for lang, words in stopwords.items()}
    marker_table = {lang: _fold_all(words) for lang, words in language_markers.items()}

    missing = [lang for lang in SUPPORTED_LANGUAGES if lang not in marker_table]
    if missing:
        raise ConfigurationError(f"Language markers missing for: {', '.join(missing)}")

    return Lexicons(
        # A word listed on both sides counts as positive.
        positive=positive,
        negative=negative - positive,
        intensifiers=MappingProxyType(intensifiers),
        # The rule engine flips on a negator from any supported language.
        negators=frozenset().union(*negator_table.values()),
        negators_by_language=MappingProxyType(negator_table),
        emotions=MappingProxyType(emotion_table),
        stopwords=MappingProxyType(stop_table),
        language_markers=MappingProxyType(marker_table),
    )


@lru_cache(maxsize=4)
def load_lexicons(data_dir: str | None = None) -> Lexicons:
    """
    Load once per process. Cached by data_dir.

    Raises:
        FileNotFoundError: if a resource file is missing.
        ConfigurationError: if a resource is malformed.
    """
    lex = build_lexicons(
        lexicon=load_json("lexicon.json", data_dir),
        modifiers=load_json("modifiers.json", data_dir),
        emotions=load_json("emotions.json", data_dir),
        stopwords=load_json("stopwords.json", data_dir),
        language_markers=load_json("language_markers.json", data_dir),
    )
    logger.info(
        "Lexicons loaded: positive=%s negative=%s intensifiers=%s negators=%s",
        len(lex.positive),
        len(lex.negative),
        len(lex.intensifiers),
        len(lex.negators),
    )
    return lex
