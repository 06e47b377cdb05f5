from __future__ import annotations

from typing import Any, Mapping, Optional

from sentiment_engine.lexicons import SUPPORTED_LANGUAGES, Lexicons, load_lexicons
from sentiment_engine.normalizer import normalize_and_tokenize
from sentiment_engine.sentiment_types import LanguageCode


class LanguageDetector:
    """
    Guess the dominant language by counting stop-word hits per language.

    Deterministic and stateless: zero hits, or a tie for the top count,
    returns the fallback language.
    """

    def __init__(
            self,
            markers: Optional[Mapping[str, frozenset[str]]] = None,
            fallback: LanguageCode = "en",
    ):
        if fallback not in SUPPORTED_LANGUAGES:
            raise ValueError(f"Unsupported fallback language: {fallback}")
        self._markers = markers if markers is not None else load_lexicons().language_markers
        self._fallback = fallback

    @classmethod
    def from_lexicons(cls, lexicons: Lexicons, fallback: LanguageCode = "en") -> "LanguageDetector":
        return cls(lexicons.language_markers, fallback)

    @property
    def fallback(self) -> LanguageCode:
        return self._fallback

    def counts(self, text: Any) -> dict[str, int]:
        _, words = normalize_and_tokenize(text)
        return {
            lang: sum(1 for w in words if w in self._markers.get(lang, ()))
            for lang in SUPPORTED_LANGUAGES
        }

    def detect(self, text: Any) -> LanguageCode:
        counts = self.counts(text)
        best = max(counts.values())
        if best == 0:
            return self._fallback
        leaders = [lang for lang, n in counts.items() if n == best]
        if len(leaders) > 1:
            return self._fallback
        return leaders[0]  # type: ignore[return-value]
