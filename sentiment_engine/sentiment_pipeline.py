from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Optional, Sequence

from sentiment_engine.errors import ConfigurationError, InputError, UntrainedModelError
from sentiment_engine.insights import (
    extract_brand_mentions,
    extract_keywords,
    hashtag_sentiments,
    keyword_stopwords,
)
from sentiment_engine.language import LanguageDetector
from sentiment_engine.lexicon_scorer import LexiconScorer
from sentiment_engine.lexicons import SUPPORTED_LANGUAGES, load_lexicons
from sentiment_engine.model_store import load_snapshot
from sentiment_engine.models import (
    AnalysisOptions,
    AnalysisRequest,
    BatchAnalysisRequest,
    EngineRequest,
    TrainingRequest,
)
from sentiment_engine.sentiment_model import ClassifierConfig, ExampleLike, NaiveBayesClassifier
from sentiment_engine.sentiment_types import (
    AnalysisMethod,
    AnalyzedText,
    LanguageCode,
    PredictionResult,
    SentimentResult,
    neutral_result,
)
from sentiment_engine.settings import EngineSettings
from sentiment_engine.strategies import (
    STRATEGIES,
    CombinationStrategy,
    StrategyName,
    build_strategy,
    prediction_to_result,
)

logger = logging.getLogger(__name__)

ANALYSIS_MODES: tuple[AnalysisMethod, ...] = ("rule", "naive", "hybrid")
DEFAULT_BRAND_KEYWORDS = ("nike", "adidas", "puma", "reebok", "under armour", "new balance")


@dataclass(frozen=True)
class EngineConfig:
    default_mode: AnalysisMethod = "hybrid"
    default_language: LanguageCode = "en"
    hybrid_threshold: float = 0.7
    strategy: StrategyName = "threshold_override"
    enable_emotions: bool = True
    brand_keywords: tuple[str, ...] = DEFAULT_BRAND_KEYWORDS
    batch_workers: int = 1

    def __post_init__(self) -> None:
        if self.default_mode not in ANALYSIS_MODES:
            raise ConfigurationError(f"Unknown analysis mode: {self.default_mode}")
        if self.default_language not in SUPPORTED_LANGUAGES:
            raise ConfigurationError(f"Unsupported default_language: {self.default_language}")
        if not 0.0 <= self.hybrid_threshold <= 1.0:
            raise ConfigurationError("hybrid_threshold must be in [0, 1]")
        if self.strategy not in STRATEGIES:
            raise ConfigurationError(f"Unknown combination strategy: {self.strategy}")
        if self.batch_workers <= 0:
            raise ConfigurationError("batch_workers must be > 0")


class SentimentEngine:
    """
    Combiner in front of the rule engine and the statistical classifier.

    - rule: rule-engine result unchanged
    - naive: classifier verdict as a SentimentResult (emotions from the rule engine)
    - hybrid: both, reconciled by the configured CombinationStrategy; an
      untrained classifier falls back to the rule result

    The returned method always names the path that produced the label.
    """

    def __init__(
            self,
            cfg: Optional[EngineConfig] = None,
            scorer: Optional[LexiconScorer] = None,
            classifier: Optional[NaiveBayesClassifier] = None,
            detector: Optional[LanguageDetector] = None,
    ):
        self._cfg = cfg or EngineConfig()
        lexicons = scorer.lexicons if scorer is not None else load_lexicons()
        self._scorer = scorer or LexiconScorer(lexicons)
        self._detector = detector or LanguageDetector.from_lexicons(lexicons, fallback=self._cfg.default_language)
        self._classifier = classifier or NaiveBayesClassifier(
            ClassifierConfig(default_language=self._cfg.default_language),
            lexicons=lexicons,
            detector=self._detector,
        )
        self._strategy = build_strategy(self._cfg.strategy, self._cfg.hybrid_threshold)

    @property
    def config(self) -> EngineConfig:
        return self._cfg

    @property
    def scorer(self) -> LexiconScorer:
        return self._scorer

    @property
    def classifier(self) -> NaiveBayesClassifier:
        return self._classifier

    @property
    def strategy(self) -> CombinationStrategy:
        return self._strategy

    def train(self, examples: Iterable[ExampleLike]) -> int:
        return self._classifier.train(examples)

    def detect_language(self, text: Any) -> LanguageCode:
        return self._detector.detect(text)

    def analyze(
            self,
            text: Any,
            mode: Optional[AnalysisMethod] = None,
            language: Optional[LanguageCode] = None,
            enable_emotions: Optional[bool] = None,
            threshold: Optional[float] = None,
    ) -> SentimentResult:
        """
        Analyze one text.

        Raises:
            ConfigurationError: unknown mode.
            UntrainedModelError: mode "naive" on an untrained classifier.
        """
        mode = self._resolve_mode(mode)
        emotions = self._cfg.enable_emotions if enable_emotions is None else enable_emotions
        rule, prediction = self._components(text, mode, language, emotions)
        return self._verdict(rule, prediction, mode, self._strategy_for(threshold))

    def analyze_text(
            self,
            text: Any,
            mode: Optional[AnalysisMethod] = None,
            options: Optional[AnalysisOptions] = None,
    ) -> AnalyzedText:
        """
        Full analysis for downstream consumers.

        Keywords, brand mentions and hashtag sentiment come from the rule
        engine whichever path supplied the label.

        Raises:
            ConfigurationError: unknown mode.
            UntrainedModelError: mode "naive" on an untrained classifier.
        """
        opts = options or AnalysisOptions()
        mode = self._resolve_mode(mode)
        emotions = self._cfg.enable_emotions if opts.enable_emotions is None else opts.enable_emotions
        language = opts.language or self._detector.detect(text)

        rule, prediction = self._components(text, mode, language, emotions)
        sentiment = self._verdict(rule, prediction, mode, self._strategy_for(opts.confidence_threshold))

        brands = opts.brand_keywords if opts.brand_keywords is not None else list(self._cfg.brand_keywords)
        return AnalyzedText(
            text=text if isinstance(text, str) else "",
            language=language,
            sentiment=sentiment,
            keywords=extract_keywords(text, keyword_stopwords(self._scorer, language)),
            brand_mentions=extract_brand_mentions(text, brands, self._scorer),
            hashtags=hashtag_sentiments(text, self._scorer),
            rule_result=rule if mode == "hybrid" else None,
            prediction=prediction if mode == "hybrid" else None,
        )

    def analyze_batch(
            self,
            texts: Sequence[Any],
            mode: Optional[AnalysisMethod] = None,
            language: Optional[LanguageCode] = None,
            enable_emotions: Optional[bool] = None,
            threshold: Optional[float] = None,
    ) -> list[SentimentResult]:
        """
        Analyze many texts, one result per input, in input order.

        Rules:
        - a failing item (None, non-string, component error) becomes a
          neutral result with confidence 0 tagged with the requested mode
        - the rest of the batch continues

        Raises:
            ConfigurationError: unknown mode.
            UntrainedModelError: mode "naive" on an untrained classifier.
        """
        mode = self._resolve_mode(mode)
        if mode == "naive" and not self._classifier.is_trained:
            raise UntrainedModelError()

        def _one(item: tuple[int, Any]) -> SentimentResult:
            index, text = item
            try:
                if not isinstance(text, str):
                    raise InputError(f"expected str, got {type(text).__name__}")
                return self.analyze(text, mode, language, enable_emotions, threshold)
            except InputError as e:
                logger.warning("Batch item skipped: index=%s reason=%s", index, e)
            except Exception:
                logger.exception("Batch item failed: index=%s", index)
            return neutral_result(method=mode, confidence=0.0)

        items = list(enumerate(texts))
        workers = min(self._cfg.batch_workers, max(len(items), 1))
        if workers <= 1:
            results = [_one(item) for item in items]
        else:
            with ThreadPoolExecutor(max_workers=workers) as pool:
                results = list(pool.map(_one, items))

        logger.info("Batch analyzed: mode=%s size=%s workers=%s", mode, len(results), workers)
        return results

    def handle(self, request: EngineRequest) -> dict[str, Any]:
        """Dispatch a validated request variant and return a JSON-ready dict."""
        if isinstance(request, AnalysisRequest):
            return self.analyze_text(request.text, request.mode, request.options).to_dict()

        if isinstance(request, BatchAnalysisRequest):
            opts = request.options
            results = self.analyze_batch(
                request.texts,
                request.mode,
                language=opts.language,
                enable_emotions=opts.enable_emotions,
                threshold=opts.confidence_threshold,
            )
            return {"results": [r.to_dict() for r in results]}

        if isinstance(request, TrainingRequest):
            used = self.train(item.model_dump() for item in request.examples)
            return {"used": used, "skipped": len(request.examples) - used, "stats": self._classifier.stats()}

        raise ConfigurationError(f"Unsupported request: {type(request).__name__}")

    def _resolve_mode(self, mode: Optional[str]) -> AnalysisMethod:
        mode = mode or self._cfg.default_mode
        if mode not in ANALYSIS_MODES:
            raise ConfigurationError(f"Unknown analysis mode: {mode}")
        return mode  # type: ignore[return-value]

    def _strategy_for(self, threshold: Optional[float]) -> CombinationStrategy:
        if threshold is None or threshold == self._strategy.threshold:
            return self._strategy
        return build_strategy(self._cfg.strategy, threshold)

    def _components(
            self,
            text: Any,
            mode: AnalysisMethod,
            language: Optional[LanguageCode],
            enable_emotions: bool,
    ) -> tuple[SentimentResult, Optional[PredictionResult]]:
        rule = self._scorer.score(text, enable_emotions=enable_emotions)
        if mode == "rule":
            return rule, None
        if mode == "hybrid" and not self._classifier.is_trained:
            logger.debug("Classifier untrained: hybrid falls back to rule result")
            return rule, None
        return rule, self._classifier.predict(text, language)

    def _verdict(
            self,
            rule: SentimentResult,
            prediction: Optional[PredictionResult],
            mode: AnalysisMethod,
            strategy: CombinationStrategy,
    ) -> SentimentResult:
        if mode == "rule" or prediction is None:
            return rule
        if mode == "naive":
            return prediction_to_result(prediction, emotions=rule.emotions)
        return strategy.combine(rule, prediction)


def engine_config_from_settings(s: EngineSettings) -> EngineConfig:
    """
    Raises:
        ConfigurationError: if a setting holds an invalid value.
    """
    return EngineConfig(
        default_mode=s.default_mode,  # type: ignore[arg-type]
        default_language=s.default_language,  # type: ignore[arg-type]
        hybrid_threshold=s.hybrid_threshold,
        strategy=s.combination_strategy,  # type: ignore[arg-type]
        enable_emotions=s.enable_emotions,
        brand_keywords=tuple(s.brand_keyword_list),
        batch_workers=s.batch_workers,
    )


def classifier_config_from_settings(s: EngineSettings) -> ClassifierConfig:
    """
    Raises:
        ConfigurationError: if a setting holds an invalid value.
    """
    try:
        return ClassifierConfig(
            smoothing=s.smoothing,
            batch_size=s.batch_size,
            default_language=s.default_language,  # type: ignore[arg-type]
        )
    except ValueError as e:
        raise ConfigurationError(str(e)) from e


def build_engine(s: EngineSettings, load_model: bool = True) -> SentimentEngine:
    """
    Engine wired from settings. A snapshot at SENTIMENT_MODEL_PATH is loaded
    when present; otherwise the classifier starts untrained.
    """
    cfg = engine_config_from_settings(s)
    classifier_cfg = classifier_config_from_settings(s)

    classifier = None
    model_path = Path(s.model_path)
    if load_model and model_path.is_file():
        classifier = load_snapshot(model_path, classifier_cfg)
    elif load_model:
        logger.info("No model snapshot found: path=%s (classifier starts untrained)", model_path)

    if classifier is None:
        classifier = NaiveBayesClassifier(classifier_cfg)
    return SentimentEngine(cfg, classifier=classifier)
