from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class EngineSettings(BaseSettings):
    """
    Environment-driven settings for the sentiment engine and its CLIs.
    """

    model_config = SettingsConfigDict(env_prefix="", env_file=".env", extra="ignore")

    # ---- Analysis ----
    # "rule" | "naive" | "hybrid"
    default_mode: str = Field(default="hybrid", alias="SENTIMENT_DEFAULT_MODE")
    default_language: str = Field(default="en", alias="SENTIMENT_DEFAULT_LANGUAGE")
    enable_emotions: bool = Field(default=True, alias="SENTIMENT_ENABLE_EMOTIONS")

    # Classifier confidence above this overrides a disagreeing rule label.
    hybrid_threshold: float = Field(default=0.7, alias="SENTIMENT_HYBRID_THRESHOLD")
    # "threshold_override" | "max_confidence" | "weighted_average"
    combination_strategy: str = Field(default="threshold_override", alias="SENTIMENT_COMBINATION_STRATEGY")

    # Comma-separated
    brand_keywords: str = Field(
        default="nike,adidas,puma,reebok,under armour,new balance",
        alias="SENTIMENT_BRAND_KEYWORDS",
    )

    # ---- Classifier ----
    model_path: str = Field(default="./models/naive_bayes.json", alias="SENTIMENT_MODEL_PATH")
    training_data_path: str = Field(default="./data/training.jsonl", alias="SENTIMENT_TRAINING_DATA_PATH")
    smoothing: float = Field(default=1.0, alias="SENTIMENT_SMOOTHING")
    test_fraction: float = Field(default=0.2, alias="SENTIMENT_TEST_FRACTION")
    split_seed: int = Field(default=42, alias="SENTIMENT_SPLIT_SEED")

    # ---- Batching ----
    batch_size: int = Field(default=64, alias="SENTIMENT_BATCH_SIZE")
    # 1 = sequential
    batch_workers: int = Field(default=1, alias="SENTIMENT_BATCH_WORKERS")

    @property
    def brand_keyword_list(self) -> list[str]:
        return [b.strip() for b in self.brand_keywords.split(",") if b.strip()]


def load_settings() -> EngineSettings:
    return EngineSettings()
