from __future__ import annotations


class SentimentEngineError(Exception):
    """Base class for errors raised by the sentiment engine."""


class InputError(SentimentEngineError, ValueError):
    """Text is empty or not a string. Scoring paths degrade to a neutral result."""


class UntrainedModelError(SentimentEngineError, RuntimeError):
    """Prediction was requested before the classifier was trained."""

    def __init__(self, message: str = "model not trained: call train() or load a snapshot first"):
        super().__init__(message)


class TrainingDataError(SentimentEngineError, ValueError):
    """
    A single training example is unusable.

    Raised and caught inside the training loop so the example can be skipped
    and logged; training continues with the remaining examples.
    """

    def __init__(self, index: int, reason: str):
        self.index = index
        self.reason = reason
        super().__init__(f"example #{index} skipped: {reason}")


class ConfigurationError(SentimentEngineError, ValueError):
    """Invalid option values or a malformed model snapshot."""
