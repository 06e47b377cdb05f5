from __future__ import annotations

import json
import logging
import sys
from typing import TextIO

from sentiment_engine.sentiment_pipeline import build_engine
from sentiment_engine.settings import load_settings

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)


def read_texts(stream: TextIO) -> list[str]:
    return [line.strip() for line in stream if line.strip()]


def main() -> None:
    s = load_settings()

    # Texts come from the file given as first argument, else stdin.
    if len(sys.argv) > 1:
        with open(sys.argv[1], encoding="utf-8") as f:
            texts = read_texts(f)
    else:
        texts = read_texts(sys.stdin)
    logger.info("Read texts: %s", len(texts))

    if not texts:
        print("[]")
        return

    engine = build_engine(s)
    mode = engine.config.default_mode
    if mode == "naive" and not engine.classifier.is_trained:
        logger.warning("No trained model at %s; using rule mode", s.model_path)
        mode = "rule"

    analyzed = [engine.analyze_text(t, mode) for t in texts]
    logger.info("Analyzed texts: mode=%s count=%s", mode, len(analyzed))

    print(json.dumps([a.to_dict() for a in analyzed], ensure_ascii=False, indent=2))


if __name__ == "__main__":
    main()
