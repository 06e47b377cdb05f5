from __future__ import annotations

import json
import logging
from pathlib import Path

from sentiment_engine.evaluation import evaluate, train_test_split
from sentiment_engine.model_store import save_snapshot
from sentiment_engine.sentiment_pipeline import build_engine
from sentiment_engine.sentiment_types import CLASS_LABELS, TrainingExample
from sentiment_engine.settings import load_settings

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)


def load_examples(path: Path) -> list[TrainingExample]:
    """
    Read JSONL training data, one {"text": ..., "label": ...} object per line.

    Blank lines are ignored; malformed lines are logged and skipped.
    """
    examples: list[TrainingExample] = []
    with path.open(encoding="utf-8") as f:
        for lineno, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                row = json.loads(line)
            except json.JSONDecodeError as e:
                logger.warning("Bad JSON line skipped: line=%s error=%s", lineno, e)
                continue
            text, label = row.get("text"), row.get("label")
            if not isinstance(text, str) or label not in CLASS_LABELS:
                logger.warning("Incomplete example skipped: line=%s", lineno)
                continue
            examples.append(TrainingExample(text=text, label=label))
    return examples


def main() -> None:
    s = load_settings()

    data_path = Path(s.training_data_path)
    examples = load_examples(data_path)
    logger.info("Loaded examples: path=%s count=%s", data_path, len(examples))
    if not examples:
        print("{}")
        return

    train, test = train_test_split(examples, test_fraction=s.test_fraction, seed=s.split_seed)
    logger.info("Split: train=%s test=%s", len(train), len(test))

    engine = build_engine(s, load_model=False)
    used = engine.train(train)
    if used == 0:
        logger.warning("Nothing trained; snapshot not written")
        print("{}")
        return

    report = {
        "train_size": used,
        "test_size": len(test),
        "classifier": evaluate(lambda t: engine.classifier.predict(t).label, test).to_dict(),
        "rule": evaluate(lambda t: engine.analyze(t, "rule", enable_emotions=False).label, test).to_dict(),
        "hybrid": evaluate(lambda t: engine.analyze(t, "hybrid", enable_emotions=False).label, test).to_dict(),
        "stats": engine.classifier.stats(),
    }

    out = save_snapshot(s.model_path, engine.classifier)
    report["model_path"] = str(out)
    print(json.dumps(report, ensure_ascii=False, indent=2))


if __name__ == "__main__":
    main()
