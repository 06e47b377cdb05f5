from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parent / "data"


@lru_cache(maxsize=None)
def load_json(name: str, data_dir: str | None = None) -> Any:
    """
    Load a bundled JSON resource once per process. Cached by (name, data_dir).

    Raises:
        FileNotFoundError: if the resource does not exist.
        json.JSONDecodeError: if the resource is not valid JSON.
    """
    base = Path(data_dir) if data_dir else DATA_DIR
    path = base / name
    logger.debug("Loading resource: path=%s", path)
    with path.open(encoding="utf-8") as fh:
        return json.load(fh)
