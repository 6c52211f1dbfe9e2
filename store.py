"""Whole-file JSON persistence for named collections.

Every collection lives in ``<data_dir>/<name>.json`` as a JSON list. Reads
never fail: a missing or broken file yields the collection's default.
Writes overwrite the whole file and are not serialised between callers,
so the last ``save`` wins.
"""

from __future__ import annotations

import copy
import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)


class Store:
    def __init__(self, data_dir: Path, defaults: Optional[Dict[str, List[Dict]]] = None):
        self.data_dir = Path(data_dir)
        self.defaults = defaults or {}

    def path_for(self, name: str) -> Path:
        return self.data_dir / f"{name}.json"

    def default_for(self, name: str) -> List[Dict]:
        return copy.deepcopy(self.defaults.get(name, []))

    def ensure_initialized(self, name: str, default: Optional[List[Dict]] = None) -> None:
        """Create the collection file if it does not exist yet."""
        path = self.path_for(name)
        if path.exists():
            return
        if default is None:
            default = self.default_for(name)
        self.save(name, default)
        logger.info("initialized collection", extra={"collection": name, "path": str(path)})

    def load(self, name: str) -> List[Dict]:
        path = self.path_for(name)
        try:
            with open(path, "r", encoding="utf-8") as fh:
                raw = json.load(fh)
        except (OSError, ValueError) as exc:
            logger.warning(
                "falling back to default collection",
                extra={"collection": name, "error": str(exc)},
            )
            return self.default_for(name)
        if not isinstance(raw, list):
            logger.warning("collection is not a list", extra={"collection": name})
            return self.default_for(name)
        return raw

    def save(self, name: str, items: List[Dict]) -> None:
        path = self.path_for(name)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as fh:
            json.dump(items, fh, indent=2)
