"""Coverage store: JSON file of precomputed coverage keyed by dataset id.

Written only by the precomputation runner; the live path reads it to seed
its result cache.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from covermap.engine.errors import PersistenceError
from covermap.models.coverage import PrecomputedCoverage

logger = logging.getLogger(__name__)


class CoverageStore:
    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._records: dict[str, PrecomputedCoverage] | None = None

    def _load(self) -> dict[str, PrecomputedCoverage]:
        if self._records is not None:
            return self._records
        if not self.path.exists():
            self._records = {}
            return self._records
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
            self._records = {k: PrecomputedCoverage.model_validate(v) for k, v in data.items()}
        except (OSError, ValueError, AttributeError, ValidationError) as e:
            raise PersistenceError(f"Could not read coverage store {self.path}: {e}") from e
        return self._records

    def load_precomputed(self, dataset_id: str) -> PrecomputedCoverage | None:
        return self._load().get(dataset_id)

    def has(self, dataset_id: str) -> bool:
        return dataset_id in self._load()

    def all(self) -> dict[str, PrecomputedCoverage]:
        return dict(self._load())

    def save(self, dataset_id: str, record: PrecomputedCoverage) -> None:
        """Insert or replace one record and rewrite the file atomically."""
        records = dict(self._load())
        records[dataset_id] = record
        self._write(records)
        self._records = records
        logger.info("Saved coverage for %s", dataset_id)

    def save_many(self, records: dict[str, PrecomputedCoverage]) -> None:
        merged = dict(self._load())
        merged.update(records)
        self._write(merged)
        self._records = merged
        logger.info("Saved coverage for %d datasets", len(records))

    def _write(self, records: dict[str, PrecomputedCoverage]) -> None:
        data = {k: v.model_dump(mode="json", by_alias=True) for k, v in sorted(records.items())}
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
                f.write("\n")
            os.replace(tmp, self.path)
        except OSError as e:
            raise PersistenceError(f"Could not write coverage store {self.path}: {e}") from e
