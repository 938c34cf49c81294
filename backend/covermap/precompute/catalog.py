"""Catalog loading and the rules for which datasets get precomputed coverage."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from covermap.engine.targets import looks_like_arcgis_service
from covermap.models.catalog import Dataset

logger = logging.getLogger(__name__)

# Tabular (TABLE) and raster datasets have nothing to intersect
SPATIAL_GEOMETRY_TYPES = frozenset({"POINT", "MULTIPOINT", "POLYLINE", "POLYGON", "LINE"})


class Catalog:
    """Read-only dataset repository backed by catalog.json."""

    def __init__(self, datasets: list[Dataset]) -> None:
        self.datasets = datasets
        self._by_id = {ds.id: ds for ds in datasets}

    def get_dataset(self, dataset_id: str) -> Dataset | None:
        return self._by_id.get(dataset_id)

    def __len__(self) -> int:
        return len(self.datasets)


def load_catalog(path: str | Path) -> Catalog:
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    datasets: list[Dataset] = []
    for entry in data.get("datasets", []):
        try:
            datasets.append(Dataset.model_validate(entry))
        except ValidationError as e:
            logger.warning("Skipping malformed catalog entry %r: %s", entry.get("id"), e)
    logger.info("Loaded %d datasets from %s", len(datasets), path)
    return Catalog(datasets)


def is_spatial_dataset(dataset: Dataset) -> bool:
    if not dataset.public_web_service or not looks_like_arcgis_service(dataset.public_web_service):
        return False
    return (dataset.geometry_type or "").upper() in SPATIAL_GEOMETRY_TYPES
