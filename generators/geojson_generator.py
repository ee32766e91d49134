# -*- coding: utf-8 -*-
import json
import os
from typing import Any, Dict, Iterator, List, Tuple

import config
from core.geo import NormalizedPoint


class FeatureCollection:
    """Puntos procesados en orden de llegada, listos para el mapa (GeoJSON)."""

    def __init__(self) -> None:
        self._features: List[Tuple[str, NormalizedPoint]] = []

    def add(self, name: str, point: NormalizedPoint) -> None:
        self._features.append((name, point))

    def __len__(self) -> int:
        return len(self._features)

    def __iter__(self) -> Iterator[Tuple[str, NormalizedPoint]]:
        return iter(self._features)

    @property
    def names(self) -> List[str]:
        return [name for name, _ in self._features]

    def bounds(self) -> config.Bounds:
        """(min_lon, min_lat, max_lon, max_lat), o None si no hay puntos."""
        if not self._features:
            return None
        longitudes = [point.longitude for _, point in self._features]
        latitudes = [point.latitude for _, point in self._features]
        return min(longitudes), min(latitudes), max(longitudes), max(latitudes)

    def to_geojson(self) -> Dict[str, Any]:
        collection: Dict[str, Any] = {
            "type": "FeatureCollection",
            "features": [
                {
                    "type": "Feature",
                    "geometry": {"type": "Point", "coordinates": [point.longitude, point.latitude]},
                    "properties": {"name": name},
                }
                for name, point in self._features
            ],
        }
        envelope = self.bounds()
        if envelope is not None:
            collection["bbox"] = list(envelope)
        return collection

    def save(self, path: str) -> bool:
        generated = False
        try:
            with open(path, "w", encoding="utf-8") as f:
                json.dump(self.to_geojson(), f, ensure_ascii=False, indent=2)
            print(f"\nArchivo GeoJSON guardado con éxito: {os.path.abspath(path)}"); generated = True
        except OSError as e: print(f"\nERROR FATAL guardando GeoJSON {path}: {e}")
        return generated
