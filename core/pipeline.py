# -*- coding: utf-8 -*-
# -----------------------------------------------------------------------------
# pipeline.py
#
# Orquestador del lote: filtra los JPEG, clasifica cada imagen (metadatos ->
# punto normalizado), construye un placemark KML por imagen con GPS, ensambla
# el KMZ y la colección de puntos. El fallo de una imagen nunca aborta el lote.
# -----------------------------------------------------------------------------

import traceback
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from functools import partial
from typing import Callable, Iterator, List, Optional, Sequence, Set

import config
from core.exif_reader import FormatError, RawMetadata, read_metadata
from core.geo import NormalizedPoint, ProcessedPhoto, format_coordinate, normalize_point
from core.utils import embed_image, placemark_entry_name
from generators.geojson_generator import FeatureCollection
from generators.kml_generator import build_placemark
from generators.kmz_generator import PlacemarkDocument, assemble_archive, unique_entry_name


class BatchState(Enum):
    IDLE = "idle"
    SCANNING = "scanning"
    EXTRACTING = "extracting"
    NORMALIZING = "normalizing"
    SKIPPED = "skipped"
    BUILDING = "building"
    ASSEMBLING = "assembling"
    DONE = "done"


class Outcome(Enum):
    PROCESSED = "Processed"
    SKIPPED = "Skipped"


class SkipReason(Enum):
    NO_LOCATION = config.SKIP_NO_GPS
    FORMAT_ERROR = config.SKIP_UNREADABLE


class EmptyBatchError(Exception):
    """Ningún archivo de la selección tiene extensión JPEG."""


@dataclass(frozen=True)
class ImageRecord:
    filename: str
    data: bytes


@dataclass(frozen=True)
class ItemStatus:
    name: str
    outcome: Outcome
    detail: str


@dataclass(frozen=True)
class Classification:
    """Resultado de clasificar una imagen: (metadata, point) o un motivo de omisión."""
    metadata: Optional[RawMetadata] = None
    point: Optional[NormalizedPoint] = None
    skip_reason: Optional[SkipReason] = None

    @property
    def ok(self) -> bool:
        return self.skip_reason is None and self.point is not None


@dataclass
class BatchResult:
    archive_bytes: Optional[bytes]
    feature_collection: FeatureCollection
    statuses: List[ItemStatus] = field(default_factory=list)
    processed_count: int = 0
    skipped_count: int = 0
    photos: List[ProcessedPhoto] = field(default_factory=list)

    @property
    def has_archive(self) -> bool:
        return self.archive_bytes is not None


@dataclass(frozen=True)
class _PreparedItem:
    classification: Classification
    content: Optional[bytes] = None


StateCallback = Callable[[BatchState, Optional[str]], None]


def is_jpeg(filename: str) -> bool:
    return bool(config.JPEG_NAME_PATTERN.search(filename))

def classify(data: bytes) -> Classification:
    """Nunca lanza: los errores de formato y la falta de GPS se devuelven como SkipReason."""
    try:
        metadata = read_metadata(data)
    except FormatError as e:
        if config.DEBUG_MODE: print(f"DEBUG: [classify] {e}")
        return Classification(skip_reason=SkipReason.FORMAT_ERROR)
    point = normalize_point(metadata)
    if point is None:
        return Classification(metadata=metadata, skip_reason=SkipReason.NO_LOCATION)
    return Classification(metadata=metadata.with_coordinates(point.latitude, point.longitude), point=point)

def _prepare_item(record: ImageRecord, thumbnail_width: Optional[int] = None) -> _PreparedItem:
    classification = classify(record.data)
    if not classification.ok:
        return _PreparedItem(classification)
    metadata = classification.metadata
    try:
        data_uri = embed_image(record.data, record.filename, thumbnail_width, metadata.orientation) # type: ignore
        content = build_placemark(record.filename, metadata, data_uri).encode("utf-8") # type: ignore
    except Exception as e: # pylint: disable=broad-except
        print(f"\n   Warning: Error generando el placemark de {record.filename}: {e}")
        if config.DEBUG_MODE: traceback.print_exc()
        return _PreparedItem(Classification(metadata=metadata, skip_reason=SkipReason.FORMAT_ERROR))
    return _PreparedItem(classification, content)

@contextmanager
def _item_mapper(max_workers: int) -> Iterator[Callable]:
    # executor.map conserva el orden de entrada igual que map()
    if max_workers <= 1:
        yield map
        return
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        yield executor.map

def run_batch(
    images: Sequence[ImageRecord],
    max_workers: int = config.DEFAULT_MAX_WORKERS,
    thumbnail_width: Optional[int] = None,
    on_state: Optional[StateCallback] = None,
) -> BatchResult:
    """
    Procesa el lote en orden de entrada. Lista de estados, colección de puntos
    y entradas del KMZ siguen ese orden aunque se use un pool de hilos.
    Lança EmptyBatchError si ningún archivo es JPEG. Si ninguna imagen tiene
    GPS, archive_bytes queda en None.
    """
    notify: StateCallback = on_state or (lambda state, name: None)
    notify(BatchState.SCANNING, None)
    candidates = [image for image in images if is_jpeg(image.filename)]
    if config.DEBUG_MODE: print(f"DEBUG [run_batch]: {len(candidates)} de {len(images)} archivos son JPEG.")
    if not candidates:
        raise EmptyBatchError("No JPG files found in the selection.")

    feature_collection = FeatureCollection()
    statuses: List[ItemStatus] = []; documents: List[PlacemarkDocument] = []
    photos: List[ProcessedPhoto] = []; taken_names: Set[str] = set()

    with _item_mapper(max_workers) as mapper:
        prepared_items = mapper(partial(_prepare_item, thumbnail_width=thumbnail_width), candidates)
        for record, prepared in zip(candidates, prepared_items):
            classification = prepared.classification
            notify(BatchState.EXTRACTING, record.filename)
            if classification.metadata is not None:
                notify(BatchState.NORMALIZING, record.filename)
            if not classification.ok or prepared.content is None:
                notify(BatchState.SKIPPED, record.filename)
                reason = classification.skip_reason or SkipReason.FORMAT_ERROR
                statuses.append(ItemStatus(record.filename, Outcome.SKIPPED, reason.value))
                continue
            notify(BatchState.BUILDING, record.filename)
            point: NormalizedPoint = classification.point # type: ignore
            entry_name = unique_entry_name(placemark_entry_name(record.filename), taken_names)
            documents.append(PlacemarkDocument(entry_name, prepared.content))
            feature_collection.add(record.filename, point)
            photos.append(ProcessedPhoto(record.filename, classification.metadata, point)) # type: ignore
            statuses.append(ItemStatus(record.filename, Outcome.PROCESSED,
                                       f"GPS: {format_coordinate(point.latitude)}, {format_coordinate(point.longitude)}"))

    archive_bytes: Optional[bytes] = None
    if documents:
        notify(BatchState.ASSEMBLING, None)
        archive_bytes = assemble_archive(documents)
    notify(BatchState.DONE, None)
    return BatchResult(archive_bytes, feature_collection, statuses,
                       processed_count=len(documents), skipped_count=len(statuses) - len(documents), photos=photos)
