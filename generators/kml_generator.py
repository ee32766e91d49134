# -*- coding: utf-8 -*-
import os
import re
import simplekml
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence, Tuple

import config
from core.exif_reader import RawMetadata
from core.geo import (ProcessedPhoto, extract_altitude, extract_direction, extract_latitude,
                      extract_longitude, format_coordinate, format_measure)
from core.utils import escape_html, escape_xml

MetadataRow = Tuple[str, str]

_CAPTURE_DATE_FORMATS = ('%Y:%m:%d %H:%M:%S', '%Y-%m-%d %H:%M:%S', '%Y-%m-%dT%H:%M:%S')
_UTC_OFFSET = re.compile(r'^([+-])(\d{2}):?(\d{2})$')

_TH_STYLE = "text-align:left;padding:4px 8px;background:#f3f4f6;border:1px solid #d1d5db;"
_TD_STYLE = "padding:4px 8px;border:1px solid #d1d5db;"

def _parse_utc_offset(offset: Optional[str]) -> Optional[timezone]:
    match = _UTC_OFFSET.match(offset.strip()) if offset else None
    if not match: return None
    delta = timedelta(hours=int(match.group(2)), minutes=int(match.group(3)))
    if delta >= timedelta(hours=24): return None # timezone() exige |desfase| < 24h
    return timezone(-delta if match.group(1) == '-' else delta)

def parse_capture_date(value: str, offset: Optional[str] = None) -> Optional[datetime]:
    """Fecha EXIF -> datetime en UTC. Con OffsetTimeOriginal se aplica el desfase; sin él se toma como UTC."""
    text = value.strip()
    parsed: Optional[datetime] = None
    for fmt in _CAPTURE_DATE_FORMATS:
        try: parsed = datetime.strptime(text, fmt); break
        except ValueError: continue
    if parsed is None:
        try: parsed = datetime.fromisoformat(text)
        except ValueError: return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=_parse_utc_offset(offset) or timezone.utc)
    try: return parsed.astimezone(timezone.utc)
    except (ValueError, OverflowError): return None # fuera del rango de datetime

def format_capture_date(value: str, offset: Optional[str] = None) -> str:
    """'YYYY-MM-DDTHH:MM:SSZ', o el valor original sin cambios si no se puede interpretar."""
    parsed = parse_capture_date(value, offset)
    return parsed.strftime('%Y-%m-%dT%H:%M:%SZ') if parsed is not None else value

def _time_component(component: float) -> str:
    text = str(int(component)) if float(component).is_integer() else str(component)
    return text.rjust(2, '0')

def format_gps_timestamp(date_stamp: str, time_stamp: Sequence[float]) -> str:
    return f"{date_stamp} {':'.join(_time_component(c) for c in time_stamp)}"

def build_metadata_rows(metadata: RawMetadata) -> List[MetadataRow]:
    """Filas de la tabla, siempre en el mismo orden. Los campos ausentes no generan fila."""
    latitude = extract_latitude(metadata); longitude = extract_longitude(metadata)
    if latitude is None or longitude is None:
        raise ValueError("Los metadatos no contienen un par de coordenadas resoluble")
    rows: List[MetadataRow] = [("Latitude", format_coordinate(latitude)), ("Longitude", format_coordinate(longitude))]

    altitude = extract_altitude(metadata)
    if altitude is not None: rows.append(("Altitude", f"{format_measure(altitude)} m"))
    direction = extract_direction(metadata)
    if direction is not None: rows.append(("Direction", f"{format_measure(direction)}°"))
    if metadata.gps_img_direction_ref:
        rows.append(("Direction Reference", escape_html(metadata.gps_img_direction_ref)))

    accuracy = metadata.horizontal_accuracy if metadata.horizontal_accuracy is not None else metadata.gps_h_positioning_error
    if accuracy is not None: rows.append(("Horizontal Accuracy", f"{format_measure(accuracy)} m"))

    if metadata.make or metadata.model:
        camera = " ".join(part for part in (metadata.make, metadata.model) if part)
        rows.append(("Camera", escape_html(camera)))
    if metadata.lens_model:
        rows.append(("Lens", escape_html(metadata.lens_model)))

    captured = metadata.date_time_original or metadata.create_date
    if captured:
        rows.append(("Captured", escape_html(format_capture_date(captured, metadata.offset_time_original))))
    if metadata.gps_date_stamp and metadata.gps_time_stamp:
        rows.append(("GPS Timestamp", escape_html(format_gps_timestamp(metadata.gps_date_stamp, metadata.gps_time_stamp))))
    return rows

def build_description(metadata: RawMetadata, data_uri: str, filename: str) -> str:
    table_rows = "".join(
        f'<tr><th style="{_TH_STYLE}">{label}</th><td style="{_TD_STYLE}">{value}</td></tr>'
        for label, value in build_metadata_rows(metadata)
    )
    safe_name = escape_html(filename)
    return (
        '<div style="font-family:Arial,sans-serif;">'
        f'<h2 style="margin-top:0;">{safe_name}</h2>'
        f'<img src="{data_uri}" alt="{safe_name}" style="max-width:100%;height:auto;border-radius:8px;margin-bottom:12px;" />'
        f'<table style="border-collapse:collapse;font-size:14px;">{table_rows}</table>'
        '</div>'
    )

def _cdata(text: str) -> str:
    return "<![CDATA[" + text.replace("]]>", "]]]]><![CDATA[>") + "]]>"

def build_placemark(filename: str, metadata: RawMetadata, data_uri: str) -> str:
    """
    Documento KML con un único Placemark: nombre (escapado XML), descripción
    HTML dentro de CDATA y el punto "lon,lat,alt" (altitud 0 si no existe).
    """
    latitude = extract_latitude(metadata); longitude = extract_longitude(metadata)
    if latitude is None or longitude is None:
        raise ValueError(f"{filename}: sin coordenadas para el placemark")
    metadata = metadata.with_coordinates(latitude, longitude)
    altitude = extract_altitude(metadata)
    coordinates = f"{longitude},{latitude},{altitude if altitude is not None else 0}"
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        f'<kml xmlns="{config.KML_NAMESPACE}">\n'
        '  <Placemark>\n'
        f'    <name>{escape_xml(filename)}</name>\n'
        f'    <description>{_cdata(build_description(metadata, data_uri, filename))}</description>\n'
        '    <Point>\n'
        f'      <coordinates>{coordinates}</coordinates>\n'
        '    </Point>\n'
        '  </Placemark>\n'
        '</kml>'
    )

def generate_kml_overview(photos: Sequence[ProcessedPhoto], title: str, out_base: str) -> bool:
    """KML simple (un documento, un punto por foto, sin imágenes) para My Maps."""
    kml = simplekml.Kml(name=title) # type: ignore
    print("\nGenerando KML simple (My Maps)..."); generated = False
    for photo in photos:
        point = photo.point
        pnt = kml.newpoint(name=photo.filename, coords=[(point.longitude, point.latitude, point.altitude or 0)]) # type: ignore
        metadata = photo.metadata.with_coordinates(point.latitude, point.longitude)
        captured = metadata.date_time_original or metadata.create_date
        captured_at = parse_capture_date(captured, metadata.offset_time_original) if captured else None
        if captured_at is not None:
            pnt.timestamp.when = captured_at.strftime('%Y-%m-%dT%H:%M:%SZ') # type: ignore
        pnt.description = "<br/>".join(f"<b>{label}:</b> {value}" for label, value in build_metadata_rows(metadata)) # type: ignore
    kml_file = f"{out_base}_simple.kml"
    try: kml.save(kml_file); print(f"\nArchivo KML simple guardado con éxito: {os.path.abspath(kml_file)}"); generated = True # type: ignore
    except Exception as e: print(f"\nERROR FATAL guardando KML simple {kml_file}: {e}") # pylint: disable=broad-except
    return generated
