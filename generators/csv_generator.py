# -*- coding: utf-8 -*-
import os
import pandas as pd
import traceback
from typing import Any, Dict, List, Sequence

import config
from core.geo import ProcessedPhoto, convert_to_utm
from generators.kml_generator import format_capture_date

CSV_COLUMNS = ['filename', 'latitude', 'longitude', 'altitude', 'heading', 'captured', 'camera',
               'utm_easting', 'utm_northing', 'utm_zone', 'utm_hemisphere']

def photo_rows(photos: Sequence[ProcessedPhoto]) -> List[Dict[str, Any]]:
    rows: List[Dict[str, Any]] = []
    for photo in photos:
        point = photo.point; metadata = photo.metadata
        captured = metadata.date_time_original or metadata.create_date
        row: Dict[str, Any] = {
            'filename': photo.filename, 'latitude': point.latitude, 'longitude': point.longitude,
            'altitude': point.altitude, 'heading': point.heading,
            'captured': format_capture_date(captured, metadata.offset_time_original) if captured else None,
            'camera': " ".join(part for part in (metadata.make, metadata.model) if part) or None,
        }
        utm_coords = convert_to_utm(point.latitude, point.longitude)
        if utm_coords is not None:
            row['utm_easting'], row['utm_northing'], row['utm_zone'], row['utm_hemisphere'] = utm_coords
        rows.append(row)
    return rows

def _generate_csv(photos: Sequence[ProcessedPhoto], out_base: str) -> bool:
    print("\nGenerando CSV..."); generated = False
    try:
        df = pd.DataFrame(photo_rows(photos), columns=CSV_COLUMNS)
        for col in ['latitude', 'longitude']:
            df[col] = df[col].apply(lambda x: f"{x:.{config.COORDINATE_DECIMALS}f}" if isinstance(x, (int, float)) else x)
        for col in ['altitude', 'heading', 'utm_easting', 'utm_northing']:
            df[col] = df[col].apply(lambda x: f"{x:.{config.MEASURE_DECIMALS}f}" if isinstance(x, (int, float)) and pd.notna(x) else '')
        csv_file = f"{out_base}.csv"; df.to_csv(csv_file, index=False, encoding='utf-8-sig')
        print(f"\nArchivo CSV guardado con éxito: {os.path.abspath(csv_file)}"); generated = True
    except Exception as e: # pylint: disable=broad-except
        print(f"\nERROR FATAL generando CSV: {e}")
        if config.DEBUG_MODE: traceback.print_exc()
    return generated
