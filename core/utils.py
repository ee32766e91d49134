# -*- coding: utf-8 -*-
import base64
import html
import io
import mimetypes
import os
from xml.sax.saxutils import escape
from PIL import Image
from typing import Optional

import config # For config.DEBUG_MODE

def sanitize_filename(name: str) -> str:
    """Sustituye por '_' todo carácter fuera de [A-Za-z0-9-_.]."""
    return config.ENTRY_UNSAFE_CHARS.sub('_', name)

def placemark_entry_name(filename: str) -> str:
    base_name, _ = os.path.splitext(os.path.basename(filename))
    return f"{sanitize_filename(base_name)}{config.KML_ENTRY_EXTENSION}"

def escape_xml(value: object) -> str:
    """Escapado XML (< > & ' \") para el texto del documento KML exterior."""
    return escape(str(value), {"'": "&apos;", '"': "&quot;"})

def escape_html(value: object) -> str:
    """Escapado HTML (& < > \" ') para los nodos de texto de la descripción."""
    return html.escape(str(value), quote=True).replace("&#x27;", "&#39;")

def to_data_uri(data: bytes, filename: str) -> str:
    mime_type = mimetypes.guess_type(filename)[0] or "image/jpeg"
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"

def apply_orientation(image: Image.Image, orientation: Optional[int]) -> Image.Image:
    actions = {2: Image.Transpose.FLIP_LEFT_RIGHT, 3: Image.Transpose.ROTATE_180, 4: Image.Transpose.FLIP_TOP_BOTTOM,
               5: Image.Transpose.TRANSPOSE, 6: Image.Transpose.ROTATE_270, 7: Image.Transpose.TRANSVERSE, 8: Image.Transpose.ROTATE_90}
    transpose_action = actions.get(orientation) # type: ignore
    if transpose_action is None: return image # FLIP_LEFT_RIGHT vale 0
    if config.DEBUG_MODE: print(f"DEBUG: [apply_orientation] Aplicando orientação {orientation} ({transpose_action.name})")
    return image.transpose(transpose_action)

def make_thumbnail(data: bytes, width: int, orientation: Optional[int] = None) -> bytes:
    """JPEG reducido al ancho indicado, con la orientación EXIF aplicada."""
    with Image.open(io.BytesIO(data)) as img_orig:
        img_oriented = apply_orientation(img_orig, orientation)
        img_copy = img_oriented.copy()
    try:
        img_copy.thumbnail((width, width * 10), Image.Resampling.LANCZOS)
        if img_copy.mode != 'RGB':
            img_copy = img_copy.convert('RGB')
        buffer = io.BytesIO()
        img_copy.save(buffer, format='JPEG', quality=config.KMZ_THUMBNAIL_QUALITY, optimize=True)
        return buffer.getvalue()
    finally:
        img_copy.close()

def embed_image(data: bytes, filename: str, thumbnail_width: Optional[int] = None,
                orientation: Optional[int] = None) -> str:
    """Data URI de la imagen: bytes originales o, si se pide, una miniatura."""
    if not thumbnail_width:
        return to_data_uri(data, filename)
    try:
        return to_data_uri(make_thumbnail(data, thumbnail_width, orientation), "thumbnail.jpg")
    except Exception as e: # pylint: disable=broad-except
        print(f"\n   Warning: No se pudo generar la miniatura de {filename}, se incrusta el original: {e}")
        return to_data_uri(data, filename)
