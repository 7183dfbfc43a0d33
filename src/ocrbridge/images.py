# ocrbridge/images.py
from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Iterable, Optional

import numpy as np
from PIL import Image, ImageDraw

from .models import RecognitionRecord

logger = logging.getLogger("ocrbridge")

TEMP_IMAGE_NAME = "ocrbridge_tmp.png"
BOX_COLOR = (37, 99, 235)


def _to_pil(img: Any) -> Image.Image:
    """Accept PIL.Image | np.ndarray; return an RGB(A) PIL image."""
    if isinstance(img, Image.Image):
        return img
    if isinstance(img, np.ndarray):
        arr = img
        if arr.dtype != np.uint8:
            # Rescale if it looks like float [0..1]
            if np.issubdtype(arr.dtype, np.floating):
                arr = np.clip(arr * (255.0 if arr.max() <= 1.0 else 1.0), 0, 255).astype(np.uint8)
            else:
                arr = arr.astype(np.uint8, copy=False)
        if arr.ndim == 3 and arr.shape[-1] == 1:
            arr = arr[..., 0]
        return Image.fromarray(arr)
    raise TypeError(f"Unsupported image type: {type(img).__name__}")


def prepare_image(image: Any, temp_dir: Optional[os.PathLike] = None) -> Path:
    """
    Return a file path EasyOCR can read.

    Paths are passed through untouched (after an existence check). In-memory
    images (pasted or uploaded) are written to a temporary PNG, overwriting
    the previous one.
    """
    if isinstance(image, (str, os.PathLike)):
        path = Path(image)
        if not path.is_file():
            raise FileNotFoundError(f"Image not found: {path}")
        return path

    pil = _to_pil(image)
    target_dir = Path(temp_dir) if temp_dir else Path(tempfile.gettempdir())
    target_dir.mkdir(parents=True, exist_ok=True)
    target = target_dir / TEMP_IMAGE_NAME
    pil.save(target, format="PNG")
    logger.debug("Saved in-memory image (%dx%d) to %s", pil.width, pil.height, target)
    return target


def draw_records(image: Any, records: Iterable[RecognitionRecord], width: int = 2) -> Image.Image:
    """Return an RGB copy of `image` with every record's quadrilateral outlined."""
    if isinstance(image, (str, os.PathLike)):
        with Image.open(image) as im:
            canvas = im.convert("RGB")
    else:
        canvas = _to_pil(image).convert("RGB")

    draw = ImageDraw.Draw(canvas)
    for record in records:
        points = [tuple(p) for p in record.bbox]
        draw.line(points + [points[0]], fill=BOX_COLOR, width=width)
    return canvas
