from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from ocrbridge.images import TEMP_IMAGE_NAME, draw_records, prepare_image
from ocrbridge.models import RecognitionRecord


def test_existing_path_is_passed_through(tmp_path: Path) -> None:
    path = tmp_path / "scan.png"
    Image.new("RGB", (4, 4)).save(path)

    assert prepare_image(path) == path
    assert prepare_image(str(path)) == path


def test_missing_path_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        prepare_image(tmp_path / "absent.png")


def test_array_is_written_as_png(tmp_path: Path) -> None:
    arr = np.zeros((6, 8, 3), dtype=np.uint8)
    arr[..., 0] = 255

    path = prepare_image(arr, tmp_path)

    assert path == tmp_path / TEMP_IMAGE_NAME
    with Image.open(path) as im:
        assert im.format == "PNG"
        assert im.size == (8, 6)
        assert im.getpixel((0, 0)) == (255, 0, 0)


def test_float_array_and_pil_image(tmp_path: Path) -> None:
    path = prepare_image(np.ones((3, 3), dtype=np.float32), tmp_path)
    with Image.open(path) as im:
        assert im.getpixel((1, 1)) == 255

    path = prepare_image(Image.new("RGBA", (2, 2)), tmp_path)
    with Image.open(path) as im:
        assert im.mode == "RGBA"


def test_unsupported_input_raises() -> None:
    with pytest.raises(TypeError):
        prepare_image(42)


def test_draw_records_outlines_boxes_on_a_copy() -> None:
    image = Image.new("RGB", (40, 40), (255, 255, 255))
    record = RecognitionRecord(((5.0, 5.0), (30.0, 5.0), (30.0, 30.0), (5.0, 30.0)), "x", 0.9)

    out = draw_records(image, [record])

    assert out is not image
    assert out.getpixel((15, 5)) != (255, 255, 255)
    assert out.getpixel((15, 15)) == (255, 255, 255)
    assert image.getpixel((15, 5)) == (255, 255, 255)
