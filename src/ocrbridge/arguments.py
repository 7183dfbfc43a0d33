# ocrbridge/arguments.py
from __future__ import annotations

import os
from typing import List, Union

from .config import RecognitionConfig
from .normalize import expand_home, split_languages


def _flag(value: bool) -> str:
    # easyocr's argparse expects the literal Python booleans
    return "True" if value else "False"


def _ratio(value: float) -> str:
    return f"{float(value):.4f}"


def build_arguments(config: RecognitionConfig, image_path: Union[str, os.PathLike]) -> List[str]:
    """
    Map a config snapshot and an image path to the EasyOCR CLI flags.

    The order and formatting match what ``easyocr.cli`` parses; the resolved
    command's own prefix (e.g. ``-m easyocr.cli``) is not included.
    """
    args: List[str] = ["-l", *split_languages(config.languages)]
    args += ["-f", os.fspath(image_path)]

    args += ["--gpu", _flag(config.gpu)]
    args += ["--workers", str(config.workers)]

    args += ["--decoder", config.decoder.value]
    args += ["--beamWidth", str(config.beam_width)]
    args += ["--batch_size", str(config.batch_size)]

    args += ["--text_threshold", _ratio(config.text_threshold)]
    args += ["--low_text", _ratio(config.low_text)]
    args += ["--link_threshold", _ratio(config.link_threshold)]
    args += ["--contrast_ths", _ratio(config.contrast_ths)]
    args += ["--adjust_contrast", _ratio(config.adjust_contrast)]

    args += ["--min_size", str(config.min_size)]
    args += ["--paragraph", _flag(config.paragraph)]
    args += ["--quantize", _flag(config.quantize)]
    args += ["--add_margin", _ratio(config.add_margin)]

    # detail=1 keeps boxes and confidences in the output
    args += ["--detail", "1"]

    model_dir = (config.model_storage_directory or "").strip()
    if model_dir:
        args += ["--model_storage_directory", expand_home(model_dir)]

    return args
