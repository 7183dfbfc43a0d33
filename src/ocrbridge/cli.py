# ocrbridge/cli.py
from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import os
import sys
from pathlib import Path
from queue import Queue
from typing import List, Optional

from tqdm import tqdm

from .bridge import run_recognition_async
from .config import Decoder, RecognitionConfig, load_settings, save_settings
from .exceptions import InvalidSettingError, OCRBridgeError, ToolNotFoundError
from .logger import release_logging, setup_logging
from .resolver import INSTALL_HINT, describe_attempts, resolve_command

__all__ = ["build_config", "main"]

logger = logging.getLogger("ocrbridge")

# CLI dest -> RecognitionConfig field
_CONFIG_OPTIONS = {
    "languages": "languages",
    "gpu": "gpu",
    "workers": "workers",
    "decoder": "decoder",
    "beam_width": "beam_width",
    "batch_size": "batch_size",
    "text_threshold": "text_threshold",
    "low_text": "low_text",
    "link_threshold": "link_threshold",
    "contrast_ths": "contrast_ths",
    "adjust_contrast": "adjust_contrast",
    "min_size": "min_size",
    "paragraph": "paragraph",
    "quantize": "quantize",
    "add_margin": "add_margin",
    "model_dir": "model_storage_directory",
    "exe": "easyocr_exe",
    "probe_timeout": "probe_timeout",
}


def build_config(args: argparse.Namespace, base: Optional[RecognitionConfig] = None) -> RecognitionConfig:
    """Overlay the flags the user actually passed on top of `base` (persisted settings)."""
    base = base or RecognitionConfig()
    overrides = {}
    for dest, field_name in _CONFIG_OPTIONS.items():
        value = getattr(args, dest, None)
        if value is not None:
            overrides[field_name] = value
    return dataclasses.replace(base, **overrides)


# -------------------------------
# CLI parsing
# -------------------------------

def _add_switch(group, name: str, dest: str, help_on: str, help_off: str) -> None:
    mx = group.add_mutually_exclusive_group()
    mx.add_argument(f"--{name}", dest=dest, action="store_true", help=help_on)
    mx.add_argument(f"--no-{name}", dest=dest, action="store_false", help=help_off)


def _add_exe_option(p: argparse.ArgumentParser) -> None:
    p.add_argument("--exe", help="Explicit easyocr executable or Python interpreter to use")
    p.add_argument("--probe-timeout", type=float, help="Seconds allowed for the availability probe")
    p.add_argument("--settings", type=Path, help="Settings JSON to read (default: per-user config dir)")


def _build_check_parser(subparsers: argparse._SubParsersAction) -> argparse.ArgumentParser:
    cp = subparsers.add_parser("check", help="Check whether the EasyOCR command can be launched")
    _add_exe_option(cp)
    return cp


def _build_run_parser(subparsers: argparse._SubParsersAction) -> argparse.ArgumentParser:
    p = subparsers.add_parser("run", help="Recognize text in one or more images")
    p.add_argument("images", nargs="+", type=Path, help="Image files to recognize")
    p.add_argument("--json", action="store_true", help="Print one JSON object per image instead of text")
    p.add_argument("--save-settings", action="store_true", help="Persist the effective settings after parsing flags")
    p.add_argument("--log-file", type=Path, help="Also write a log file")
    p.add_argument("-v", "--verbose", action="store_true", help="Show debug logs on stderr")
    _add_exe_option(p)

    ocr = p.add_argument_group("Recognition")
    ocr.add_argument("-l", "--languages", help="Language codes, e.g. 'en,ch_sim'")
    ocr.add_argument(
        "--decoder",
        choices=[d.value for d in Decoder],
        help="Decoder algorithm",
    )
    ocr.add_argument("--beam-width", type=int, help="Beam width for beam-search decoders")
    ocr.add_argument("--batch-size", type=int, help="Batch size for recognition")
    _add_switch(ocr, "paragraph", "paragraph", "Merge results into paragraphs", "Keep one result per text line")

    hw = p.add_argument_group("Hardware")
    _add_switch(hw, "gpu", "gpu", "Use GPU acceleration", "Run on CPU")
    hw.add_argument("-w", "--workers", type=int, help="CPU workers (0 = auto)")
    _add_switch(hw, "quantize", "quantize", "Use dynamic quantization", "Disable quantization")
    hw.add_argument("--model-dir", help="Model storage directory ('~' is expanded)")

    det = p.add_argument_group("Detection thresholds")
    det.add_argument("--text-threshold", type=float, help="Text confidence threshold")
    det.add_argument("--low-text", type=float, help="Text low-bound score")
    det.add_argument("--link-threshold", type=float, help="Link confidence threshold")
    det.add_argument("--contrast-ths", type=float, help="Boxes below this contrast are processed twice")
    det.add_argument("--adjust-contrast", type=float, help="Target contrast for low-contrast boxes")
    det.add_argument("--add-margin", type=float, help="Extend bounding boxes by this ratio")
    det.add_argument("--min-size", type=int, help="Minimum text box size in pixels")

    # switches default to None so persisted settings win unless a flag is given
    p.set_defaults(gpu=None, paragraph=None, quantize=None)
    return p


def _build_webui_parser(subparsers: argparse._SubParsersAction) -> argparse.ArgumentParser:
    wp = subparsers.add_parser("webui", help="Launch the ocrbridge Web UI (Gradio)")
    wp.add_argument("--share", action="store_true", help="Create a public Gradio link")
    wp.add_argument("--server-name", default="127.0.0.1", help="Host to bind (use 0.0.0.0 to expose on LAN)")
    wp.add_argument("--server-port", type=int, default=7860, help="Port to bind")
    return wp


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="ocrbridge", description="ocrbridge: run the EasyOCR CLI and parse its results")
    subparsers = parser.add_subparsers(dest="command")
    _build_check_parser(subparsers)
    _build_run_parser(subparsers)
    _build_webui_parser(subparsers)
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        parser.exit(2)
    return args


# -------------------------------
# Commands
# -------------------------------

def _check_from_cli(args: argparse.Namespace) -> int:
    config = build_config(args, load_settings(args.settings))
    command = resolve_command(config.easyocr_exe, timeout=config.probe_timeout)
    if command is None:
        raise ToolNotFoundError(
            f"EasyOCR command not found (tried {describe_attempts(config.easyocr_exe)}).\n\n{INSTALL_HINT}"
        )
    print(f"EasyOCR available: {command}")
    return 0


def _run_from_cli(args: argparse.Namespace) -> int:
    log_queue: Queue = Queue(-1)
    listener = setup_logging(
        log_queue,
        level=logging.DEBUG if args.verbose else logging.WARNING,
        file_path=args.log_file,
        file_level=logging.INFO,
        console=True,
    )
    listener.start()

    try:
        config = build_config(args, load_settings(args.settings))
        if args.save_settings:
            save_settings(config, args.settings)

        failures = 0
        images = list(args.images)
        with tqdm(total=len(images), desc="Recognizing", unit="img", disable=len(images) < 2) as bar:
            for image in images:
                pending = run_recognition_async(image, config)
                outcome = None
                while outcome is None:
                    outcome = pending.wait(timeout=0.5)
                    bar.refresh()

                if not outcome.ok:
                    failures += 1
                if args.json:
                    tqdm.write(json.dumps({"image": str(image), **outcome.to_dict()}, ensure_ascii=False))
                else:
                    if len(images) > 1:
                        tqdm.write(f"== {image} ==")
                    tqdm.write(outcome.as_text())
                bar.update(1)

        if failures:
            logger.warning("%d of %d images failed", failures, len(images))
        return 1 if failures else 0
    finally:
        listener.stop()
        release_logging()


def _launch_webui_from_cli(args: argparse.Namespace) -> int:
    try:
        from .webui import launch_webui
    except ImportError as e:
        raise SystemExit(f"Web UI components not available: {e}")

    # launch_webui() reads these, falling back to its own defaults
    if args.share:
        os.environ["OCRBRIDGE_WEBUI_SHARE"] = "1"
    if args.server_name:
        os.environ["OCRBRIDGE_WEBUI_SERVER_NAME"] = str(args.server_name)
    if args.server_port:
        os.environ["OCRBRIDGE_WEBUI_SERVER_PORT"] = str(args.server_port)

    launch_webui()
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)

    try:
        if args.command == "check":
            return _check_from_cli(args)
        if args.command == "run":
            return _run_from_cli(args)
        return _launch_webui_from_cli(args)
    except InvalidSettingError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2
    except OCRBridgeError as e:
        print(e, file=sys.stderr)
        return 1


def webui_entry():
    # behaves like running: ocrbridge webui
    sys.exit(main(["webui"]))


if __name__ == "__main__":
    sys.exit(main())
