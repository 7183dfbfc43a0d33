# ocrbridge/webui.py
from __future__ import annotations

import logging
import os
import shutil
import tempfile
import time
from pathlib import Path
from queue import Empty, Queue
from typing import List, Optional

import gradio as gr
import pandas as pd

from .bridge import AvailabilityMonitor, run_recognition_async
from .config import Decoder, RecognitionConfig, load_settings, save_settings
from .images import draw_records, prepare_image
from .logger import release_logging, setup_logging
from .models import AvailabilityState, RecognitionOutcome

logger = logging.getLogger("ocrbridge")

POLL_INTERVAL = 0.25
RESULT_COLUMNS = ["Text", "Confidence", "Box"]

# RecognitionConfig fields exposed in the Settings tab, in display order
SETTING_FIELDS = [
    "languages", "gpu", "workers", "quantize",
    "decoder", "beam_width", "batch_size", "min_size",
    "text_threshold", "low_text", "link_threshold",
    "contrast_ths", "adjust_contrast", "add_margin",
    "paragraph", "model_storage_directory", "easyocr_exe",
]

_ui_log_queue: "Queue[str]" = Queue()
_session_dir: Optional[Path] = None


# ───────────────────────────────────────────────────────────────────────────────
# Helpers
# ───────────────────────────────────────────────────────────────────────────────

def _drain_log(history: str) -> str:
    try:
        while True:
            history += _ui_log_queue.get_nowait() + "\n"
    except Empty:
        pass
    return history


def _get_session_dir() -> Path:
    """Temp dir for images pasted into the UI, created on first use."""
    global _session_dir
    if _session_dir is None:
        _session_dir = Path(tempfile.mkdtemp(prefix="ocrbridge_"))
    return _session_dir


def _remove_session_dir() -> None:
    global _session_dir
    if _session_dir is not None:
        shutil.rmtree(_session_dir, ignore_errors=True)
        _session_dir = None


def _config_from_inputs(values) -> RecognitionConfig:
    return RecognitionConfig.from_dict(dict(zip(SETTING_FIELDS, values)))


def results_frame(outcome: Optional[RecognitionOutcome]) -> pd.DataFrame:
    if outcome is None or not outcome.ok:
        return pd.DataFrame(columns=RESULT_COLUMNS)
    rows = []
    for r in outcome.records:
        rows.append({
            "Text": r.text,
            "Confidence": "" if r.confidence is None else f"{r.confidence * 100:.1f}%",
            "Box": " ".join(f"({x:g},{y:g})" for x, y in r.bbox),
        })
    return pd.DataFrame(rows, columns=RESULT_COLUMNS)


def availability_markdown(state: AvailabilityState) -> str:
    if state is AvailabilityState.CHECKING:
        return "⏳ Checking for EasyOCR..."
    if state is AvailabilityState.AVAILABLE:
        return "✅ EasyOCR is ready."
    return (
        "### ⚠️ EasyOCR was not found\n"
        "This app drives the EasyOCR command line tool, which must be installed first.\n\n"
        "**Step 1.** Install Python 3: https://www.python.org/downloads/\n\n"
        "**Step 2.** Install EasyOCR:\n\n"
        "```\npip install easyocr\n```\n\n"
        "**Step 3.** Press *Re-check*. The first run downloads the recognition models.\n\n"
        "Tip: if EasyOCR lives in a virtual environment, set its `easyocr` script or "
        "Python interpreter under *Settings → EasyOCR executable*."
    )


# ───────────────────────────────────────────────────────────────────────────────
# Callbacks
# ───────────────────────────────────────────────────────────────────────────────

def handle_check(exe: str):
    """Generator: probes EasyOCR in the background and streams the banner."""
    monitor = AvailabilityMonitor(timeout=load_settings().probe_timeout)
    monitor.start(exe or "")
    yield availability_markdown(monitor.state)
    while monitor.checking:
        time.sleep(POLL_INTERVAL)
        monitor.refresh()
    yield availability_markdown(monitor.state)


def handle_run(image, *setting_values):
    """
    Generator for the Run button: starts recognition on a worker thread and
    polls it, yielding (status, text, table, preview, log) until it finishes.
    """
    # lines left over from earlier runs or availability checks
    _drain_log("")
    log_history = ""
    if image is None:
        yield "Load an image first.", "", results_frame(None), None, log_history
        return

    try:
        config = _config_from_inputs(setting_values)
        path = prepare_image(image, _get_session_dir())
    except (ValueError, TypeError, OSError) as e:
        yield f"⚠️ {e}", "", results_frame(None), None, log_history
        return

    pending = run_recognition_async(path, config)
    started = time.perf_counter()
    outcome = pending.poll()
    while outcome is None:
        log_history = _drain_log(log_history)
        elapsed = time.perf_counter() - started
        yield f"Running OCR... {elapsed:.0f}s", gr.update(), gr.update(), gr.update(), log_history
        time.sleep(POLL_INTERVAL)
        outcome = pending.poll()

    log_history = _drain_log(log_history)
    if not outcome.ok:
        first_line = outcome.error.splitlines()[0] if outcome.error else ""
        yield f"OCR failed: {first_line}", outcome.error, results_frame(None), None, log_history
        return

    preview = draw_records(image, outcome.records)
    status = f"OCR complete: {len(outcome.records)} text regions found."
    yield status, outcome.as_text(), results_frame(outcome), preview, log_history


def handle_save(*setting_values) -> str:
    try:
        path = save_settings(_config_from_inputs(setting_values))
    except (ValueError, TypeError, OSError) as e:
        return f"⚠️ Failed to save settings: {e}"
    return f"Settings saved to {path}"


# ───────────────────────────────────────────────────────────────────────────────
# Gradio App
# ───────────────────────────────────────────────────────────────────────────────

def _settings_components(settings: RecognitionConfig) -> List[gr.components.Component]:
    s = settings
    with gr.Row():
        with gr.Column():
            gr.Markdown("### Languages & hardware")
            languages = gr.Textbox(value=s.languages, label="Languages (e.g. en,ch_sim)")
            gpu = gr.Checkbox(value=s.gpu, label="Use GPU")
            workers = gr.Number(value=s.workers, precision=0, label="CPU workers (0 = auto)")
            quantize = gr.Checkbox(value=s.quantize, label="Dynamic quantization")
        with gr.Column():
            gr.Markdown("### Decoder")
            decoder = gr.Dropdown(
                choices=[(d.label, d.value) for d in Decoder],
                value=s.decoder.value,
                label="Decoder",
            )
            beam_width = gr.Number(value=s.beam_width, precision=0, label="Beam width")
            batch_size = gr.Number(value=s.batch_size, precision=0, label="Batch size")
            min_size = gr.Number(value=s.min_size, precision=0, label="Minimum text size (px)")
    with gr.Row():
        with gr.Column():
            gr.Markdown("### Detection thresholds")
            text_threshold = gr.Slider(0, 1, value=s.text_threshold, step=0.01, label="Text threshold")
            low_text = gr.Slider(0, 1, value=s.low_text, step=0.01, label="Low text")
            link_threshold = gr.Slider(0, 1, value=s.link_threshold, step=0.01, label="Link threshold")
        with gr.Column():
            gr.Markdown("### Contrast & margins")
            contrast_ths = gr.Slider(0, 1, value=s.contrast_ths, step=0.01, label="Contrast threshold")
            adjust_contrast = gr.Slider(0, 1, value=s.adjust_contrast, step=0.01, label="Adjust contrast")
            add_margin = gr.Slider(0, 1, value=s.add_margin, step=0.01, label="Box margin")
    paragraph = gr.Checkbox(value=s.paragraph, label="Combine results into paragraphs (no confidence scores)")
    model_dir = gr.Textbox(value=s.model_storage_directory, label="Model storage directory (optional, ~ allowed)")
    exe = gr.Textbox(value=s.easyocr_exe, label="EasyOCR executable (optional)")

    by_name = {
        "languages": languages, "gpu": gpu, "workers": workers, "quantize": quantize,
        "decoder": decoder, "beam_width": beam_width, "batch_size": batch_size, "min_size": min_size,
        "text_threshold": text_threshold, "low_text": low_text, "link_threshold": link_threshold,
        "contrast_ths": contrast_ths, "adjust_contrast": adjust_contrast, "add_margin": add_margin,
        "paragraph": paragraph, "model_storage_directory": model_dir, "easyocr_exe": exe,
    }
    return [by_name[name] for name in SETTING_FIELDS]


def build_app() -> gr.Blocks:
    settings = load_settings()

    with gr.Blocks(theme=gr.themes.Soft(), title="ocrbridge") as app:
        gr.Markdown("# EasyOCR")
        availability = gr.Markdown(availability_markdown(AvailabilityState.CHECKING))

        with gr.Tabs():
            with gr.Tab("OCR"):
                with gr.Row():
                    with gr.Column(scale=1):
                        image_input = gr.Image(type="numpy", label="Image")
                        run_button = gr.Button("Run OCR", variant="primary")
                        recheck_button = gr.Button("Re-check EasyOCR")
                        status = gr.Markdown("Load an image to begin.")
                    with gr.Column(scale=1):
                        preview = gr.Image(type="pil", label="Detected regions", interactive=False)
                        result_text = gr.Textbox(label="Results", lines=12, interactive=False)
                results_table = gr.DataFrame(
                    value=results_frame(None),
                    headers=RESULT_COLUMNS,
                    label="Recognized regions",
                    interactive=False,
                )
                log_output = gr.Textbox(label="Log", lines=6, interactive=False)

            with gr.Tab("Settings"):
                setting_inputs = _settings_components(settings)
                save_button = gr.Button("Save settings", variant="primary")
                save_status = gr.Markdown()

        exe_input = setting_inputs[SETTING_FIELDS.index("easyocr_exe")]

        run_button.click(
            fn=handle_run,
            inputs=[image_input, *setting_inputs],
            outputs=[status, result_text, results_table, preview, log_output],
        )
        recheck_button.click(fn=handle_check, inputs=exe_input, outputs=availability)
        save_button.click(fn=handle_save, inputs=setting_inputs, outputs=save_status)
        app.load(fn=handle_check, inputs=exe_input, outputs=availability)

    return app


def launch_webui():
    log_queue: Queue = Queue(-1)
    listener = setup_logging(log_queue, text_ui_queue=_ui_log_queue, level=logging.INFO, console=True)
    listener.start()
    try:
        app = build_app()
        app.queue().launch(
            share=os.environ.get("OCRBRIDGE_WEBUI_SHARE") == "1",
            server_name=os.environ.get("OCRBRIDGE_WEBUI_SERVER_NAME", "127.0.0.1"),
            server_port=int(os.environ.get("OCRBRIDGE_WEBUI_SERVER_PORT", "7860")),
        )
    finally:
        listener.stop()
        release_logging()
        _remove_session_dir()


if __name__ == "__main__":
    launch_webui()
