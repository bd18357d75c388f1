"""
Gradio UI for push-to-record dictation.
"""

import logging

import gradio as gr

from ..core import config
from ..core.config import AppConfig
from ..core.languages import all_languages
from .dictation import DictationApp

logger = logging.getLogger(__name__)


def _record_label(app: DictationApp) -> str:
    return "⏹️ Stop Recording" if app.is_recording else "🎙️ Start Recording"


def create_ui(app_config: AppConfig) -> tuple[gr.Blocks, DictationApp]:
    """Create the Gradio UI and the controller behind it."""
    app = DictationApp(app_config)

    with gr.Blocks(title="gwhisper") as demo:
        gr.Markdown("# 🎤 gwhisper")
        gr.Markdown(
            "Offline dictation with Whisper. Load a model, press record, "
            "speak, press again to transcribe."
        )

        with gr.Row():
            status_text = gr.Textbox(
                label="Status",
                value=app.get_status(),
                interactive=False,
                lines=1,
                scale=2,
            )
            record_btn = gr.Button(_record_label(app), variant="primary", size="lg")

        with gr.Row():
            model_path = gr.Textbox(
                label="Model path",
                value=app_config.model_path or "",
                placeholder="/path/to/faster-whisper-model",
                scale=3,
            )
            load_btn = gr.Button("📂 Load model", scale=1)
            model_label = gr.Markdown(app.get_model_label())

        language = gr.Dropdown(
            choices=[config.AUTO_LANGUAGE, *all_languages()],
            value=app_config.language,
            label="Language",
        )

        transcript_box = gr.Textbox(
            label="Transcripts",
            placeholder="Transcribed text appears here...",
            lines=12,
            max_lines=15,
            interactive=False,
            autoscroll=True,
        )
        clear_btn = gr.Button("🧹 Clear")

        def on_record():
            app.toggle_record()
            return _record_label(app), app.get_status()

        def on_load(path: str):
            app.load_model(path)
            return app.get_status(), app.get_model_label()

        def on_language(code: str):
            return app.set_language(code)

        def on_clear():
            app.clear_transcripts()
            return ""

        record_btn.click(fn=on_record, outputs=[record_btn, status_text])
        load_btn.click(fn=on_load, inputs=[model_path], outputs=[status_text, model_label])
        language.change(fn=on_language, inputs=[language], outputs=[status_text])
        clear_btn.click(fn=on_clear, outputs=[transcript_box])

        def refresh_all():
            app.poll()
            return app.get_transcripts(), app.get_status(), app.get_model_label()

        timer = gr.Timer(value=config.UI_POLL_SECONDS, active=True)
        timer.tick(fn=refresh_all, outputs=[transcript_box, status_text, model_label])

    return demo, app


def launch(app_config: AppConfig) -> None:
    """Launch the Gradio UI."""
    demo, app = create_ui(app_config)
    try:
        demo.launch(
            server_name=app_config.ui_host,
            server_port=app_config.ui_port,
            share=False,
        )
    finally:
        app.shutdown()
