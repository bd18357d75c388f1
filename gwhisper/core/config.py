"""
Core configuration for audio capture and recognition.
Fixed audio constants plus the application config resolved from the environment.
"""

import os
from dataclasses import dataclass

# -------------------------
# AUDIO CONFIG
# -------------------------
SAMPLE_RATE = 16000  # Whisper requirement, not configurable
CHANNELS = 1
DEFAULT_INPUT_DEVICE = "default"

# -------------------------
# RECOGNITION CONFIG
# -------------------------
AUTO_LANGUAGE = "auto"
COMPUTE_DEVICES = ("auto", "cpu", "cuda")
DEFAULT_COMPUTE_TYPE = "default"

# -------------------------
# UI CONFIG
# -------------------------
UI_HOST = "127.0.0.1"
UI_PORT = 7860
UI_POLL_SECONDS = 0.3

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class AppConfig:
    """
    Application configuration.
    Built once at startup and passed explicitly to the components that need it.
    """

    input_device: str = DEFAULT_INPUT_DEVICE
    model_path: str | None = None
    language: str = AUTO_LANGUAGE
    compute_device: str = "auto"
    compute_type: str = DEFAULT_COMPUTE_TYPE
    log_level: str = "INFO"
    ui_host: str = UI_HOST
    ui_port: int = UI_PORT


def load_config(**overrides) -> AppConfig:
    """
    Resolve configuration from GWHISPER_* environment variables.

    Args:
        **overrides: Explicit values (e.g. from CLI flags). None values are ignored.

    Returns:
        Frozen AppConfig
    """
    values: dict[str, str | int | None] = {
        "input_device": os.getenv("GWHISPER_DEVICE", DEFAULT_INPUT_DEVICE),
        "model_path": os.getenv("GWHISPER_MODEL") or None,
        "language": os.getenv("GWHISPER_LANG", AUTO_LANGUAGE),
        "compute_device": os.getenv("GWHISPER_COMPUTE_DEVICE", "auto"),
        "compute_type": os.getenv("GWHISPER_COMPUTE_TYPE", DEFAULT_COMPUTE_TYPE),
        "log_level": os.getenv("GWHISPER_LOG_LEVEL", "INFO"),
        "ui_host": os.getenv("GWHISPER_UI_HOST", UI_HOST),
        "ui_port": _parse_int("GWHISPER_UI_PORT", os.getenv("GWHISPER_UI_PORT"), UI_PORT),
    }
    for key, value in overrides.items():
        if key not in values:
            raise TypeError(f"Unknown config field: {key}")
        if value is not None:
            values[key] = value

    compute_device = str(values["compute_device"]).strip().lower()
    if compute_device not in COMPUTE_DEVICES:
        raise ValueError(
            f"compute_device must be one of {COMPUTE_DEVICES}, got {compute_device!r}"
        )

    log_level = str(values["log_level"]).strip().upper()
    if log_level not in LOG_LEVELS:
        raise ValueError(f"log_level must be one of {LOG_LEVELS}, got {log_level!r}")

    from .languages import validate_language

    language = validate_language(str(values["language"]))

    ui_port = int(values["ui_port"])
    if not 0 < ui_port < 65536:
        raise ValueError(f"ui_port must be in 1..65535, got {ui_port}")

    return AppConfig(
        input_device=str(values["input_device"]),
        model_path=values["model_path"],
        language=language,
        compute_device=compute_device,
        compute_type=str(values["compute_type"]),
        log_level=log_level,
        ui_host=str(values["ui_host"]),
        ui_port=ui_port,
    )


def _parse_int(name: str, raw: str | None, default: int) -> int:
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc
