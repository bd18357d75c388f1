import pytest

from gwhisper.core.config import AppConfig, load_config

_ENV = (
    "GWHISPER_DEVICE",
    "GWHISPER_MODEL",
    "GWHISPER_LANG",
    "GWHISPER_COMPUTE_DEVICE",
    "GWHISPER_COMPUTE_TYPE",
    "GWHISPER_LOG_LEVEL",
    "GWHISPER_UI_HOST",
    "GWHISPER_UI_PORT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch) -> None:
    for name in _ENV:
        monkeypatch.delenv(name, raising=False)


def test_defaults() -> None:
    config = load_config()
    assert config == AppConfig()
    assert config.input_device == "default"
    assert config.model_path is None
    assert config.language == "auto"
    assert config.ui_port == 7860


def test_env_override(monkeypatch) -> None:
    monkeypatch.setenv("GWHISPER_DEVICE", "USB Headset")
    monkeypatch.setenv("GWHISPER_MODEL", "/models/base")
    monkeypatch.setenv("GWHISPER_LANG", "FR")
    monkeypatch.setenv("GWHISPER_LOG_LEVEL", "debug")
    monkeypatch.setenv("GWHISPER_UI_PORT", "9000")

    config = load_config()

    assert config.input_device == "USB Headset"
    assert config.model_path == "/models/base"
    assert config.language == "fr"
    assert config.log_level == "DEBUG"
    assert config.ui_port == 9000


def test_explicit_overrides_win(monkeypatch) -> None:
    monkeypatch.setenv("GWHISPER_LANG", "de")
    config = load_config(language="es", model_path=None)
    assert config.language == "es"
    assert config.model_path is None


def test_unknown_override_rejected() -> None:
    with pytest.raises(TypeError):
        load_config(sample_rate=8000)


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("GWHISPER_UI_PORT", "abc"),
        ("GWHISPER_UI_PORT", "70000"),
        ("GWHISPER_LOG_LEVEL", "LOUD"),
        ("GWHISPER_COMPUTE_DEVICE", "tpu"),
        ("GWHISPER_LANG", "klingon"),
    ],
)
def test_invalid_values(monkeypatch, name: str, value: str) -> None:
    monkeypatch.setenv(name, value)
    with pytest.raises(ValueError):
        load_config()


def test_config_is_frozen() -> None:
    config = load_config()
    with pytest.raises(AttributeError):
        config.language = "en"
