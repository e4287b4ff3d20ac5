import pytest
from pydantic import ValidationError

from assistant_core.config.settings import Settings, _load_config_from_yaml


def test_short_api_key_rejected():
    with pytest.raises(ValidationError):
        Settings(gemini_api_key="short")


def test_empty_backend_list_rejected():
    with pytest.raises(ValidationError):
        Settings(model_backends=["  ", ""])


def test_backend_names_are_stripped():
    cfg = Settings(model_backends=[" gemini-pro ", "kimi"])
    assert cfg.model_backends == ["gemini-pro", "kimi"]


def test_yaml_config_file(tmp_path, monkeypatch):
    path = tmp_path / "router.yaml"
    path.write_text("tool_confidence_threshold: 0.8\nmodel_backends:\n  - glm\n", encoding="utf-8")
    monkeypatch.setenv("ASSISTANT_CONFIG_FILE", str(path))
    assert _load_config_from_yaml() == {"tool_confidence_threshold": 0.8, "model_backends": ["glm"]}


def test_yaml_config_not_a_mapping(tmp_path, monkeypatch):
    path = tmp_path / "router.yaml"
    path.write_text("- just\n- a list\n", encoding="utf-8")
    monkeypatch.setenv("ASSISTANT_CONFIG_FILE", str(path))
    monkeypatch.chdir(tmp_path)
    with pytest.warns(UserWarning):
        assert _load_config_from_yaml() == {}
