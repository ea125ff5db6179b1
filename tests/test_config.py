"""Tests for settings loading: defaults, YAML and environment overrides."""

from pathlib import Path

import pytest

from skillsynx.config import ROOT_DIR, Settings, _ENV_KEYS, load_settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def _write(tmp_path, text):
    path = tmp_path / "settings.yaml"
    path.write_text(text, encoding="utf-8")
    return path


def test_defaults_when_file_missing(tmp_path):
    settings = load_settings(tmp_path / "missing.yaml")
    assert settings == Settings()
    assert settings.max_attempts == 1
    assert settings.job_count == 6
    assert settings.resume_char_limit == 4000


def test_yaml_sections_are_flattened(tmp_path):
    path = _write(tmp_path, (
        "oracle:\n"
        "  model: llama-3.1-8b-instant\n"
        "  timeout: 30\n"
        "pipeline:\n"
        "  job_count: 4\n"
        "storage:\n"
        "  data_dir: /srv/skillsynx\n"
    ))
    settings = load_settings(path)
    assert settings.model == "llama-3.1-8b-instant"
    assert settings.timeout == 30.0
    assert settings.job_count == 4
    assert settings.data_dir == Path("/srv/skillsynx")


def test_relative_data_dir_is_under_project_root(tmp_path):
    settings = load_settings(_write(tmp_path, "storage:\n  data_dir: var/data\n"))
    assert settings.data_dir == ROOT_DIR / "var" / "data"


def test_env_overrides_yaml(tmp_path, monkeypatch):
    path = _write(tmp_path, "oracle:\n  max_attempts: 2\n  model: from-yaml\n")
    monkeypatch.setenv("ORACLE_MAX_ATTEMPTS", "3")
    monkeypatch.setenv("GROQ_LLM_MODEL", "from-env")
    monkeypatch.setenv("GROQ_API_KEY", "  gsk_test  ")
    settings = load_settings(path)
    assert settings.max_attempts == 3
    assert settings.model == "from-env"
    assert settings.api_key == "gsk_test"


def test_api_key_in_yaml_is_ignored(tmp_path):
    settings = load_settings(_write(tmp_path, "api_key: leaked\n"))
    assert settings.api_key == ""


def test_unknown_keys_are_ignored(tmp_path):
    settings = load_settings(_write(tmp_path, "pipeline:\n  colour: blue\n  job_count: 5\n"))
    assert settings.job_count == 5


def test_non_numeric_env_value_raises(tmp_path, monkeypatch):
    monkeypatch.setenv("ORACLE_TIMEOUT", "soon")
    with pytest.raises(ValueError, match="ORACLE_TIMEOUT"):
        load_settings(tmp_path / "missing.yaml")


@pytest.mark.parametrize("text", [
    "pipeline:\n  job_count: 0\n",
    "oracle:\n  max_attempts: 0\n",
    "pipeline:\n  resume_char_limit: -1\n",
    "oracle:\n  timeout: 0\n",
])
def test_out_of_range_values_raise(tmp_path, text):
    with pytest.raises(ValueError):
        load_settings(_write(tmp_path, text))


def test_top_level_must_be_mapping(tmp_path):
    with pytest.raises(ValueError, match="mapping"):
        load_settings(_write(tmp_path, "- just\n- a list\n"))
