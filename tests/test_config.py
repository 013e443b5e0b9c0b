import json

import pytest

from storyclip.config import DEFAULT_GEMINI_TEXT_MODEL, DEFAULT_HF_TEXT_MODEL, Config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ("HF_TOKEN", "GEMINI_API_KEY", "STORYCLIP_PROVIDER", "STORYCLIP_TEXT_MODEL"):
        monkeypatch.delenv(key, raising=False)


def test_defaults_without_file(tmp_path):
    cfg = Config.load(config_file=tmp_path / "missing.json")
    assert cfg.provider == "hf"
    assert cfg.max_repair_passes == 2
    assert cfg.resolved_text_model == DEFAULT_HF_TEXT_MODEL


def test_save_and_load_roundtrip(tmp_path):
    path = tmp_path / "config.json"
    cfg = Config(hf_token="hf_abc", provider="gemini", max_repair_passes=4, llm_timeout=30)
    cfg.save(config_file=path)

    loaded = Config.load(config_file=path)
    assert loaded.hf_token == "hf_abc"
    assert loaded.provider == "gemini"
    assert loaded.max_repair_passes == 4
    assert loaded.llm_timeout == 30
    assert loaded.resolved_text_model == DEFAULT_GEMINI_TEXT_MODEL


def test_env_takes_priority(tmp_path, monkeypatch):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"hf_token": "from_file", "provider": "gemini"}))
    monkeypatch.setenv("HF_TOKEN", "from_env")
    monkeypatch.setenv("STORYCLIP_PROVIDER", "hf")

    cfg = Config.load(config_file=path)
    assert cfg.hf_token == "from_env"
    assert cfg.provider == "hf"


def test_malformed_file_is_ignored(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{not json")
    cfg = Config.load(config_file=path)
    assert cfg.hf_token == ""
    assert cfg.provider == "hf"


def test_unknown_provider_falls_back(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"provider": "carrier-pigeon"}))
    assert Config.load(config_file=path).provider == "hf"
