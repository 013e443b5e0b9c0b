"""Settings and API key management."""
from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path

CONFIG_DIR = Path.home() / ".storyclip"
CONFIG_FILE = CONFIG_DIR / "config.json"

# Clip duration bounds (seconds, inclusive)
MIN_CLIP_SECONDS = 2
MAX_CLIP_SECONDS = 5

# Repair loop: extra generation passes after the first attempt
DEFAULT_MAX_REPAIR_PASSES = 2

# Text generation
# Llama-3.1-8B-Instruct: free HF inference tier, supports json_object responses
DEFAULT_PROVIDER = "hf"
DEFAULT_HF_TEXT_MODEL = "meta-llama/Llama-3.1-8B-Instruct"
DEFAULT_GEMINI_TEXT_MODEL = "gemini-2.0-flash"
PROVIDERS = ("hf", "gemini")

LLM_MAX_TOKENS = 4096
LLM_TEMPERATURE = 0.4
LLM_TIMEOUT = 90  # seconds per completion request

# Retry (transport-level, inside a single completion call)
MAX_RETRIES = 3
RETRY_DELAY = 2  # seconds, doubled per attempt


@dataclass
class Config:
    hf_token: str = ""
    gemini_api_key: str = ""
    provider: str = DEFAULT_PROVIDER
    text_model: str = ""         # empty -> provider default
    max_repair_passes: int = DEFAULT_MAX_REPAIR_PASSES
    llm_timeout: float = LLM_TIMEOUT
    output_dir: Path = field(default_factory=lambda: Path("runs"))

    @property
    def resolved_text_model(self) -> str:
        if self.text_model:
            return self.text_model
        if self.provider == "gemini":
            return DEFAULT_GEMINI_TEXT_MODEL
        return DEFAULT_HF_TEXT_MODEL

    @classmethod
    def load(cls, config_file: Path | None = None) -> "Config":
        """Load config from env vars then config file."""
        cfg = cls()
        config_file = config_file or CONFIG_FILE

        # Env var takes priority
        token = os.environ.get("HF_TOKEN", "")
        gemini_key = os.environ.get("GEMINI_API_KEY", "")
        provider = os.environ.get("STORYCLIP_PROVIDER", "")
        text_model = os.environ.get("STORYCLIP_TEXT_MODEL", "")

        # Fall back to config file
        if config_file.exists():
            try:
                data = json.loads(config_file.read_text(encoding="utf-8-sig"))
                if not token:
                    token = data.get("hf_token", "")
                if not gemini_key:
                    gemini_key = data.get("gemini_api_key", "")
                if not provider:
                    provider = data.get("provider", "")
                if not text_model:
                    text_model = data.get("text_model", "")
                if data.get("max_repair_passes") is not None:
                    cfg.max_repair_passes = int(data["max_repair_passes"])
                if data.get("llm_timeout") is not None:
                    cfg.llm_timeout = float(data["llm_timeout"])
                if out := data.get("output_dir"):
                    cfg.output_dir = Path(out)
            except (json.JSONDecodeError, OSError, TypeError, ValueError):
                pass

        cfg.hf_token = token
        cfg.gemini_api_key = gemini_key
        if provider in PROVIDERS:
            cfg.provider = provider
        cfg.text_model = text_model
        return cfg

    def save(self, config_file: Path | None = None) -> None:
        config_file = config_file or CONFIG_FILE
        config_file.parent.mkdir(parents=True, exist_ok=True)
        data = {
            "hf_token": self.hf_token,
            "gemini_api_key": self.gemini_api_key,
            "provider": self.provider,
            "max_repair_passes": self.max_repair_passes,
            "llm_timeout": self.llm_timeout,
            "output_dir": str(self.output_dir),
        }
        if self.text_model:
            data["text_model"] = self.text_model
        config_file.write_text(json.dumps(data, indent=2))
