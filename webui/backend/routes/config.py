"""Config read/write routes."""
from __future__ import annotations

from pathlib import Path

from litestar import get, post

from storyclip.config import Config
from webui.backend.models import ConfigPayload


@get("/api/config")
async def get_config() -> ConfigPayload:
    cfg = Config.load()
    return ConfigPayload(
        # Mask secret keys to first/last 4 chars
        hf_token=_mask(cfg.hf_token),
        gemini_api_key=_mask(cfg.gemini_api_key),
        provider=cfg.provider,
        text_model=cfg.text_model,
        max_repair_passes=cfg.max_repair_passes,
        llm_timeout=cfg.llm_timeout,
        output_dir=str(cfg.output_dir),
    )


@post("/api/config")
async def save_config(data: ConfigPayload) -> dict:
    cfg = Config.load()
    # Only update secrets if the user sent a non-masked value
    if data.hf_token and "…" not in data.hf_token:
        cfg.hf_token = data.hf_token
    if data.gemini_api_key and "…" not in data.gemini_api_key:
        cfg.gemini_api_key = data.gemini_api_key
    cfg.provider = data.provider
    cfg.text_model = data.text_model
    cfg.max_repair_passes = data.max_repair_passes
    cfg.llm_timeout = data.llm_timeout
    cfg.output_dir = Path(data.output_dir)
    cfg.save()
    return {"ok": True}


def _mask(value: str) -> str:
    if not value:
        return ""
    return value[:4] + "…" + value[-4:] if len(value) > 8 else "…"
