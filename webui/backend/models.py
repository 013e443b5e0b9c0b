"""Pydantic request/response models for the StoryClip Web API."""
from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

from schemas import StoryboardDocument


class TranscriptRowIn(BaseModel):
    timestamp: int | float | str   # seconds or HH:MM:SS
    text: str = ""


class StoryboardRequest(BaseModel):
    transcript: list[TranscriptRowIn] = Field(default_factory=list)
    focal_points: list[str] = Field(default_factory=list)
    animation_style: str = ""
    style_modifier: str = ""       # appended to animation_style, then sanitized
    setting: str = ""
    max_repair_passes: int | None = Field(default=None, ge=0, le=10)

    def raw_rows(self) -> list[dict[str, Any]]:
        return [row.model_dump() for row in self.transcript]


class PlanRequest(BaseModel):
    transcript: list[TranscriptRowIn] = Field(default_factory=list)


class PlanClip(BaseModel):
    start: int
    end: int
    verbatim_transcript: str


class PlanResponse(BaseModel):
    clips: list[PlanClip]


class StoryboardResponse(BaseModel):
    job_id: str
    state: Literal["done"] = "done"
    document: StoryboardDocument
    log: list[str] = Field(default_factory=list)


class ConfigPayload(BaseModel):
    hf_token: str = ""
    gemini_api_key: str = ""
    provider: Literal["hf", "gemini"] = "hf"
    text_model: str = ""
    max_repair_passes: int = Field(default=2, ge=0, le=10)
    llm_timeout: float = Field(default=90, gt=0)
    output_dir: str = "runs"
