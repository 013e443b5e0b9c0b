from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Any, List, Optional


def _as_text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _as_seconds(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


class RawClip(BaseModel):
    """One clip as returned by the text model. Untrusted: every field may be absent."""
    model_config = ConfigDict(extra="ignore")

    start: Optional[float] = None
    end: Optional[float] = None
    verbatim_transcript: Optional[str] = None
    focal_point: Optional[str] = None
    luma_prompt: Optional[str] = None

    @field_validator("start", "end", mode="before")
    @classmethod
    def _seconds(cls, value: Any) -> Optional[float]:
        return _as_seconds(value)

    @field_validator("verbatim_transcript", "focal_point", "luma_prompt", mode="before")
    @classmethod
    def _text(cls, value: Any) -> Optional[str]:
        return _as_text(value)


class RawStoryboard(BaseModel):
    """Top-level model response: ``{"clips": [...]}``. Non-object clips become empty."""
    model_config = ConfigDict(extra="ignore")

    clips: List[RawClip] = Field(default_factory=list)

    @field_validator("clips", mode="before")
    @classmethod
    def _clips(cls, value: Any) -> list:
        if not isinstance(value, list):
            return []
        return [item if isinstance(item, dict) else {} for item in value]
