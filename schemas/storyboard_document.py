from pydantic import BaseModel, Field
from typing import List, Optional


class ClipRecord(BaseModel):
    start: int
    end: int
    verbatim_transcript: str
    focal_point: str
    prompt: str


class RowRecord(BaseModel):
    timestamp: int
    verbatim_text: str
    focal_point: str = ""
    prompt: str = ""


class AttemptRecord(BaseModel):
    number: int = Field(..., description="1 for the initial attempt, 2+ for repair passes")
    errors: List[str] = Field(default_factory=list)
    raw_response: str = ""


class StoryboardDocument(BaseModel):
    """Produced by the storyboard planner, consumed by image/video generation."""
    run_id: Optional[str] = None
    animation_style: str = ""
    setting: str = ""
    focal_points: List[str] = Field(default_factory=list)
    clips: List[ClipRecord] = Field(default_factory=list)
    rows: List[RowRecord] = Field(default_factory=list)
    attempts: List[AttemptRecord] = Field(default_factory=list)
