from .model_output import RawClip, RawStoryboard
from .storyboard_document import StoryboardDocument, ClipRecord, RowRecord, AttemptRecord

__all__ = [
    "RawClip", "RawStoryboard",
    "StoryboardDocument", "ClipRecord", "RowRecord", "AttemptRecord",
]
