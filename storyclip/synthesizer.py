"""Prompt synthesizer: ask the text model for per-clip camera prompts.

The model only contributes ``focal_point`` and the prompt text. Clip
boundaries and transcript text always come from the clip plan, and every
prompt is passed through the compliance repair, so a garbage or empty
response still yields schema-valid clips.
"""
from __future__ import annotations

import json
import logging
import re
from dataclasses import asdict, dataclass
from typing import Sequence

from pydantic import ValidationError

from schemas import RawClip, RawStoryboard

from .compliance import (
    CAMERA_KEYWORDS,
    FORBIDDEN_PHRASES,
    MOTION_KEYWORDS,
    OTHER_FOCAL_POINT,
    TIME_OF_DAY_KEYWORDS,
    repair_prompt,
)
from .llm import TextCompleter
from .partitioner import ClipPlanEntry

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoryboardClip:
    start: int
    end: int
    verbatim_transcript: str
    focal_point: str
    prompt: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class SynthesisResult:
    clips: list[StoryboardClip]
    raw_response: str


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------

_SYSTEM = """You are a storyboard director for short animated videos.
You write one camera prompt per clip for an image-to-video model.
Each prompt is self-contained: it never refers to other clips.
Always respond with ONLY a valid JSON object — no markdown, no extra text."""

_USER_TEMPLATE = """Write camera prompts for exactly {n_clips} clips.

ANIMATION STYLE: {animation_style}
SETTING: {setting}
ALLOWED FOCAL POINTS: {focal_points}

CLIPS (fixed — copy start, end and verbatim_transcript unchanged):
{clips_json}

RULES:
- Keep exactly {n_clips} clips in the same order
- focal_point must be one of the allowed focal points, or "Other"
- luma_prompt must start with a camera framing ({camera_keywords})
- luma_prompt must name a camera motion ({motion_keywords})
- luma_prompt must name a time of day ({time_keywords})
- luma_prompt must mention the setting and the animation style
- Never use these continuity phrases: {forbidden}
- Describe what is visible while the clip's transcript is spoken
{repair_section}
Respond with ONLY this JSON structure:
{{
  "clips": [
    {{"start": <int>, "end": <int>, "verbatim_transcript": "...", "focal_point": "...", "luma_prompt": "..."}}
  ]
}}"""

_REPAIR_TEMPLATE = """
YOUR PREVIOUS OUTPUT:
{previous_json}

IT FAILED VALIDATION WITH THESE ERRORS — fix every one:
{errors_text}
"""


def build_messages(
    clip_plan: Sequence[ClipPlanEntry],
    focal_points: Sequence[str],
    animation_style: str,
    setting: str,
    previous: Sequence[StoryboardClip] | None = None,
    errors: Sequence[str] = (),
) -> tuple[str, str]:
    """Return the (system, user) message pair for one synthesis call."""
    clips_json = json.dumps(
        [dict(index=i, **entry.to_dict()) for i, entry in enumerate(clip_plan)],
        indent=2,
    )

    repair_section = ""
    if previous is not None and errors:
        previous_json = json.dumps(
            {"clips": [_to_model_shape(c) for c in previous]},
            indent=2,
        )
        errors_text = "\n".join(f"  {i}. {e}" for i, e in enumerate(errors, 1))
        repair_section = _REPAIR_TEMPLATE.format(
            previous_json=previous_json,
            errors_text=errors_text,
        )

    user = _USER_TEMPLATE.format(
        n_clips=len(clip_plan),
        animation_style=animation_style or "(none)",
        setting=setting or "(none)",
        focal_points=", ".join(focal_points) or OTHER_FOCAL_POINT,
        clips_json=clips_json,
        camera_keywords=", ".join(CAMERA_KEYWORDS),
        motion_keywords=", ".join(MOTION_KEYWORDS),
        time_keywords=", ".join(TIME_OF_DAY_KEYWORDS),
        forbidden=", ".join(f'"{p}"' for p in FORBIDDEN_PHRASES),
        repair_section=repair_section,
    )
    return _SYSTEM, user


def _to_model_shape(clip: StoryboardClip) -> dict:
    return {
        "start": clip.start,
        "end": clip.end,
        "verbatim_transcript": clip.verbatim_transcript,
        "focal_point": clip.focal_point,
        "luma_prompt": clip.prompt,
    }


# ---------------------------------------------------------------------------
# Parsing (untrusted model output)
# ---------------------------------------------------------------------------

def _first_object(text: str) -> str | None:
    """Return the first balanced top-level ``{...}`` substring, if any."""
    depth = 0
    begin = -1
    in_string = False
    escaped = False
    for i, ch in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"' and depth > 0:
            in_string = True
        elif ch == "{":
            if depth == 0:
                begin = i
            depth += 1
        elif ch == "}" and depth > 0:
            depth -= 1
            if depth == 0:
                return text[begin:i + 1]
    return None


def extract_json(text: str | None) -> dict | None:
    """Extract the first JSON object from a text response, or None."""
    if not text or not text.strip():
        return None
    candidates = [text.strip()]
    fence = re.search(r"```(?:json)?\s*(\{.*?\})\s*```", text, re.DOTALL)
    if fence:
        candidates.append(fence.group(1))
    obj = _first_object(text)
    if obj:
        candidates.append(obj)

    for candidate in candidates:
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(data, dict):
            return data
    return None


def parse_model_output(text: str | None) -> RawStoryboard:
    """Parse a model response into the untrusted schema. Never raises."""
    data = extract_json(text)
    if data is None:
        log.warning("No JSON object in model response (%d chars)", len(text or ""))
        return RawStoryboard()
    try:
        return RawStoryboard.model_validate(data)
    except ValidationError as e:
        log.warning("Model response failed schema parse: %s", e)
        return RawStoryboard()


# ---------------------------------------------------------------------------
# Compliance layer
# ---------------------------------------------------------------------------

def _match_focal_point(value: str | None, focal_points: Sequence[str]) -> str:
    if value:
        wanted = value.strip().lower()
        for name in focal_points:
            if name.lower() == wanted:
                return name
    return OTHER_FOCAL_POINT


def _pick_raw_clip(
    entry: ClipPlanEntry,
    index: int,
    raw_clips: Sequence[RawClip],
    by_start: dict[int, RawClip],
) -> RawClip:
    if entry.start in by_start:
        return by_start[entry.start]
    if index < len(raw_clips):
        return raw_clips[index]
    return RawClip()


def apply_compliance(
    clip_plan: Sequence[ClipPlanEntry],
    raw: RawStoryboard,
    focal_points: Sequence[str],
    animation_style: str,
    setting: str,
) -> list[StoryboardClip]:
    """Build final candidate clips: plan boundaries plus repaired model prompts."""
    by_start: dict[int, RawClip] = {}
    for rc in raw.clips:
        if rc.start is not None and rc.start.is_integer():
            by_start.setdefault(int(rc.start), rc)

    clips: list[StoryboardClip] = []
    for index, entry in enumerate(clip_plan):
        rc = _pick_raw_clip(entry, index, raw.clips, by_start)
        focal_point = _match_focal_point(rc.focal_point, focal_points)
        prompt = repair_prompt(
            rc.luma_prompt or "",
            focal_point=focal_point,
            setting=setting,
            animation_style=animation_style,
            verbatim=entry.verbatim_transcript,
        )
        clips.append(StoryboardClip(
            start=entry.start,
            end=entry.end,
            verbatim_transcript=entry.verbatim_transcript,
            focal_point=focal_point,
            prompt=prompt,
        ))
    return clips


def synthesize(
    clip_plan: Sequence[ClipPlanEntry],
    focal_points: Sequence[str],
    animation_style: str,
    setting: str,
    previous: Sequence[StoryboardClip] | None = None,
    errors: Sequence[str] = (),
    *,
    completer: TextCompleter,
) -> SynthesisResult:
    """Call the text model once and return compliance-repaired candidate clips.

    Raises whatever the completer raises; callers decide whether a failed
    call counts as an empty response.
    """
    system, user = build_messages(
        clip_plan, focal_points, animation_style, setting, previous, errors,
    )
    raw_text = completer.complete(system, user, response_format="json") or ""
    log.debug("Synthesizer raw response:\n%s", raw_text)

    raw = parse_model_output(raw_text)
    if len(raw.clips) != len(clip_plan):
        log.info("Model returned %d clips for a %d-clip plan", len(raw.clips), len(clip_plan))

    clips = apply_compliance(clip_plan, raw, focal_points, animation_style, setting)
    return SynthesisResult(clips=clips, raw_response=raw_text)
