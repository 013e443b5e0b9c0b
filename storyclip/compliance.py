"""Prompt keyword rules and the deterministic compliance repair.

Every clip prompt must name a camera framing, a camera motion and a time
of day, reference the scene setting and the animation style, and avoid
continuity phrases that only make sense relative to another clip ("same",
"as before"). ``repair_prompt`` forces arbitrary text into that shape.
"""
from __future__ import annotations

import re
from typing import Iterable

CAMERA_KEYWORDS = (
    "extreme close-up", "close-up", "closeup", "wide", "medium", "establishing",
    "long shot", "full shot", "over-the-shoulder", "aerial", "overhead",
    "bird's-eye", "low-angle", "high-angle", "two-shot", "point-of-view", "pov",
)
MOTION_KEYWORDS = (
    "static", "pan", "panning", "tilt", "tilting", "dolly", "push-in",
    "pull-back", "pull-out", "tracking", "crane", "zoom", "zooming",
    "handheld", "orbit", "orbiting", "drift", "drifting",
)
TIME_OF_DAY_KEYWORDS = (
    "dawn", "sunrise", "morning", "midday", "noon", "afternoon", "golden hour",
    "sunset", "dusk", "twilight", "evening", "night", "midnight",
)
FORBIDDEN_PHRASES = ("same", "returns", "cut back", "as before")

DEFAULT_CAMERA = "Wide shot"
DEFAULT_MOTION = "static camera"
DEFAULT_TIME_OF_DAY = "morning light"
OTHER_FOCAL_POINT = "Other"

BLOCKED_STYLE_TERMS = (
    "pixar", "dreamworks", "disney", "illumination", "studio ghibli", "ghibli",
    "laika", "sony animation", "blue sky", "cartoon network", "nickelodeon",
)

SIGNIFICANT_TOKEN_LEN = 4

_TOKEN_RE = re.compile(r"[a-z0-9]+")


def _phrase_pattern(phrase: str) -> re.Pattern:
    # "close-up" also matches "close up"; no partial-word matches
    parts = [re.escape(part) for part in re.split(r"[\s-]+", phrase.strip())]
    body = r"[\s-]+".join(parts)
    return re.compile(rf"(?<![a-z0-9]){body}(?![a-z0-9])", re.IGNORECASE)


_CAMERA_RES = [_phrase_pattern(k) for k in CAMERA_KEYWORDS]
_MOTION_RES = [_phrase_pattern(k) for k in MOTION_KEYWORDS]
_TIME_RES = [_phrase_pattern(k) for k in TIME_OF_DAY_KEYWORDS]
_FORBIDDEN_RES = {phrase: _phrase_pattern(phrase) for phrase in FORBIDDEN_PHRASES}
# Removal also takes a hyphen joining the phrase to a neighbour ("same-day")
_STRIP_RES = [re.compile(rf"-?{p.pattern}-?", re.IGNORECASE) for p in _FORBIDDEN_RES.values()]
_BLOCKED_STYLE_RES = [_phrase_pattern(term) for term in BLOCKED_STYLE_TERMS]


def _any_match(patterns: Iterable[re.Pattern], text: str) -> bool:
    return any(p.search(text) for p in patterns)


def has_camera_keyword(text: str) -> bool:
    return _any_match(_CAMERA_RES, text)


def has_motion_keyword(text: str) -> bool:
    return _any_match(_MOTION_RES, text)


def has_time_keyword(text: str) -> bool:
    return _any_match(_TIME_RES, text)


def find_forbidden_phrases(text: str) -> list[str]:
    return [phrase for phrase, pattern in _FORBIDDEN_RES.items() if pattern.search(text)]


def _tidy(text: str) -> str:
    text = re.sub(r"\s+", " ", text)
    text = re.sub(r"\s+([,.;:!?])", r"\1", text)
    text = re.sub(r"([,;])(?:\s*[,;])+", r"\1", text)
    return text.strip(" ,;")


def strip_forbidden_phrases(text: str) -> str:
    for pattern in _STRIP_RES:
        text = pattern.sub(" ", text)
    return _tidy(text)


def significant_tokens(text: str) -> list[str]:
    return [t for t in _TOKEN_RE.findall(text.lower()) if len(t) >= SIGNIFICANT_TOKEN_LEN]


def clean_phrase(text: str | None) -> str:
    """``text`` as it reads inside a repaired prompt: tidied, continuity phrases removed."""
    return strip_forbidden_phrases(text or "")


def references_setting(prompt: str, setting: str) -> bool:
    """True when every significant token of the setting appears in the prompt."""
    setting = clean_phrase(setting)
    if not setting:
        return True
    tokens = significant_tokens(setting)
    if not tokens:
        return setting.lower() in _tidy(prompt).lower()
    prompt_tokens = set(_TOKEN_RE.findall(prompt.lower()))
    return all(token in prompt_tokens for token in tokens)


def references_style(prompt: str, animation_style: str) -> bool:
    style = clean_phrase(animation_style)
    return not style or style.lower() in _tidy(prompt).lower()


def mentions_focal_point(prompt: str, focal_point: str) -> bool:
    return bool(focal_point) and focal_point.lower() in prompt.lower()


def repair_prompt(
    text: str,
    *,
    focal_point: str,
    setting: str,
    animation_style: str,
    verbatim: str,
) -> str:
    """Force a possibly non-compliant prompt into rule-valid form.

    Missing framing/motion defaults go in front, missing time of day,
    setting, style and focal point go after, then the clip's transcript.
    Continuity phrases are stripped last.
    """
    body = re.sub(r"\s+", " ", text or "").strip().rstrip(" ,;.")
    setting = clean_phrase(setting)
    style = clean_phrase(animation_style)

    parts: list[str] = []
    if not has_camera_keyword(body):
        parts.append(DEFAULT_CAMERA)
    if not has_motion_keyword(body):
        parts.append(DEFAULT_MOTION)
    if body:
        parts.append(body)
    if not has_time_keyword(body):
        parts.append(DEFAULT_TIME_OF_DAY)

    if setting and not references_setting(", ".join(parts), setting):
        parts.append(setting)
    if style and not references_style(", ".join(parts), style):
        parts.append(style)
    if focal_point != OTHER_FOCAL_POINT and not mentions_focal_point(", ".join(parts), focal_point):
        parts.append(f"featuring {focal_point}")
    if verbatim.strip():
        parts.append(verbatim.strip())

    return strip_forbidden_phrases(", ".join(parts))


def sanitize_animation_style(text: str | None) -> str:
    """Remove studio names that image providers reject as style references."""
    if not text:
        return ""
    for pattern in _BLOCKED_STYLE_RES:
        text = pattern.sub("", text)
    return _tidy(text)


def build_animation_style_prompt(description: str | None, modifier: str | None = None) -> str:
    combined = ", ".join(part for part in (description, modifier) if part)
    return sanitize_animation_style(combined)
