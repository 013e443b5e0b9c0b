"""Storyboard planning and generation routes."""
from __future__ import annotations

import logging
import uuid
from typing import Any

from litestar import post
from litestar.exceptions import ClientException, HTTPException
from litestar.status_codes import HTTP_422_UNPROCESSABLE_ENTITY

from storyclip.compliance import build_animation_style_prompt
from storyclip.config import Config
from storyclip.events import ProgressChannel, ProgressEvent
from storyclip.partitioner import partition
from storyclip.planner import StoryboardGenerationError, build_document, generate_storyboard_clips
from storyclip.transcript import TranscriptParseError, parse_transcript
from webui.backend.models import (
    PlanClip,
    PlanRequest,
    PlanResponse,
    StoryboardRequest,
    StoryboardResponse,
)

log = logging.getLogger(__name__)


@post("/api/plan", sync_to_thread=False)
def plan_clips(data: PlanRequest) -> PlanResponse:
    try:
        rows = parse_transcript(row.model_dump() for row in data.transcript)
    except TranscriptParseError as e:
        raise ClientException(str(e)) from e
    return PlanResponse(clips=[PlanClip(**entry.to_dict()) for entry in partition(rows)])


@post("/api/storyboard", sync_to_thread=True)
def create_storyboard(data: StoryboardRequest, completer: Any) -> StoryboardResponse:
    """Run one storyboard generation synchronously and return the document."""
    job_id = str(uuid.uuid4())[:8]
    max_repairs = data.max_repair_passes
    if max_repairs is None:
        max_repairs = Config.load().max_repair_passes
    style = build_animation_style_prompt(data.animation_style, data.style_modifier)

    log_lines: list[str] = []

    def _collect(event: ProgressEvent) -> None:
        log_lines.append(event.message)

    with ProgressChannel(job_id) as channel:
        unsubscribe = channel.subscribe(_collect)
        try:
            result = generate_storyboard_clips(
                data.raw_rows(),
                data.focal_points,
                style,
                data.setting,
                max_repairs,
                completer=completer,
                progress_cb=channel.publish,
            )
        except TranscriptParseError as e:
            raise ClientException(str(e)) from e
        except StoryboardGenerationError as e:
            log.warning("Storyboard job %s failed: %d errors", job_id, len(e.errors))
            raise HTTPException(
                status_code=HTTP_422_UNPROCESSABLE_ENTITY,
                detail=f"Storyboard failed validation after {len(e.attempts)} attempt(s)",
                extra={"errors": e.errors, "log": log_lines},
            ) from e
        finally:
            unsubscribe()

    document = build_document(result, data.focal_points, style, data.setting, run_id=job_id)
    return StoryboardResponse(job_id=job_id, document=document, log=log_lines)
