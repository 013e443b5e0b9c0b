"""Command-line entry point: storyboard a transcript file."""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from .config import CONFIG_DIR, Config


def _setup_logging() -> None:
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        filename=str(CONFIG_DIR / "storyclip.log"),
        level=logging.DEBUG,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def load_transcript_file(path: Path) -> list:
    """Read transcript rows from JSON.

    Accepts a list of ``{"timestamp", "text"}`` rows, ``{"rows": [...]}``,
    or ``{"words": [{"start", "end", "word"}, ...]}`` transcription tokens.
    """
    from .transcript import quantize_words_to_rows

    data = json.loads(path.read_text(encoding="utf-8-sig"))
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        if "words" in data:
            return quantize_words_to_rows(data["words"])
        if "rows" in data:
            return data["rows"]
    raise ValueError(f"Unrecognised transcript format in {path}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="storyclip", description="Plan storyboard clips from a transcript")
    parser.add_argument("--transcript", type=Path, required=True, help="Transcript JSON file")
    parser.add_argument("--focal", action="append", default=[], help="Allowed focal point (repeatable)")
    parser.add_argument("--style", default="", help="Animation style description")
    parser.add_argument("--style-modifier", default="", help="Extra style modifier appended to --style")
    parser.add_argument("--setting", default="", help="Scene setting")
    parser.add_argument("--max-repairs", type=int, default=None, help="Repair passes after the first attempt")
    parser.add_argument("--plan-only", action="store_true", help="Only print the clip plan (no text model)")
    parser.add_argument("--output", type=Path, default=None, help="Write the storyboard JSON here")
    parser.add_argument("--runs-dir", type=Path, default=None, help="Save run artifacts under this directory")
    return parser


def run(args: argparse.Namespace) -> int:
    from utils import RunManager

    from .compliance import build_animation_style_prompt
    from .llm import get_completer
    from .partitioner import partition
    from .planner import StoryboardGenerationError, build_document, generate_storyboard_clips
    from .transcript import parse_transcript

    config = Config.load()

    try:
        raw_rows = load_transcript_file(args.transcript)
        rows = parse_transcript(raw_rows)
    except (OSError, ValueError) as e:
        print(f"Error reading transcript: {e}")
        return 1

    if args.plan_only:
        plan = [entry.to_dict() for entry in partition(rows)]
        text = json.dumps({"clips": plan}, indent=2, ensure_ascii=False)
        if args.output:
            args.output.write_text(text, encoding="utf-8")
        print(text)
        return 0

    style = build_animation_style_prompt(args.style, args.style_modifier)
    max_repairs = args.max_repairs if args.max_repairs is not None else config.max_repair_passes

    try:
        completer = get_completer(config)
    except ValueError as e:
        print(f"Error: {e}")
        return 1

    rm = RunManager(str(args.runs_dir)) if args.runs_dir else None
    run_dir = rm.create_run() if rm else None

    try:
        result = generate_storyboard_clips(
            rows,
            args.focal,
            style,
            args.setting,
            max_repairs,
            completer=completer,
            progress_cb=print,
        )
    except StoryboardGenerationError as e:
        if rm and run_dir:
            for attempt in e.attempts:
                rm.save_attempt(run_dir, attempt.number, attempt.raw_response, attempt.errors)
        print(f"Error: {e}")
        return 1

    document = build_document(result, args.focal, style, args.setting, run_id=run_dir.name if run_dir else None)
    if rm and run_dir:
        rm.save_json(run_dir, "storyboard.json", document)
        for attempt in result.attempts:
            rm.save_attempt(run_dir, attempt.number, attempt.raw_response, attempt.errors)
        print(f"\n✅ Run saved to: {run_dir}")

    text = document.model_dump_json(indent=2)
    if args.output:
        args.output.write_text(text, encoding="utf-8")
        print(f"✅ Output: {args.output}")
    else:
        print(text)
    return 0


def main(argv: list[str] | None = None) -> None:
    """Launch StoryClip from the command line."""
    _setup_logging()
    args = build_parser().parse_args(argv)
    sys.exit(run(args))


if __name__ == "__main__":
    main()
