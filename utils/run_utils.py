import json
from datetime import datetime
from pathlib import Path
from typing import Optional

from pydantic import BaseModel


class RunManager:
    def __init__(self, base_dir: str = "runs"):
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def create_run(self, run_id: Optional[str] = None) -> Path:
        if not run_id:
            run_id = datetime.now().strftime("%Y%m%d_%H%M%S")
        run_dir = self.base_dir / run_id
        run_dir.mkdir(exist_ok=True)
        (run_dir / "attempts").mkdir(exist_ok=True)
        return run_dir

    def save_json(self, run_dir: Path, filename: str, data) -> Path:
        if isinstance(data, BaseModel):
            data = data.model_dump(mode="json")
        path = run_dir / filename
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        return path

    def save_attempt(self, run_dir: Path, number: int, raw_response: str, errors: list) -> Path:
        """Write one synthesis attempt (raw model text + validation errors)."""
        return self.save_json(
            run_dir / "attempts",
            f"attempt_{number:02d}.json",
            {"number": number, "errors": list(errors), "raw_response": raw_response},
        )
