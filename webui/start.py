"""
StoryClip Web API launcher.

Usage:
  python webui/start.py             # Serve on :8000
  python webui/start.py --dev       # Auto-reload on code changes
"""
from __future__ import annotations

import subprocess
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).parent.parent
BACKEND_PORT = 8000


def main() -> None:
    dev = "--dev" in sys.argv

    print("=" * 60)
    print("  StoryClip Web API")
    print("=" * 60)

    print(f"\n► Starting backend on http://localhost:{BACKEND_PORT} …")
    backend_cmd = [
        sys.executable, "-m", "uvicorn",
        "webui.backend.app:app",
        "--port", str(BACKEND_PORT),
        "--host", "0.0.0.0",
    ]
    if dev:
        backend_cmd.append("--reload")

    try:
        subprocess.run(backend_cmd, cwd=str(REPO_ROOT), check=False)
    except KeyboardInterrupt:
        print("\nStopped.")


if __name__ == "__main__":
    main()
