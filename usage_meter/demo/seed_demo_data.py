# usage_meter/demo/seed_demo_data.py

import json
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List, Optional, Union

DEMO_PROJECT = "demo-project"


def _assistant(model: str, timestamp: datetime, input_tokens: int, output_tokens: int,
               cache_read: int = 0, cache_create: int = 0) -> dict:
    return {
        "type": "assistant",
        "timestamp": timestamp.strftime("%Y-%m-%dT%H:%M:%S.000Z"),
        "message": {
            "role": "assistant",
            "model": model,
            "usage": {
                "input_tokens": input_tokens,
                "output_tokens": output_tokens,
                "cache_read_input_tokens": cache_read,
                "cache_creation_input_tokens": cache_create,
            },
        },
    }


def _user(timestamp: datetime, text: str) -> dict:
    return {
        "type": "user",
        "timestamp": timestamp.strftime("%Y-%m-%dT%H:%M:%S.000Z"),
        "message": {"role": "user", "content": text},
    }


def seed_demo_journals(root: Union[str, Path], now: Optional[datetime] = None) -> List[Path]:
    """Write sample session journals under root/demo-project.

    Covers the five-hour window, the rest of the week and one turn old
    enough to fall outside every window.
    """
    now = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    project_dir = Path(root) / DEMO_PROJECT
    project_dir.mkdir(parents=True, exist_ok=True)

    sessions = {
        "recent-session.jsonl": [
            _user(now - timedelta(hours=2), "Add a settings page"),
            _assistant("claude-sonnet-4-5-20250929", now - timedelta(hours=2), 1200, 800, 45000, 3000),
            _assistant("claude-haiku-4-5-20251001", now - timedelta(hours=1), 400, 150, 2000, 0),
        ],
        "earlier-session.jsonl": [
            _user(now - timedelta(days=3), "Review the migration"),
            _assistant("claude-opus-4-1-20250805", now - timedelta(days=3), 900, 2500, 60000, 8000),
            _assistant("claude-sonnet-4-5-20250929", now - timedelta(days=2), 1500, 600, 30000, 1200),
            _assistant("claude-sonnet-4-5-20250929", now - timedelta(days=9), 5000, 5000, 0, 0),
        ],
    }

    written = []
    for filename, records in sessions.items():
        path = project_dir / filename
        with open(path, "w", encoding="utf-8") as f:
            for record in records:
                f.write(json.dumps(record) + "\n")
        written.append(path)
    return written


if __name__ == "__main__":
    target = Path(sys.argv[1]) if len(sys.argv) > 1 else Path("demo-projects")
    for path in seed_demo_journals(target):
        print(f"Wrote {path}")
    print(f"Try: usage-meter status --no-remote --projects-dir {target}")
