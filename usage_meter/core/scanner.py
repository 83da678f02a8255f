"""
Session journal discovery.

Finds Claude Code session journals laid out as <root>/<project>/<session>.jsonl.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import List, Union

logger = logging.getLogger(__name__)

JOURNAL_SUFFIX = ".jsonl"


def scan_journal_files(root: Union[str, Path], since: datetime) -> List[Path]:
    """List journal files modified at or after a time floor.

    Only the project level below the root is searched; files directly in
    the root and anything nested deeper than one project directory are
    ignored. Scanning is best-effort: an unreadable root yields an empty
    list and unreadable items are skipped.

    Args:
        root: Projects directory
        since: Timezone-aware floor for the file modification time

    Returns:
        Paths of qualifying journal files, in no particular order
    """
    root_path = Path(root)
    floor = since.timestamp()
    files: List[Path] = []

    try:
        project_dirs = list(root_path.iterdir())
    except OSError as e:
        logger.debug("Cannot read projects directory %s: %s", root_path, e)
        return files

    for project_dir in project_dirs:
        if not project_dir.is_dir():
            continue
        try:
            candidates = list(project_dir.iterdir())
        except OSError as e:
            logger.debug("Skipping unreadable project directory %s: %s", project_dir, e)
            continue

        for candidate in candidates:
            if not candidate.name.endswith(JOURNAL_SUFFIX):
                continue
            try:
                if not candidate.is_file():
                    continue
                modified = candidate.stat().st_mtime
            except OSError as e:
                logger.debug("Skipping journal %s: %s", candidate, e)
                continue
            if modified < floor:
                continue
            files.append(candidate)

    return files
