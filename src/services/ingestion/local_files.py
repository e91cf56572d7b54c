"""Discovery of local JSONL session files for bulk ingestion."""

import logging
import os
from pathlib import Path
from typing import Dict, List, Optional

from core.exceptions import BadRequestError

logger = logging.getLogger(__name__)

SESSION_SUFFIX = ".jsonl"


def scan_session_files(target: str, project: Optional[str] = None) -> Dict[str, List[Path]]:
    """Group session files by project name.

    A directory is expected to be laid out as ``<target>/<project>/*.jsonl``.
    A single ``.jsonl`` file belongs to ``project`` or, by default, to the
    name of its parent directory.
    """
    path = Path(target).expanduser()

    if path.is_file():
        if path.suffix != SESSION_SUFFIX:
            raise BadRequestError(f"Not a {SESSION_SUFFIX} file: {path}")
        return {project or path.parent.name: [path]}

    if not path.is_dir():
        raise BadRequestError(f"No such file or directory: {path}")

    projects: Dict[str, List[Path]] = {}
    for file_path in sorted(path.glob(f"*/*{SESSION_SUFFIX}")):
        if not file_path.is_file():
            continue
        projects.setdefault(project or file_path.parent.name, []).append(file_path)

    logger.info(
        f"Found {sum(len(files) for files in projects.values())} session files "
        f"in {len(projects)} projects under {path}"
    )
    return projects


def file_size(path: Path) -> int:
    return os.path.getsize(path)
