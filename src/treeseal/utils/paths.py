from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Sequence


def clean_directories(directories: Iterable[str | Path]) -> List[Path]:
    return [Path(os.path.normpath(str(item))) for item in directories]


def find_regular_file(relative: str, directories: Sequence[Path]) -> Optional[Path]:
    """Return the first ``directory / relative`` that is a regular file."""
    rel = relative.lstrip("/\\")
    for directory in directories:
        candidate = Path(os.path.normpath(os.path.join(directory, rel)))
        try:
            if candidate.is_file():
                return candidate
        except OSError:
            continue
    return None


def walk_regular_files(directory: Path) -> Iterator[str]:
    """Yield paths of regular files under ``directory``, relative and posix style."""
    for root, dirs, files in os.walk(directory):
        dirs.sort()
        for filename in sorted(files):
            full = Path(root) / filename
            if not full.is_file():
                continue
            yield full.relative_to(directory).as_posix()


def relative_key(relative: str) -> str:
    rel = os.path.normpath(relative.lstrip("/\\"))
    return rel.replace(os.sep, "/")
