from __future__ import annotations

import shutil
from pathlib import Path
from typing import Iterable, List, Sequence

from .logging_utils import log_info, log_warn
from .models import ModFile

MOD_FILE_EXTENSION = ".dm"


def ensure_directory(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def discover_mod_files(roots: Iterable[Path]) -> List[Path]:
    """Return every ``.dm`` file below the given directories, sorted per root."""

    files: List[Path] = []
    for root in roots:
        if not root.is_dir():
            log_warn(f"Mod path {root} is not a directory. Skipped.")
            continue
        for path in sorted(root.rglob(f"*{MOD_FILE_EXTENSION}")):
            if path.is_file():
                files.append(path)
    return files


def load_mod_files(paths: Sequence[Path]) -> List[ModFile]:
    mods: List[ModFile] = []
    for path in paths:
        mods.append(ModFile.from_path(path))
    return mods


def backup_file(source: Path, backup_dir: Path) -> Path:
    if not source.exists():
        raise FileNotFoundError(f"Cannot backup missing file: {source}")
    backup_dir.mkdir(parents=True, exist_ok=True)
    destination = backup_dir / (source.name + ".bak")
    shutil.copy2(source, destination)
    log_info(f"Created backup: {destination}")
    return destination


def write_lines(path: Path, lines: Iterable[str]) -> None:
    ensure_directory(path.parent)
    with path.open("w", encoding="utf-8", newline="\n") as writer:
        for line in lines:
            writer.write(line + "\n")
