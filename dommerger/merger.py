from __future__ import annotations

import threading
from pathlib import Path
from typing import List, Sequence

from .content_writer import ContentWriter, WriteLine
from .errors import MergeError
from .file_utils import backup_file, write_lines
from .id_mapper import ordered_mod_names, resolve_ids
from .load_config import MergeConfig
from .logging_utils import log_error, log_info, log_warn
from .mod_scanner import scan_mods
from .models import MappedModDefinition, MergeResult, MergeWarning, ModFile


def _select_mods(mod_files: Sequence[ModFile], ignore_mods: Sequence[str]) -> List[ModFile]:
    ignored = {name.lower() for name in ignore_mods}
    selected: List[ModFile] = []
    for mod_file in mod_files:
        if mod_file.name.lower() in ignored:
            log_info(f"Ignoring mod '{mod_file.name}' via config.", indent=2)
            continue
        selected.append(mod_file)
    return selected


def merge_mods(
    mod_files: Sequence[ModFile],
    write_line: WriteLine,
    *,
    config: MergeConfig | None = None,
    cancel_event: threading.Event | None = None,
    max_workers: int | None = None,
) -> MergeResult:
    """Scan, resolve and write ``mod_files`` as one merged mod.

    Output reaches ``write_line`` only after every phase succeeded; a failed or
    cancelled merge writes nothing and reports the error in the result.
    """

    config = config or MergeConfig()
    warnings: List[MergeWarning] = []
    try:
        selected = _select_mods(mod_files, config.ignore_mods)
        log_info(f"Processing mods: {', '.join(ordered_mod_names(m.name for m in selected))}")

        definitions = scan_mods(selected, max_workers=max_workers, cancel_event=cancel_event)
        remap_tables, resolve_warnings = resolve_ids(definitions, config.id_ranges)
        warnings.extend(resolve_warnings)

        mapped = {
            name: MappedModDefinition(definition=definitions[name], remap_table=remap_tables[name])
            for name in ordered_mod_names(definitions)
        }
        output: List[str] = list(config.output.header_lines())
        warnings.extend(ContentWriter().write(mapped, output.append))
    except (MergeError, ValueError) as exc:
        log_error(f"Merge failed: {exc}")
        return MergeResult(success=False, warnings=warnings, error=exc)

    for line in output:
        write_line(line)

    result = MergeResult(success=True, warnings=warnings, remap_tables=remap_tables, definitions=definitions)
    log_info(f"Merged {len(mapped)} mods, {result.total_remaps} IDs remapped.")
    for warning in warnings:
        log_warn(str(warning), indent=2)
    return result


def merge_to_path(
    mod_files: Sequence[ModFile],
    output_path: Path,
    *,
    config: MergeConfig | None = None,
    backup_dir: Path | None = None,
    cancel_event: threading.Event | None = None,
    max_workers: int | None = None,
) -> MergeResult:
    lines: List[str] = []
    result = merge_mods(
        mod_files,
        lines.append,
        config=config,
        cancel_event=cancel_event,
        max_workers=max_workers,
    )
    if not result.success:
        return result

    if backup_dir is not None and output_path.exists():
        backup_file(output_path, backup_dir)
    write_lines(output_path, lines)
    log_info(f"Merged mod written to {output_path}")
    return result
