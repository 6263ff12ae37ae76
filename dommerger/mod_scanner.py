from __future__ import annotations

import threading
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from typing import Callable, Dict, List, Sequence

from .errors import MergeCancelled, ScanError
from .logging_utils import log_debug, log_error
from .mod_parser import parse_mod
from .models import ModDefinition, ModFile, MergeWarning, WarningKind

ModParser = Callable[..., ModDefinition]

DEFAULT_MAX_WORKERS = 32


def _check_unique_names(files: Sequence[ModFile]) -> None:
    seen: Dict[str, ModFile] = {}
    for mod_file in files:
        other = seen.get(mod_file.name)
        if other is not None:
            raise ScanError(
                mod_file.name,
                f"Duplicate mod name detected: {mod_file.name}. "
                f"One: {other.path}, Other: {mod_file.path}.",
            )
        seen[mod_file.name] = mod_file


def _scan_one(parser: ModParser, mod_file: ModFile, cancel_event: threading.Event | None) -> ModDefinition:
    if cancel_event is not None and cancel_event.is_set():
        raise MergeCancelled(f"Scan of '{mod_file.name}' cancelled")
    return parser(mod_file, cancel_event)


def _scan(
    files: Sequence[ModFile],
    parser: ModParser,
    max_workers: int | None,
    cancel_event: threading.Event | None,
    failures: List[MergeWarning] | None,
) -> Dict[str, ModDefinition]:
    if max_workers is not None and max_workers < 1:
        raise ValueError(f"max_workers must be at least 1, got {max_workers}")
    _check_unique_names(files)
    if not files:
        return {}

    definitions: Dict[str, ModDefinition] = {}
    workers = max_workers or min(DEFAULT_MAX_WORKERS, len(files))
    executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="mod-scan")
    try:
        future_to_file: Dict[Future, ModFile] = {
            executor.submit(_scan_one, parser, mod_file, cancel_event): mod_file
            for mod_file in files
        }
        for future in as_completed(future_to_file):
            mod_file = future_to_file[future]
            try:
                definitions[mod_file.name] = future.result()
            except MergeCancelled:
                raise
            except Exception as exc:
                log_error(f"Error scanning mod file {mod_file.name}: {exc}")
                if failures is None:
                    raise ScanError(mod_file.name, f"Failed to scan mod '{mod_file.name}': {exc}") from exc
                failures.append(
                    MergeWarning(
                        kind=WarningKind.GENERAL,
                        message=f"Skipped: mod could not be scanned ({exc})",
                        mod_name=mod_file.name,
                    )
                )
                continue
            log_debug(f"Scanned {mod_file.name}: {len(definitions[mod_file.name].occurrences)} ID commands")
            if cancel_event is not None and cancel_event.is_set():
                raise MergeCancelled("Mod scan cancelled")
    finally:
        executor.shutdown(wait=True, cancel_futures=True)

    return definitions


def scan_mods(
    files: Sequence[ModFile],
    *,
    parser: ModParser = parse_mod,
    max_workers: int | None = None,
    cancel_event: threading.Event | None = None,
) -> Dict[str, ModDefinition]:
    """Parse every mod on a thread pool and join the definitions by mod name.

    The first file that fails aborts the scan with a ScanError; a set
    ``cancel_event`` aborts it with MergeCancelled. No partial result is
    returned in either case.
    """

    return _scan(files, parser, max_workers, cancel_event, failures=None)


def scan_mods_tolerant(
    files: Sequence[ModFile],
    *,
    parser: ModParser = parse_mod,
    max_workers: int | None = None,
    cancel_event: threading.Event | None = None,
) -> tuple[Dict[str, ModDefinition], List[MergeWarning]]:
    """Like scan_mods, but failed mods are dropped and reported as warnings."""

    failures: List[MergeWarning] = []
    definitions = _scan(files, parser, max_workers, cancel_event, failures=failures)
    return definitions, failures
