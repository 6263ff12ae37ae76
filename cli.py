from __future__ import annotations

import argparse
from pathlib import Path

from dommerger import (
    discover_mod_files,
    export_report,
    load_merge_config,
    load_mod_files,
    merge_mods,
    merge_to_path,
    print_remap_details,
)
from dommerger.logging_utils import log_error, log_info, log_warn, set_verbose


def positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"expected a positive number, got {value}")
    return number


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description=(
            "Merge Dominions .dm mods into a single mod file, "
            "remapping entity IDs that collide between mods."
        )
    )
    parser.add_argument(
        "--mods",
        required=True,
        nargs="+",
        type=Path,
        help="Directories that contain .dm mod files (searched recursively).",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=Path("merged.dm"),
        help="Path of the merged mod file to write.",
    )
    parser.add_argument(
        "--config-path",
        type=Path,
        default=Path("config.toml"),
        help="Path to the program configuration TOML file.",
    )
    parser.add_argument(
        "--report",
        type=Path,
        default=Path(""),
        help="Path to save the remap report Excel file.",
    )
    parser.add_argument(
        "--backup-dir",
        type=Path,
        default=Path("merge_backup"),
        help="Directory to keep the previous merged file before overwriting it.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Resolve ID collisions and print them without writing the merged mod.",
    )
    parser.add_argument(
        "--workers",
        type=positive_int,
        default=None,
        help="Number of threads used to scan mod files.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        default=False,
        help="Print debug output for every processed mod.",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    set_verbose(args.verbose)

    config = load_merge_config(args.config_path.expanduser())
    mod_paths = discover_mod_files(path.expanduser().resolve() for path in args.mods)
    output_path = args.output.expanduser().resolve()
    mod_paths = [path for path in mod_paths if path.resolve() != output_path]

    if not mod_paths:
        log_warn("No .dm files found under the provided mod paths. Program exit.")
        return
    log_info(f"Found {len(mod_paths)} mod files.")

    mod_files = load_mod_files(mod_paths)
    if args.dry_run:
        result = merge_mods(mod_files, lambda line: None, config=config, max_workers=args.workers)
    else:
        result = merge_to_path(
            mod_files,
            output_path,
            config=config,
            backup_dir=args.backup_dir.expanduser(),
            max_workers=args.workers,
        )

    if not result.success:
        cause = result.error
        while cause is not None:
            log_error(f"{type(cause).__name__}: {cause}", indent=2)
            cause = cause.__cause__
        raise SystemExit(1)

    print_remap_details(result.remap_tables)

    report_path = args.report
    if not report_path == Path(""):
        if report_path.suffix.lower() != ".xlsx":
            report_path = report_path / "merge_report.xlsx"
        export_report(
            output_path=report_path,
            definitions=result.definitions,
            remap_tables=result.remap_tables,
            warnings=result.warnings,
        )
        log_info(f"Report saved to {report_path}")

    if args.dry_run:
        log_info("Dry run active. No file changes were made.")


if __name__ == "__main__":
    main()
