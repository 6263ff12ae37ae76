from __future__ import annotations

from pathlib import Path
from typing import Any, List, Mapping, Sequence

from openpyxl import Workbook

from .entity_processor import display_id
from .id_mapper import ordered_mod_names
from .logging_utils import log_ok, log_remap
from .models import IdRemapTable, MergeWarning, ModDefinition


def print_remap_details(remap_tables: Mapping[str, IdRemapTable]) -> None:
    remapped = [name for name in ordered_mod_names(remap_tables) if remap_tables[name]]
    if not remapped:
        log_ok("No ID collisions found.")
        return
    log_remap("ID collisions resolved:")
    for mod_name in remapped:
        log_remap(f"{mod_name}:", indent=2)
        for (entity_type, old_id), new_id in sorted(
            remap_tables[mod_name].items(), key=lambda item: (item[0][0].value, item[0][1])
        ):
            label = entity_type.label(old_id)
            log_remap(
                f"{label} {display_id(entity_type, old_id)} -> {display_id(entity_type, new_id)}",
                indent=4,
            )


def _build_mod_rows(
    definitions: Mapping[str, ModDefinition],
    remap_tables: Mapping[str, IdRemapTable],
) -> List[List[Any]]:
    rows: List[List[Any]] = []
    for name in ordered_mod_names(definitions):
        definition = definitions[name]
        table = remap_tables.get(name)
        rows.append(
            [
                name,  # mod
                str(definition.mod_file.path),  # path
                len(definition.declared_ids()),  # declared ids
                len(definition.referenced_ids()),  # referenced ids
                len(definition.blocks),  # spell blocks
                len(table) if table else 0,  # remapped ids
            ]
        )
    return rows


def _build_remap_rows(remap_tables: Mapping[str, IdRemapTable]) -> List[List[Any]]:
    rows: List[List[Any]] = []
    for name in ordered_mod_names(remap_tables):
        entries = sorted(remap_tables[name].items(), key=lambda item: (item[0][0].value, item[0][1]))
        for (entity_type, old_id), new_id in entries:
            rows.append([name, entity_type.label(old_id), old_id, new_id])
    return rows


def export_report(
    output_path: Path,
    definitions: Mapping[str, ModDefinition],
    remap_tables: Mapping[str, IdRemapTable],
    warnings: Sequence[MergeWarning],
) -> None:
    """Write an Excel report summarizing scanned mods, remapped IDs and warnings."""

    output_path.parent.mkdir(parents=True, exist_ok=True)

    workbook = Workbook()

    mods_sheet = workbook.active
    if not mods_sheet:
        mods_sheet = workbook.create_sheet("mods")
    else:
        mods_sheet.title = "mods"
    mods_sheet.append(["mod", "path", "declared ids", "referenced ids", "spell blocks", "remapped ids"])
    for row in _build_mod_rows(definitions, remap_tables):
        mods_sheet.append(row)

    remaps_sheet = workbook.create_sheet("remaps")
    remaps_sheet.append(["mod", "entity", "old id", "new id"])
    for row in _build_remap_rows(remap_tables):
        remaps_sheet.append(row)

    warnings_sheet = workbook.create_sheet("warnings")
    warnings_sheet.append(["kind", "mod", "message"])
    for warning in warnings:
        warnings_sheet.append([warning.kind.value, warning.mod_name or "", warning.message])

    workbook.save(output_path)
    workbook.close()


__all__ = ["print_remap_details", "export_report"]
