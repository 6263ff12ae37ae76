"""Core package for DomModMerger tooling."""

from .content_writer import ContentWriter, collapse_duplicate_ends, write_mod_content
from .entity_processor import ProcessedLine, format_remap_comment, process_entity
from .errors import (
    AllocationExhausted,
    ContentProcessingError,
    MergeCancelled,
    MergeError,
    ScanError,
)
from .file_utils import backup_file, discover_mod_files, ensure_directory, load_mod_files
from .id_mapper import DEFAULT_ID_RANGES, IdMapper, IdRange, ordered_mod_names, resolve_ids
from .load_config import MergeConfig, OutputSettings, load_merge_config
from .merger import merge_mods, merge_to_path
from .mod_parser import parse_mod
from .mod_scanner import scan_mods, scan_mods_tolerant
from .models import (
    EntityType,
    IdRemapTable,
    MappedModDefinition,
    MergeResult,
    MergeWarning,
    ModDefinition,
    ModFile,
    WarningKind,
)
from .report import export_report, print_remap_details
from .spell_block import SpellBlockProcessor, SpellBlockState

__all__ = [
    "EntityType",
    "ModFile",
    "ModDefinition",
    "IdRemapTable",
    "MappedModDefinition",
    "MergeResult",
    "MergeWarning",
    "WarningKind",
    "MergeError",
    "ScanError",
    "AllocationExhausted",
    "ContentProcessingError",
    "MergeCancelled",
    "MergeConfig",
    "OutputSettings",
    "load_merge_config",
    "IdRange",
    "IdMapper",
    "DEFAULT_ID_RANGES",
    "ordered_mod_names",
    "resolve_ids",
    "parse_mod",
    "scan_mods",
    "scan_mods_tolerant",
    "ProcessedLine",
    "process_entity",
    "format_remap_comment",
    "SpellBlockProcessor",
    "SpellBlockState",
    "ContentWriter",
    "collapse_duplicate_ends",
    "write_mod_content",
    "merge_mods",
    "merge_to_path",
    "print_remap_details",
    "export_report",
    "discover_mod_files",
    "load_mod_files",
    "backup_file",
    "ensure_directory",
]
