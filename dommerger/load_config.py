from __future__ import annotations

import toml
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List

from .id_mapper import DEFAULT_ID_RANGES, IdRange
from .logging_utils import log_warn
from .models import EntityType


@dataclass(slots=True)
class OutputSettings:
    modname: str = "Merged Mod"
    description: str = "Merged by DomModMerger"
    icon: str = ""
    version: str = "1.0"
    domversion: str = ""

    def header_lines(self) -> List[str]:
        lines = [
            f'#modname "{self.modname}"',
            f'#description "{self.description}"',
        ]
        if self.icon:
            lines.append(f'#icon "{self.icon}"')
        if self.version:
            lines.append(f"#version {self.version}")
        if self.domversion:
            lines.append(f"#domversion {self.domversion}")
        return lines


@dataclass(slots=True)
class MergeConfig:
    ignore_mods: List[str] = field(default_factory=list)
    output: OutputSettings = field(default_factory=OutputSettings)
    id_ranges: Dict[EntityType, IdRange] = field(default_factory=lambda: dict(DEFAULT_ID_RANGES))


_RANGE_KEYS = ("floor", "ceiling", "negative_floor", "negative_ceiling")


def _parse_id_range(type_name: str, raw: Dict[str, Any], base: IdRange | None) -> IdRange:
    unknown = set(raw) - set(_RANGE_KEYS) - {"sentinels"}
    if unknown:
        raise ValueError(f"Unknown keys for ids.{type_name}: {', '.join(sorted(unknown))}")

    id_range = base or IdRange()
    values = {key: int(raw[key]) for key in _RANGE_KEYS if key in raw}
    if "sentinels" in raw:
        values["sentinels"] = frozenset(int(item) for item in raw["sentinels"])
    id_range = replace(id_range, **values)

    for low_key, high_key in (("floor", "ceiling"), ("negative_floor", "negative_ceiling")):
        low, high = getattr(id_range, low_key), getattr(id_range, high_key)
        if (low is None) != (high is None):
            raise ValueError(f"ids.{type_name} needs both {low_key} and {high_key}")
        if low is not None and (low < 1 or high < low):
            raise ValueError(f"ids.{type_name}: invalid range {low}..{high}")
    return id_range


def _parse_id_ranges(raw_ids: Dict[str, Any]) -> Dict[EntityType, IdRange]:
    ranges = dict(DEFAULT_ID_RANGES)
    for type_name, raw in raw_ids.items():
        try:
            entity_type = EntityType(type_name.lower())
        except ValueError as exc:
            raise ValueError(f"Unknown entity type in ids table: {type_name}") from exc
        ranges[entity_type] = _parse_id_range(type_name, raw, ranges.get(entity_type))
    return ranges


def load_merge_config(config_path: Path) -> MergeConfig:
    """Load merge settings from a TOML file.

    Every table is optional. ``[ids.<type>]`` tables override the default
    modding range of that entity type key by key.
    """

    if not config_path.exists():
        log_warn(f"Config file {config_path} not found. Proceeding with default settings.")
        return MergeConfig()

    raw_text = config_path.read_text(encoding="utf-8")
    try:
        config = toml.loads(raw_text)
    except toml.TomlDecodeError as exc:
        raise ValueError(f"Invalid TOML in config file: {config_path}") from exc

    output = OutputSettings()
    raw_output = config.get("output", {})
    for key in ("modname", "description", "icon", "version", "domversion"):
        if key in raw_output:
            setattr(output, key, str(raw_output[key]))

    return MergeConfig(
        ignore_mods=list(config.get("ignore_mods", [])),
        output=output,
        id_ranges=_parse_id_ranges(config.get("ids", {})),
    )
