from __future__ import annotations

import re
from collections import abc
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Dict, List, Mapping, Sequence, Tuple

LINE_BREAK_PATTERN = re.compile(r"\r\n|\r|\n")


class EntityType(str, Enum):
    MONSTER = "monster"
    SPELL = "spell"
    WEAPON = "weapon"
    ARMOR = "armor"
    ITEM = "item"
    SITE = "site"
    NATION = "nation"
    NAME_TYPE = "nametype"
    EVENT_CODE = "eventcode"
    RESTRICTED_ITEM = "restricteditem"
    POPTYPE = "poptype"

    def label(self, entity_id: int = 1) -> str:
        """Human readable name of the kind an ID of this type denotes.

        The sign of ``entity_id`` selects the sub-kind: negative monster IDs are
        montags, every other type uses the same label for both signs.
        """

        if entity_id < 0:
            return _NEGATIVE_LABELS.get(self, _LABELS[self])
        return _LABELS[self]


_LABELS: Dict[EntityType, str] = {
    EntityType.MONSTER: "Monster",
    EntityType.SPELL: "Spell",
    EntityType.WEAPON: "Weapon",
    EntityType.ARMOR: "Armor",
    EntityType.ITEM: "Item",
    EntityType.SITE: "Site",
    EntityType.NATION: "Nation",
    EntityType.NAME_TYPE: "Nametype",
    EntityType.EVENT_CODE: "Eventcode",
    EntityType.RESTRICTED_ITEM: "Restricteditem",
    EntityType.POPTYPE: "Poptype",
}

_NEGATIVE_LABELS: Dict[EntityType, str] = {
    EntityType.MONSTER: "Montag",
}


class OccurrenceRole(str, Enum):
    DECLARATION = "declaration"
    REFERENCE = "reference"


class WarningKind(str, Enum):
    GENERAL = "general"
    SHARED_VANILLA_ENTITY = "shared_vanilla_entity"
    UNTERMINATED_BLOCK = "unterminated_block"
    UNTERMINATED_DESCRIPTION = "unterminated_description"
    UNRESOLVED_REFERENCE = "unresolved_reference"


@dataclass(frozen=True, slots=True)
class ModFile:
    name: str
    path: Path
    content: str

    @classmethod
    def from_path(cls, path: Path) -> "ModFile":
        content = path.read_text(encoding="utf-8", errors="ignore")
        return cls(name=path.stem, path=path, content=content)

    @property
    def lines(self) -> List[str]:
        # Only CR, LF and CRLF end a line; form feeds and the like stay in it.
        lines = LINE_BREAK_PATTERN.split(self.content)
        if lines and lines[-1] == "":
            lines.pop()
        return lines


@dataclass(frozen=True, slots=True)
class EntityOccurrence:
    entity_type: EntityType
    entity_id: int
    line_index: int
    command: str
    role: OccurrenceRole

    @property
    def key(self) -> Tuple[EntityType, int]:
        return (self.entity_type, self.entity_id)


@dataclass(frozen=True, slots=True)
class BlockRegion:
    start_line: int
    end_line: int | None = None

    @property
    def is_closed(self) -> bool:
        return self.end_line is not None


@dataclass(slots=True)
class MergeWarning:
    kind: WarningKind
    message: str
    mod_name: str | None = None

    def __str__(self) -> str:
        if self.mod_name:
            return f"[{self.kind.value}] {self.mod_name}: {self.message}"
        return f"[{self.kind.value}] {self.message}"


@dataclass(slots=True)
class ModDefinition:
    mod_file: ModFile
    occurrences: List[EntityOccurrence] = field(default_factory=list)
    blocks: List[BlockRegion] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.mod_file.name

    def declared_ids(self) -> List[Tuple[EntityType, int]]:
        return _unique_keys(o for o in self.occurrences if o.role == OccurrenceRole.DECLARATION)

    def referenced_ids(self) -> List[Tuple[EntityType, int]]:
        return _unique_keys(o for o in self.occurrences if o.role == OccurrenceRole.REFERENCE)


def _unique_keys(occurrences) -> List[Tuple[EntityType, int]]:
    seen: Dict[Tuple[EntityType, int], None] = {}
    for occurrence in occurrences:
        seen.setdefault(occurrence.key, None)
    return list(seen)


class IdRemapTable(abc.Mapping):
    """Read-only ``(EntityType, original_id) -> new_id`` mapping for one mod."""

    __slots__ = ("_entries",)

    def __init__(self, entries: Mapping[Tuple[EntityType, int], int] | None = None) -> None:
        self._entries = MappingProxyType(dict(entries or {}))

    def __getitem__(self, key: Tuple[EntityType, int]) -> int:
        return self._entries[key]

    def __iter__(self):
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"IdRemapTable({dict(self._entries)!r})"

    def lookup(self, entity_type: EntityType, entity_id: int) -> int | None:
        return self._entries.get((entity_type, entity_id))


@dataclass(slots=True)
class MappedModDefinition:
    definition: ModDefinition
    remap_table: IdRemapTable

    @property
    def mod_file(self) -> ModFile:
        return self.definition.mod_file

    @property
    def name(self) -> str:
        return self.definition.mod_file.name


@dataclass(slots=True)
class MergeResult:
    success: bool
    warnings: List[MergeWarning] = field(default_factory=list)
    error: BaseException | None = None
    remap_tables: Dict[str, IdRemapTable] = field(default_factory=dict)
    definitions: Dict[str, ModDefinition] = field(default_factory=dict)

    @property
    def total_remaps(self) -> int:
        return sum(len(table) for table in self.remap_tables.values())

    def warning_messages(self) -> Sequence[str]:
        return [str(warning) for warning in self.warnings]
