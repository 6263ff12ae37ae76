from __future__ import annotations

from dataclasses import dataclass, field
from itertools import chain
from typing import Dict, FrozenSet, Iterable, List, Mapping, Set, Tuple

from .errors import AllocationExhausted
from .logging_utils import log_debug
from .models import (
    EntityType,
    IdRemapTable,
    ModDefinition,
    MergeWarning,
    WarningKind,
)

EntityKey = Tuple[EntityType, int]


@dataclass(frozen=True, slots=True)
class IdRange:
    """Modding range of one entity type, per sign class.

    Magnitudes below ``floor`` belong to the base game and are never remapped.
    Magnitudes above ``ceiling`` are still modded IDs; they keep their value
    when free and are moved into the range on a collision. A sign class
    without bounds is not managed at all.
    """

    floor: int | None = None
    ceiling: int | None = None
    negative_floor: int | None = None
    negative_ceiling: int | None = None
    sentinels: FrozenSet[int] = field(default_factory=lambda: frozenset({0}))

    def bounds(self, entity_id: int) -> tuple[int, int] | None:
        if entity_id < 0:
            low, high = self.negative_floor, self.negative_ceiling
        else:
            low, high = self.floor, self.ceiling
        if low is None or high is None:
            return None
        return low, high

    def is_sentinel(self, entity_id: int) -> bool:
        return entity_id == 0 or entity_id in self.sentinels

    def is_managed(self, entity_id: int) -> bool:
        """True when ``entity_id`` is a modded ID of its sign class (at or above the floor)."""

        if self.is_sentinel(entity_id):
            return False
        limits = self.bounds(entity_id)
        if limits is None:
            return False
        low, _ = limits
        return abs(entity_id) >= low


# Modding ranges from the Dominions 5 modding manual.
DEFAULT_ID_RANGES: Dict[EntityType, IdRange] = {
    EntityType.WEAPON: IdRange(floor=800, ceiling=1999),
    EntityType.ARMOR: IdRange(floor=300, ceiling=999),
    EntityType.MONSTER: IdRange(floor=3500, ceiling=8999, negative_floor=1000, negative_ceiling=100000),
    EntityType.SPELL: IdRange(floor=1300, ceiling=3999),
    EntityType.ITEM: IdRange(floor=500, ceiling=999),
    EntityType.SITE: IdRange(floor=1700, ceiling=3999),
    EntityType.NATION: IdRange(floor=150, ceiling=499),
    EntityType.NAME_TYPE: IdRange(floor=170, ceiling=399),
    EntityType.EVENT_CODE: IdRange(negative_floor=300, negative_ceiling=5000),
    EntityType.RESTRICTED_ITEM: IdRange(floor=1, ceiling=10000),
    EntityType.POPTYPE: IdRange(floor=125, ceiling=249),
}


def ordered_mod_names(names: Iterable[str]) -> List[str]:
    """Fixed merge order: decides ID precedence and output order."""

    return sorted(names, key=lambda name: (name.lower(), name))


class IdMapper:
    """Global ID registry for a single merge run."""

    def __init__(self, id_ranges: Mapping[EntityType, IdRange] | None = None) -> None:
        self.id_ranges: Mapping[EntityType, IdRange] = (
            DEFAULT_ID_RANGES if id_ranges is None else id_ranges
        )
        self.warnings: List[MergeWarning] = []
        self._registry: Dict[EntityKey, str] = {}
        self._vanilla_claims: Dict[EntityKey, str] = {}
        self._reserved: Set[EntityKey] = set()
        self._allocations: Dict[Tuple[str, EntityType, int], int] = {}

    def owner_of(self, entity_type: EntityType, entity_id: int) -> str | None:
        return self._registry.get((entity_type, entity_id))

    def resolve(self, definitions: Mapping[str, ModDefinition]) -> Dict[str, IdRemapTable]:
        order = ordered_mod_names(definitions)
        self._reserved = {
            key for name in order for key in definitions[name].declared_ids()
        }

        tables: Dict[str, IdRemapTable] = {}
        for name in order:
            tables[name] = IdRemapTable(self._register_mod(name, definitions[name]))
        for name in order:
            self._check_references(name, definitions[name])
        return tables

    def _range_for(self, entity_type: EntityType) -> IdRange | None:
        return self.id_ranges.get(entity_type)

    def _register_mod(self, mod_name: str, definition: ModDefinition) -> Dict[EntityKey, int]:
        remaps: Dict[EntityKey, int] = {}
        for key in definition.declared_ids():
            entity_type, entity_id = key
            id_range = self._range_for(entity_type)
            if id_range is None or not id_range.is_managed(entity_id):
                if id_range is not None and id_range.is_sentinel(entity_id):
                    continue
                self._claim_vanilla(mod_name, key)
                continue

            owner = self._registry.get(key)
            if owner is None:
                self._registry[key] = mod_name
                continue

            new_id = self._allocate(mod_name, entity_type, entity_id, id_range)
            remaps[key] = new_id
            log_debug(
                f"{mod_name}: {entity_type.label(entity_id)} {entity_id} already used by {owner}, "
                f"remapped to {new_id}"
            )
        return remaps

    def _claim_vanilla(self, mod_name: str, key: EntityKey) -> None:
        owner = self._vanilla_claims.setdefault(key, mod_name)
        if owner == mod_name:
            return
        entity_type, entity_id = key
        self.warnings.append(
            MergeWarning(
                kind=WarningKind.SHARED_VANILLA_ENTITY,
                message=(
                    f"{entity_type.label(entity_id)} {entity_id} belongs to the base game "
                    f"and is also modified by {owner}; both changes are kept"
                ),
                mod_name=mod_name,
            )
        )

    def _allocate(self, mod_name: str, entity_type: EntityType, entity_id: int, id_range: IdRange) -> int:
        cache_key = (mod_name, entity_type, entity_id)
        cached = self._allocations.get(cache_key)
        if cached is not None:
            return cached

        low, high = id_range.bounds(entity_id)
        sign = -1 if entity_id < 0 else 1
        start = max(abs(entity_id) + 1, low)
        candidates = chain(range(start, high + 1), range(low, min(start, high + 1)))
        for magnitude in candidates:
            candidate = sign * magnitude
            key = (entity_type, candidate)
            if key in self._registry or key in self._reserved or id_range.is_sentinel(candidate):
                continue
            self._registry[key] = mod_name
            self._allocations[cache_key] = candidate
            return candidate

        raise AllocationExhausted(entity_type, entity_id)

    def _check_references(self, mod_name: str, definition: ModDefinition) -> None:
        for entity_type, entity_id in definition.referenced_ids():
            id_range = self._range_for(entity_type)
            if id_range is None or not id_range.is_managed(entity_id):
                continue
            if (entity_type, entity_id) in self._reserved:
                continue
            self.warnings.append(
                MergeWarning(
                    kind=WarningKind.UNRESOLVED_REFERENCE,
                    message=(
                        f"references {entity_type.label(entity_id)} {entity_id}, "
                        f"which no merged mod declares"
                    ),
                    mod_name=mod_name,
                )
            )


def resolve_ids(
    definitions: Mapping[str, ModDefinition],
    id_ranges: Mapping[EntityType, IdRange] | None = None,
) -> tuple[Dict[str, IdRemapTable], List[MergeWarning]]:
    mapper = IdMapper(id_ranges)
    tables = mapper.resolve(definitions)
    return tables, list(mapper.warnings)
