from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict, Tuple

import pytest

from dommerger.id_mapper import IdRange
from dommerger.mod_parser import parse_mod
from dommerger.models import EntityType, IdRemapTable, MappedModDefinition, ModFile


@pytest.fixture
def make_mod() -> Callable[..., ModFile]:
    def _make(name: str, text: str) -> ModFile:
        return ModFile(name=name, path=Path(f"{name}.dm"), content=text)

    return _make


@pytest.fixture
def make_mapped(make_mod) -> Callable[..., MappedModDefinition]:
    def _make(
        text: str,
        remaps: Dict[Tuple[EntityType, int], int] | None = None,
        name: str = "TestMod",
    ) -> MappedModDefinition:
        definition = parse_mod(make_mod(name, text))
        return MappedModDefinition(definition=definition, remap_table=IdRemapTable(remaps or {}))

    return _make


@pytest.fixture
def small_ranges() -> Dict[EntityType, IdRange]:
    return {
        EntityType.MONSTER: IdRange(floor=100, ceiling=200, negative_floor=1000, negative_ceiling=1010),
        EntityType.WEAPON: IdRange(floor=800, ceiling=810),
        EntityType.SPELL: IdRange(floor=1300, ceiling=1400),
        EntityType.NATION: IdRange(floor=150, ceiling=160),
        EntityType.EVENT_CODE: IdRange(negative_floor=300, negative_ceiling=310),
    }
