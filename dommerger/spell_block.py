from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List

from .entity_processor import format_remap_comment, process_entity
from .models import MappedModDefinition, MergeWarning, WarningKind
from .text_utils import (
    IdToken,
    SPELL_SUB_COMMANDS,
    extract_effect,
    extract_id_token,
    is_block_end,
    is_block_start,
    is_summon_effect,
    remove_unreadable_characters,
    replace_id,
)


class BlockPhase(str, Enum):
    IDLE = "idle"
    IN_BLOCK = "in_block"


@dataclass(frozen=True, slots=True)
class SpellBlockState:
    phase: BlockPhase = BlockPhase.IDLE
    start_line: int | None = None
    effect: int | None = None

    @property
    def in_block(self) -> bool:
        return self.phase == BlockPhase.IN_BLOCK


IDLE = SpellBlockState()


def start_block(line_index: int) -> SpellBlockState:
    return SpellBlockState(phase=BlockPhase.IN_BLOCK, start_line=line_index)


def observe(state: SpellBlockState, line: str) -> SpellBlockState:
    """Record block metadata carried by ``line`` (currently the spell effect)."""

    if not state.in_block:
        return state
    effect = extract_effect(line)
    if effect is None:
        return state
    return replace(state, effect=effect)


def extract_sub_command(line: str, state: SpellBlockState) -> IdToken | None:
    """ID token of a spell sub-command, or None.

    ``#damage`` only names a monster for summoning effects; while the effect is
    still unknown the value is treated as a monster so a matching remap is
    never missed.
    """

    if not state.in_block:
        return None
    token = extract_id_token(line, in_block=True)
    if token is None or token.command not in SPELL_SUB_COMMANDS:
        return None
    if token.command == "#damage":
        if token.entity_id == 0:
            return None
        if state.effect is not None and not is_summon_effect(state.effect):
            return None
    return token


@dataclass(slots=True)
class BlockStep:
    state: SpellBlockState
    lines: List[str] = field(default_factory=list)
    warning: MergeWarning | None = None


class SpellBlockProcessor:
    """Rewrites ID references found inside ``#newspell``/``#selectspell`` blocks."""

    def process_line(
        self,
        line: str,
        line_index: int,
        state: SpellBlockState,
        mapped_def: MappedModDefinition,
    ) -> BlockStep:
        cleaned = remove_unreadable_characters(line)

        if is_block_end(cleaned):
            return BlockStep(state=IDLE, lines=[line])

        if is_block_start(cleaned):
            warning = MergeWarning(
                kind=WarningKind.UNTERMINATED_BLOCK,
                message=f"Spell block opened at line {state.start_line} has no #end before line {line_index}",
                mod_name=mapped_def.name,
            )
            processed = process_entity(line, mapped_def)
            return BlockStep(state=start_block(line_index), lines=processed.output_lines(), warning=warning)

        state = observe(state, cleaned)
        token = extract_sub_command(cleaned, state)
        if token is None:
            return BlockStep(state=state, lines=[line])

        new_id = mapped_def.remap_table.lookup(token.entity_type, token.entity_id)
        if new_id is None or new_id == token.entity_id:
            return BlockStep(state=state, lines=[line])

        return BlockStep(
            state=state,
            lines=[
                format_remap_comment(token.entity_type, token.entity_id, new_id),
                replace_id(line, token, new_id),
            ],
        )

