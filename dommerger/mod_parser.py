from __future__ import annotations

import threading

from .errors import MergeCancelled
from .models import BlockRegion, EntityOccurrence, ModDefinition, ModFile
from .scan_state import ScanState, consume_non_content
from .spell_block import IDLE, extract_sub_command, observe, start_block
from .text_utils import (
    IdToken,
    LineKind,
    classify_line,
    extract_id_token,
    remove_unreadable_characters,
)

CANCEL_CHECK_INTERVAL = 256


def _occurrence(token: IdToken, line_index: int) -> EntityOccurrence:
    return EntityOccurrence(
        entity_type=token.entity_type,
        entity_id=token.entity_id,
        line_index=line_index,
        command=token.command,
        role=token.role,
    )


def parse_mod(mod_file: ModFile, cancel_event: threading.Event | None = None) -> ModDefinition:
    """Collect every ID-bearing command and spell block of a mod, in line order."""

    definition = ModDefinition(mod_file=mod_file)
    state = ScanState()

    for index, raw_line in enumerate(mod_file.lines):
        if cancel_event is not None and index % CANCEL_CHECK_INTERVAL == 0 and cancel_event.is_set():
            raise MergeCancelled(f"Scan of '{mod_file.name}' cancelled")

        line = remove_unreadable_characters(raw_line)
        skip, state = consume_non_content(line, index, state)
        if skip:
            continue

        kind = classify_line(line)
        token: IdToken | None = None

        if kind == LineKind.BLOCK_START:
            if state.block.in_block:
                definition.blocks.append(BlockRegion(start_line=state.block.start_line))
            state = state.with_block(start_block(index))
            token = extract_id_token(line)
        elif state.block.in_block:
            if kind == LineKind.BLOCK_END:
                definition.blocks.append(BlockRegion(start_line=state.block.start_line, end_line=index))
                state = state.with_block(IDLE)
            else:
                state = state.with_block(observe(state.block, line))
                token = extract_sub_command(line, state.block)
        elif kind == LineKind.ENTITY:
            token = extract_id_token(line)

        if token is not None:
            definition.occurrences.append(_occurrence(token, index))

    if state.block.in_block:
        definition.blocks.append(BlockRegion(start_line=state.block.start_line))

    return definition
