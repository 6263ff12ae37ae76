from __future__ import annotations

from dataclasses import dataclass, replace

from .spell_block import IDLE, SpellBlockState
from .text_utils import QUOTE, is_description_start, is_metadata_line


@dataclass(frozen=True, slots=True)
class ScanState:
    """Per-mod line scanning state threaded through the parse and write loops."""

    in_description: bool = False
    description_start: int | None = None
    block: SpellBlockState = IDLE

    def with_block(self, block: SpellBlockState) -> "ScanState":
        return replace(self, block=block)


def consume_non_content(line: str, index: int, state: ScanState) -> tuple[bool, ScanState]:
    """Decide whether ``line`` is mod metadata that never reaches the merged output.

    Covers a leading blank line, ``#modname``/``#icon``/``#version``/
    ``#domversion`` lines and ``#description`` text, including descriptions
    whose quoted body runs over several lines.
    """

    stripped = line.strip()
    if state.in_description:
        if QUOTE in stripped:
            return True, replace(state, in_description=False, description_start=None)
        return True, state
    if index == 0 and not stripped:
        return True, state
    if is_description_start(stripped):
        return True, replace(state, in_description=True, description_start=index)
    if is_metadata_line(stripped):
        return True, state
    return False, state
