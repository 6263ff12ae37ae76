from __future__ import annotations

from dataclasses import dataclass
from typing import List

from .models import EntityType, MappedModDefinition
from .text_utils import extract_id_token, remove_unreadable_characters, replace_id

REMAP_COMMENT_PREFIX = "-- MOD MERGER: Remapped"


@dataclass(frozen=True, slots=True)
class ProcessedLine:
    line: str
    remap_comment: str | None = None

    @property
    def remapped(self) -> bool:
        return self.remap_comment is not None

    def output_lines(self) -> List[str]:
        if self.remap_comment is None:
            return [self.line]
        return [self.remap_comment, self.line]


def display_id(entity_type: EntityType, entity_id: int) -> int:
    # Montags are written as positive numbers next to their own label.
    if entity_type.label(entity_id) != entity_type.label():
        return abs(entity_id)
    return entity_id


def format_remap_comment(entity_type: EntityType, old_id: int, new_id: int) -> str:
    label = entity_type.label(old_id)
    return (
        f"{REMAP_COMMENT_PREFIX} {label} "
        f"{display_id(entity_type, old_id)} -> {display_id(entity_type, new_id)}"
    )


def process_entity(line: str, mapped_def: MappedModDefinition) -> ProcessedLine:
    """Rewrite the ID literal on ``line`` using the mod's remap table.

    Lines without a recognised ID command, or whose ID keeps its identity
    mapping, come back untouched and without a comment.
    """

    cleaned = remove_unreadable_characters(line)
    token = extract_id_token(cleaned)
    if token is None:
        return ProcessedLine(line)

    new_id = mapped_def.remap_table.lookup(token.entity_type, token.entity_id)
    if new_id is None or new_id == token.entity_id:
        return ProcessedLine(line)

    return ProcessedLine(
        line=replace_id(line, token, new_id),
        remap_comment=format_remap_comment(token.entity_type, token.entity_id, new_id),
    )
