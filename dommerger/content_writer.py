from __future__ import annotations

import time
from typing import Callable, Iterable, List, Mapping

from .entity_processor import REMAP_COMMENT_PREFIX, process_entity
from .errors import ContentProcessingError
from .id_mapper import ordered_mod_names
from .logging_utils import log_debug, log_error, log_info
from .models import MappedModDefinition, MergeWarning, WarningKind
from .scan_state import ScanState, consume_non_content
from .spell_block import SpellBlockProcessor, start_block
from .text_utils import COMMENT_MARKER, LineKind, classify_line, is_block_end, remove_unreadable_characters

WriteLine = Callable[[str], None]

BEGIN_BANNER = "-- Begin content from mod: {name}"
END_BANNER = "-- End content from mod: {name}"
END_OF_MERGE = "-- End merged content"


def collapse_duplicate_ends(lines: Iterable[str]) -> List[str]:
    """Drop repeated ``#end`` lines left where two blocks were stitched together.

    Comments between the repeats do not count as content; any other line does.
    """

    result: List[str] = []
    skip_next_end = False
    for line in lines:
        stripped = line.strip()
        if is_block_end(stripped):
            if not skip_next_end:
                result.append(line)
                skip_next_end = True
        elif stripped.startswith(COMMENT_MARKER):
            result.append(line)
        else:
            result.append(line)
            skip_next_end = False
    return result


class ContentWriter:
    def __init__(self, block_processor: SpellBlockProcessor | None = None) -> None:
        self.block_processor = block_processor or SpellBlockProcessor()
        self.warnings: List[MergeWarning] = []

    def write(self, mapped_definitions: Mapping[str, MappedModDefinition], write_line: WriteLine) -> List[MergeWarning]:
        self.warnings = []
        log_debug(f"Starting to process {len(mapped_definitions)} mod definitions")
        total_start = time.perf_counter()

        for name in ordered_mod_names(mapped_definitions):
            mapped_def = mapped_definitions[name]
            mod_start = time.perf_counter()
            lines = self.process_mod(mapped_def)
            write_line("")
            write_line(BEGIN_BANNER.format(name=name))
            for line in lines:
                write_line(line)
            write_line(END_BANNER.format(name=name))
            elapsed_ms = (time.perf_counter() - mod_start) * 1000
            log_debug(f"Processed mod '{name}' in {elapsed_ms:.1f} ms")

        write_line("")
        write_line(END_OF_MERGE)

        total_ms = (time.perf_counter() - total_start) * 1000
        log_info(f"Wrote content of {len(mapped_definitions)} mods in {total_ms:.1f} ms with {len(self.warnings)} warnings")
        return list(self.warnings)

    def process_mod(self, mapped_def: MappedModDefinition) -> List[str]:
        """Rewrite one mod's body; metadata is dropped and remaps are annotated."""

        lines = mapped_def.mod_file.lines
        buffer: List[str] = []
        state = ScanState()
        remaps = 0

        for index, line in enumerate(lines):
            try:
                state, produced = self._process_line(line, index, state, mapped_def)
            except Exception as exc:
                log_error(f"Error processing line {index} in {mapped_def.name}: {exc}")
                log_debug(f"Problematic line content: {line}")
                raise ContentProcessingError(mapped_def.name, index, line) from exc
            remaps += sum(1 for out in produced if out.startswith(REMAP_COMMENT_PREFIX))
            buffer.extend(produced)

        self._warn_unterminated(state, mapped_def)
        log_debug(f"{mapped_def.name}: {len(lines)} lines read, {remaps} IDs remapped")
        return collapse_duplicate_ends(buffer)

    def _process_line(
        self,
        line: str,
        index: int,
        state: ScanState,
        mapped_def: MappedModDefinition,
    ) -> tuple[ScanState, List[str]]:
        cleaned = remove_unreadable_characters(line)
        skip, state = consume_non_content(cleaned, index, state)
        if skip:
            return state, []

        if state.block.in_block:
            step = self.block_processor.process_line(line, index, state.block, mapped_def)
            if step.warning is not None:
                self.warnings.append(step.warning)
            return state.with_block(step.state), step.lines

        kind = classify_line(cleaned)
        if kind == LineKind.BLOCK_START:
            processed = process_entity(line, mapped_def)
            return state.with_block(start_block(index)), processed.output_lines()
        if kind == LineKind.ENTITY:
            return state, process_entity(line, mapped_def).output_lines()
        # BLANK, COMMENT, BLOCK_END outside a spell, OTHER
        return state, [line]

    def _warn_unterminated(self, state: ScanState, mapped_def: MappedModDefinition) -> None:
        if state.in_description:
            self.warnings.append(
                MergeWarning(
                    kind=WarningKind.UNTERMINATED_DESCRIPTION,
                    message=f"#description opened at line {state.description_start} is never closed; "
                    f"the rest of the file was skipped",
                    mod_name=mapped_def.name,
                )
            )
        if state.block.in_block:
            self.warnings.append(
                MergeWarning(
                    kind=WarningKind.UNTERMINATED_BLOCK,
                    message=f"Spell block opened at line {state.block.start_line} has no #end",
                    mod_name=mapped_def.name,
                )
            )


def write_mod_content(
    mapped_definitions: Mapping[str, MappedModDefinition], write_line: WriteLine
) -> List[MergeWarning]:
    return ContentWriter().write(mapped_definitions, write_line)
