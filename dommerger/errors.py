from __future__ import annotations

from .models import EntityType


class MergeError(Exception):
    """Base class for every fatal error raised while merging mods."""


class ScanError(MergeError):
    def __init__(self, mod_name: str, message: str | None = None) -> None:
        self.mod_name = mod_name
        super().__init__(message or f"Failed to scan mod '{mod_name}'")


class AllocationExhausted(MergeError):
    def __init__(self, entity_type: EntityType, entity_id: int) -> None:
        self.entity_type = entity_type
        self.entity_id = entity_id
        sign_class = "negative" if entity_id < 0 else "positive"
        super().__init__(
            f"No free {entity_type.label(entity_id)} ID left in the {sign_class} modding range "
            f"while remapping {entity_id}"
        )


class ContentProcessingError(MergeError):
    def __init__(self, mod_name: str, line_index: int, line: str | None = None) -> None:
        self.mod_name = mod_name
        self.line_index = line_index
        self.line = line
        super().__init__(f"Error processing line {line_index} in {mod_name}")


class MergeCancelled(MergeError):
    """Raised when the caller cancels a merge that is still scanning."""
