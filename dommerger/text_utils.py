from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Iterable

from .models import EntityType, OccurrenceRole

COMMENT_MARKER = "--"
QUOTE = '"'

COMMENT_PATTERN = re.compile(r"^\s*--")
ID_COMMAND_PATTERN = re.compile(r"^\s*(#[A-Za-z_][A-Za-z0-9_]*)[ \t]+(-?\d+)(?![\w.])")
MOD_NAME_PATTERN = re.compile(r"^\s*#modname\b", re.IGNORECASE)
MOD_DESCRIPTION_PATTERN = re.compile(r"^\s*#description\b", re.IGNORECASE)
MOD_ICON_PATTERN = re.compile(r"^\s*#icon\b", re.IGNORECASE)
MOD_VERSION_PATTERN = re.compile(r"^\s*#version\b", re.IGNORECASE)
MOD_DOMVERSION_PATTERN = re.compile(r"^\s*#domversion\b", re.IGNORECASE)
SPELL_BLOCK_START_PATTERN = re.compile(r"^\s*#(newspell|selectspell)\b", re.IGNORECASE)
BLOCK_END_PATTERN = re.compile(r"^\s*#end\b", re.IGNORECASE)
EFFECT_PATTERN = re.compile(r"^\s*#effect[ \t]+(-?\d+)(?![\w.])", re.IGNORECASE)
UNREADABLE_PATTERN = re.compile(r"[\ufeff\u200b\u200c\u200d\u2060\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")

METADATA_PATTERNS = (
    MOD_NAME_PATTERN,
    MOD_ICON_PATTERN,
    MOD_VERSION_PATTERN,
    MOD_DOMVERSION_PATTERN,
)

# Spell effects whose #damage value is a monster (positive) or montag (negative).
# Ritual variants add 10000 to the base effect number.
SUMMON_EFFECTS: FrozenSet[int] = frozenset(
    {1, 21, 26, 31, 37, 38, 43, 50, 54, 62, 89, 93, 119, 126, 130, 137}
)


class LineKind(str, Enum):
    BLANK = "blank"
    COMMENT = "comment"
    METADATA = "metadata"
    DESCRIPTION_START = "description_start"
    BLOCK_START = "block_start"
    BLOCK_END = "block_end"
    ENTITY = "entity"
    OTHER = "other"


@dataclass(frozen=True, slots=True)
class CommandSpec:
    entity_type: EntityType
    role: OccurrenceRole
    # The literal is the magnitude of a negative ID (``#montag 1000`` declares montag -1000).
    negated: bool = False
    block_only: bool = False


@dataclass(frozen=True, slots=True)
class IdToken:
    command: str
    entity_type: EntityType
    entity_id: int
    role: OccurrenceRole
    start: int
    end: int
    negated: bool = False

    def literal_for(self, new_id: int) -> str:
        return str(abs(new_id)) if self.negated else str(new_id)


def _specs(
    entity_type: EntityType, role: OccurrenceRole, commands: Iterable[str], **kwargs
) -> Dict[str, CommandSpec]:
    spec = CommandSpec(entity_type=entity_type, role=role, **kwargs)
    return {f"#{command}": spec for command in commands}


_DECL = OccurrenceRole.DECLARATION
_REF = OccurrenceRole.REFERENCE

MONSTER_REFERENCE_COMMANDS = (
    "copystats", "copyspr", "firstshape", "secondshape", "secondtmpshape", "shapechange",
    "prophetshape", "landshape", "watershape", "forestshape", "plainshape",
    "domsummon", "domsummon2", "domsummon20", "raredomsummon", "templetrainer",
    "makemonsters1", "makemonsters2", "makemonsters3", "makemonsters4", "makemonsters5",
    "summon1", "summon2", "summon3", "summon4", "summon5",
    "battlesum1", "battlesum2", "battlesum3", "battlesum4", "battlesum5",
    "batstartsum1", "batstartsum2", "batstartsum3", "batstartsum4", "batstartsum5",
    "batstartsum1d3", "batstartsum1d6", "batstartsum2d6", "batstartsum3d6",
    "homemon", "homecom", "addrecunit", "addreccom", "startcom", "startscout",
    "startunittype1", "startunittype2", "defcom1", "defcom2", "defunit1", "defunit1b",
    "defunit2", "defunit2b", "wallcom", "wallunit", "guardspirit", "slaver",
    "com", "1com", "2com", "3com", "4com", "5com", "1unit", "1d3units", "1d6units",
    "2d6units", "3d6units", "4d6units", "transform", "req_targmnr", "req_mnr", "req_nomnr",
)

EVENT_CODE_REFERENCE_COMMANDS = (
    "req_code", "req_anycode", "req_nearbycode", "req_nearowncode", "req_notanycode",
    "req_notnearbycode", "req_notnearowncode", "resetcode", "resetcodedelay", "resetcodedelay2",
)

COMMAND_SPECS: Dict[str, CommandSpec] = {
    **_specs(EntityType.MONSTER, _DECL, ("newmonster", "selectmonster")),
    **_specs(EntityType.MONSTER, _DECL, ("montag",), negated=True),
    **_specs(EntityType.MONSTER, _REF, MONSTER_REFERENCE_COMMANDS),
    **_specs(EntityType.MONSTER, _REF, ("damage",), block_only=True),
    **_specs(EntityType.SPELL, _DECL, ("selectspell",)),
    **_specs(EntityType.SPELL, _REF, ("nextspell", "copyspell"), block_only=True),
    **_specs(EntityType.WEAPON, _DECL, ("newweapon", "selectweapon")),
    **_specs(EntityType.WEAPON, _REF, ("weapon", "copyweapon", "secondaryeffect", "secondaryeffectalways")),
    **_specs(EntityType.ARMOR, _DECL, ("newarmor", "selectarmor")),
    **_specs(EntityType.ARMOR, _REF, ("armor", "copyarmor")),
    **_specs(EntityType.ITEM, _DECL, ("selectitem",)),
    **_specs(EntityType.ITEM, _REF, ("copyitem",)),
    **_specs(EntityType.SITE, _DECL, ("newsite", "selectsite")),
    **_specs(EntityType.NATION, _DECL, ("selectnation",)),
    **_specs(EntityType.NATION, _REF, ("restricted", "nationrebate", "nation", "req_nation", "req_notnation")),
    **_specs(EntityType.NAME_TYPE, _DECL, ("selectnametype",)),
    **_specs(EntityType.NAME_TYPE, _REF, ("nametype",)),
    **_specs(EntityType.EVENT_CODE, _DECL, ("code", "code2", "codedelay", "codedelay2")),
    **_specs(EntityType.EVENT_CODE, _REF, EVENT_CODE_REFERENCE_COMMANDS),
    **_specs(EntityType.RESTRICTED_ITEM, _DECL, ("restricteditem",)),
    **_specs(EntityType.RESTRICTED_ITEM, _REF, ("userestricteditem",)),
    **_specs(EntityType.POPTYPE, _DECL, ("selectpoptype",)),
}

SPELL_SUB_COMMANDS: FrozenSet[str] = frozenset(
    {"#damage", "#nextspell", "#copyspell", "#restricted"}
)


def remove_unreadable_characters(line: str) -> str:
    return UNREADABLE_PATTERN.sub("", line)


def is_comment(line: str) -> bool:
    return bool(COMMENT_PATTERN.match(line))


def is_metadata_line(line: str) -> bool:
    if any(pattern.match(line) for pattern in METADATA_PATTERNS):
        return True
    return bool(MOD_DESCRIPTION_PATTERN.match(line)) and not is_description_start(line)


def is_description_start(line: str) -> bool:
    """A ``#description`` whose quoted text is not closed on the same line."""

    if not MOD_DESCRIPTION_PATTERN.match(line):
        return False
    return line.count(QUOTE) % 2 == 1


def is_block_start(line: str) -> bool:
    return bool(SPELL_BLOCK_START_PATTERN.match(line))


def is_block_end(line: str) -> bool:
    return bool(BLOCK_END_PATTERN.match(line))


def extract_effect(line: str) -> int | None:
    match = EFFECT_PATTERN.match(line)
    if not match:
        return None
    return int(match.group(1))


def is_summon_effect(effect: int) -> bool:
    return effect % 10000 in SUMMON_EFFECTS


def extract_id_token(line: str, *, in_block: bool = False) -> IdToken | None:
    """Return the ID-bearing command on ``line`` or None.

    Commands only meaningful inside a spell block (``#damage``, ``#nextspell``)
    are ignored unless ``in_block`` is set.
    """

    match = ID_COMMAND_PATTERN.match(line)
    if not match:
        return None
    command = match.group(1).lower()
    spec = COMMAND_SPECS.get(command)
    if spec is None or (spec.block_only and not in_block):
        return None
    literal = int(match.group(2))
    entity_id = -literal if spec.negated else literal
    return IdToken(
        command=command,
        entity_type=spec.entity_type,
        entity_id=entity_id,
        role=spec.role,
        start=match.start(2),
        end=match.end(2),
        negated=spec.negated,
    )


def classify_line(line: str) -> LineKind:
    stripped = line.strip()
    if not stripped:
        return LineKind.BLANK
    if is_comment(stripped):
        return LineKind.COMMENT
    if is_description_start(stripped):
        return LineKind.DESCRIPTION_START
    if is_metadata_line(stripped):
        return LineKind.METADATA
    if is_block_start(stripped):
        return LineKind.BLOCK_START
    if is_block_end(stripped):
        return LineKind.BLOCK_END
    if extract_id_token(stripped) is not None:
        return LineKind.ENTITY
    return LineKind.OTHER


def replace_id(line: str, token: IdToken, new_id: int) -> str:
    """Swap only the numeric literal recognised by ``token``.

    ``token`` spans count characters of ``line`` after unreadable characters
    are removed; they are mapped back onto ``line`` so everything outside the
    literal stays exactly as written.
    """

    kept = [index for index, char in enumerate(line) if not UNREADABLE_PATTERN.match(char)]
    start, end = kept[token.start], kept[token.end - 1] + 1
    return line[:start] + token.literal_for(new_id) + line[end:]

