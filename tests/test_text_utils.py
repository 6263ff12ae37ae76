"""Tests for line classification and ID extraction."""

import pytest

from dommerger.models import EntityType, OccurrenceRole
from dommerger.text_utils import (
    LineKind,
    classify_line,
    extract_effect,
    extract_id_token,
    is_description_start,
    is_summon_effect,
    remove_unreadable_characters,
    replace_id,
)


class TestClassifyLine:
    """Every line shape maps to exactly one LineKind."""

    @pytest.mark.parametrize(
        "line, kind",
        [
            ("", LineKind.BLANK),
            ("   \t", LineKind.BLANK),
            ("-- a comment", LineKind.COMMENT),
            ("  -- #newmonster 3500", LineKind.COMMENT),
            ('#modname "My Mod"', LineKind.METADATA),
            ('#description "short and closed"', LineKind.METADATA),
            ('#description "opens here', LineKind.DESCRIPTION_START),
            ('#icon "./mymod/banner.tga"', LineKind.METADATA),
            ("#version 1.02", LineKind.METADATA),
            ("#domversion 5.50", LineKind.METADATA),
            ("#newspell", LineKind.BLOCK_START),
            ("#selectspell 1400", LineKind.BLOCK_START),
            ("#end", LineKind.BLOCK_END),
            ("#newmonster 3500", LineKind.ENTITY),
            ("  #copystats 150 -- base unit", LineKind.ENTITY),
            ("#weapon 801", LineKind.ENTITY),
            ('#name "Sword"', LineKind.OTHER),
            ("#hp 15", LineKind.OTHER),
            ("#damage 150", LineKind.OTHER),
            ("#newmonster", LineKind.OTHER),
        ],
    )
    def test_classify(self, line: str, kind: LineKind) -> None:
        assert classify_line(line) == kind


class TestExtractIdToken:
    """ID tokens carry the entity type, role and literal span."""

    def test_declaration(self) -> None:
        token = extract_id_token("#newmonster 3500")
        assert token is not None
        assert token.entity_type == EntityType.MONSTER
        assert token.entity_id == 3500
        assert token.role == OccurrenceRole.DECLARATION

    def test_reference_with_trailing_comment(self) -> None:
        line = "#copystats 150 -- copy of 150"
        token = extract_id_token(line)
        assert token is not None
        assert token.role == OccurrenceRole.REFERENCE
        assert line[token.start:token.end] == "150"

    def test_montag_literal_is_negated(self) -> None:
        token = extract_id_token("#montag 1000")
        assert token is not None
        assert token.entity_id == -1000
        assert token.literal_for(-1003) == "1003"

    def test_negative_reference_keeps_sign(self) -> None:
        token = extract_id_token("#makemonsters1 -1000")
        assert token is not None
        assert token.entity_id == -1000
        assert token.literal_for(-1003) == "-1003"

    def test_block_only_commands_need_block(self) -> None:
        assert extract_id_token("#damage 150") is None
        token = extract_id_token("#damage 150", in_block=True)
        assert token is not None
        assert token.entity_type == EntityType.MONSTER

    def test_command_case_is_ignored(self) -> None:
        token = extract_id_token("#NewWeapon 801")
        assert token is not None
        assert token.entity_type == EntityType.WEAPON

    def test_decimal_values_are_not_ids(self) -> None:
        assert extract_id_token("#weapon 8.5") is None

    def test_unknown_command(self) -> None:
        assert extract_id_token("#hp 20") is None


class TestReplaceId:
    """Only the recognised literal is rewritten."""

    def test_collateral_numbers_untouched(self) -> None:
        line = "  #copystats 150 -- copy of 150"
        token = extract_id_token(line)
        assert replace_id(line, token, 151) == "  #copystats 151 -- copy of 150"

    def test_montag_written_as_magnitude(self) -> None:
        line = "#montag 1000"
        token = extract_id_token(line)
        assert replace_id(line, token, -1001) == "#montag 1001"


class TestHelpers:
    def test_description_start_counts_quotes(self) -> None:
        assert is_description_start('#description "one')
        assert not is_description_start('#description "one" ')
        assert not is_description_start('#name "one')

    def test_effect_extraction(self) -> None:
        assert extract_effect("#effect 10001") == 10001
        assert extract_effect("#damage 5") is None

    def test_summon_effects_include_ritual_variants(self) -> None:
        assert is_summon_effect(1)
        assert is_summon_effect(10001)
        assert is_summon_effect(10021)
        assert not is_summon_effect(2)
        assert not is_summon_effect(10002)

    def test_remove_unreadable_characters(self) -> None:
        assert remove_unreadable_characters("\ufeff#modname \"x\"") == '#modname "x"'
        assert remove_unreadable_characters("#hp\u200b 10") == "#hp 10"
