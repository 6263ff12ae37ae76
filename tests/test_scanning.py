"""Tests for mod parsing and the concurrent scanner."""

import threading

import pytest

from dommerger.errors import MergeCancelled, ScanError
from dommerger.mod_parser import parse_mod
from dommerger.mod_scanner import scan_mods, scan_mods_tolerant
from dommerger.models import BlockRegion, EntityType, OccurrenceRole, WarningKind

SAMPLE_MOD = """
#modname "Sample"
#description "A mod
that spans
#newmonster 9999 lines"
#version 1.0

#newweapon 801
#name "Spear"
#end

#newmonster 150
#copystats 20
#weapon 801
#end

#newspell
#effect 10001
#damage 150
#nextspell 1350
#end
"""


class TestParseMod:
    """Parsing produces ordered occurrences and block regions."""

    def test_occurrences_in_line_order(self, make_mod) -> None:
        definition = parse_mod(make_mod("Sample", SAMPLE_MOD))
        found = [(o.command, o.entity_id, o.role) for o in definition.occurrences]
        assert found == [
            ("#newweapon", 801, OccurrenceRole.DECLARATION),
            ("#newmonster", 150, OccurrenceRole.DECLARATION),
            ("#copystats", 20, OccurrenceRole.REFERENCE),
            ("#weapon", 801, OccurrenceRole.REFERENCE),
            ("#damage", 150, OccurrenceRole.REFERENCE),
            ("#nextspell", 1350, OccurrenceRole.REFERENCE),
        ]

    def test_description_body_is_ignored(self, make_mod) -> None:
        definition = parse_mod(make_mod("Sample", SAMPLE_MOD))
        assert (EntityType.MONSTER, 9999) not in definition.declared_ids()

    def test_line_indexes(self, make_mod) -> None:
        definition = parse_mod(make_mod("Sample", SAMPLE_MOD))
        lines = SAMPLE_MOD.splitlines()
        for occurrence in definition.occurrences:
            assert occurrence.command in lines[occurrence.line_index]

    def test_block_regions(self, make_mod) -> None:
        definition = parse_mod(make_mod("Sample", SAMPLE_MOD))
        assert definition.blocks == [BlockRegion(start_line=16, end_line=20)]

    def test_unterminated_block_region(self, make_mod) -> None:
        definition = parse_mod(make_mod("Open", "#newspell\n#effect 1\n#damage 150"))
        assert definition.blocks == [BlockRegion(start_line=0)]
        assert not definition.blocks[0].is_closed

    def test_damage_of_non_summon_spell_is_not_a_reference(self, make_mod) -> None:
        definition = parse_mod(make_mod("Blast", "#newspell\n#effect 2\n#damage 150\n#end"))
        assert definition.occurrences == []

    def test_selectspell_is_a_declaration(self, make_mod) -> None:
        definition = parse_mod(make_mod("Spells", "#selectspell 1350\n#restricted 155\n#end"))
        assert definition.declared_ids() == [(EntityType.SPELL, 1350)]
        assert definition.referenced_ids() == [(EntityType.NATION, 155)]

    def test_montag_sign_class(self, make_mod) -> None:
        definition = parse_mod(make_mod("Tags", "#newmonster 160\n#montag 1000\n#end"))
        assert definition.declared_ids() == [(EntityType.MONSTER, 160), (EntityType.MONSTER, -1000)]

    def test_cancelled_parse(self, make_mod) -> None:
        event = threading.Event()
        event.set()
        with pytest.raises(MergeCancelled):
            parse_mod(make_mod("Sample", SAMPLE_MOD), event)


def _failing_parser(mod_file, cancel_event=None):
    if mod_file.name == "Broken":
        raise ValueError("unexpected token")
    return parse_mod(mod_file, cancel_event)


class TestScanMods:
    """Fork-join scanning over a thread pool."""

    def test_results_keyed_by_name(self, make_mod) -> None:
        files = [make_mod(f"Mod{i}", f"#newmonster {150 + i}\n#end") for i in range(8)]
        definitions = scan_mods(files, max_workers=4)
        assert sorted(definitions) == sorted(f.name for f in files)
        assert definitions["Mod3"].declared_ids() == [(EntityType.MONSTER, 153)]

    def test_empty_input(self) -> None:
        assert scan_mods([]) == {}

    def test_failure_aborts_scan(self, make_mod) -> None:
        files = [make_mod("Good", "#newmonster 150"), make_mod("Broken", "#newmonster 151")]
        with pytest.raises(ScanError) as excinfo:
            scan_mods(files, parser=_failing_parser)
        assert excinfo.value.mod_name == "Broken"
        assert isinstance(excinfo.value.__cause__, ValueError)

    def test_tolerant_scan_keeps_good_mods(self, make_mod) -> None:
        files = [make_mod("Good", "#newmonster 150"), make_mod("Broken", "#newmonster 151")]
        definitions, failures = scan_mods_tolerant(files, parser=_failing_parser)
        assert list(definitions) == ["Good"]
        assert len(failures) == 1
        assert failures[0].kind == WarningKind.GENERAL
        assert failures[0].mod_name == "Broken"

    def test_duplicate_names_rejected(self, make_mod) -> None:
        files = [make_mod("Same", "#newmonster 150"), make_mod("Same", "#newmonster 151")]
        with pytest.raises(ScanError):
            scan_mods(files)

    def test_cancelled_scan(self, make_mod) -> None:
        event = threading.Event()
        event.set()
        files = [make_mod("A", "#newmonster 150"), make_mod("B", "#newmonster 151")]
        with pytest.raises(MergeCancelled):
            scan_mods(files, cancel_event=event)

    def test_cancel_while_scan_is_running(self, make_mod) -> None:
        """One worker cancels while another is still waiting inside its parser."""

        event = threading.Event()

        def parser(mod_file, cancel_event=None):
            if mod_file.name == "Trigger":
                event.set()
                return parse_mod(mod_file)
            assert event.wait(timeout=5)
            return parse_mod(mod_file, cancel_event)

        files = [make_mod("Trigger", "#newmonster 150"), make_mod("Waiting", "#newmonster 151")]
        with pytest.raises(MergeCancelled):
            scan_mods(files, parser=parser, max_workers=2, cancel_event=event)

    def test_invalid_worker_count(self, make_mod) -> None:
        with pytest.raises(ValueError):
            scan_mods([make_mod("A", "#newmonster 150")], max_workers=-1)
