"""Tests for name resolution and the default table."""

import pytest

from bpimport.mapping.defaults import (
    DEFAULT_BLOCK_MAPPINGS,
    TARGET_IDS,
    auto_map_names,
    get_short_name,
    load_default_mappings,
    normalize_name,
    parse_block_string,
    suggest_mapping,
)
from bpimport.mapping.remapper import (
    SKIP,
    Entity,
    Map,
    NameRemapper,
    is_unmapped,
    is_usable,
    mapping_from_dict,
    resolve,
)


class TestResolve:
    """Test cases for resolve."""

    def test_override_first(self) -> None:
        """Overrides win over suggestions."""
        assert resolve("minecraft:stone", {"minecraft:stone": Map(42)}, suggest_mapping) == Map(42)

    def test_override_skip_wins(self) -> None:
        """An override Skip is respected even if a default exists."""
        assert resolve("minecraft:stone", {"minecraft:stone": SKIP}, suggest_mapping) == SKIP

    def test_suggestion(self) -> None:
        """Without an override the suggester is used."""
        assert resolve("minecraft:stone", {}, suggest_mapping) == Map(TARGET_IDS["stone"])

    def test_fallback_skip(self) -> None:
        """Nothing matching resolves to Skip."""
        assert resolve("modded:thing", {}, suggest_mapping) == SKIP
        assert resolve("modded:thing", {}) == SKIP

    def test_case_sensitive(self) -> None:
        """Override lookup is an exact, case-sensitive match."""
        assert resolve("Minecraft:Stone", {"minecraft:stone": Map(42)}) == SKIP


class TestIsUnmapped:
    """Test cases for discovery flagging."""

    def test_default_entry(self) -> None:
        """Names in the default table are never unmapped."""
        assert not is_unmapped("minecraft:air", {}, DEFAULT_BLOCK_MAPPINGS, suggest_mapping)

    def test_absent_everywhere(self) -> None:
        """Names no source can place are unmapped."""
        assert is_unmapped("modded:thing", {}, DEFAULT_BLOCK_MAPPINGS, suggest_mapping)

    def test_override_entity(self) -> None:
        """A named entity override counts as mapped."""
        assert not is_unmapped("modded:thing", {"modded:thing": Entity("Bush")}, {})

    def test_remapper_caches(self) -> None:
        """NameRemapper resolves each name once."""
        calls = []

        def suggest(name):
            calls.append(name)
            return Map(1)

        remapper = NameRemapper({}, suggest=suggest)
        for _ in range(5):
            assert remapper.resolve("a") == Map(1)
        assert calls == ["a"]


class TestMappingRecords:
    """Test cases for persisted mapping records."""

    def test_round_trip(self) -> None:
        """to_dict output parses back to the same mapping."""
        for mapping in (Map(7), Entity("Oak Tree"), SKIP):
            assert mapping_from_dict(mapping.to_dict()) == mapping

    def test_aliases(self) -> None:
        """targetBlockId and targetEntityName are accepted."""
        assert mapping_from_dict({"action": "map", "targetBlockId": "12"}) == Map(12)
        assert mapping_from_dict({"action": "entity", "targetEntityName": "Rock"}) == Entity("Rock")

    def test_bad_map_id_is_skip(self) -> None:
        """A map without a positive integer id is Skip."""
        assert mapping_from_dict({"action": "map", "id": 0}) == SKIP
        assert mapping_from_dict({"action": "map", "id": "abc"}) == SKIP
        assert mapping_from_dict({"action": "map"}) == SKIP

    def test_unrecognised(self) -> None:
        """Non-mapping records give None."""
        assert mapping_from_dict({"action": "paint"}) is None
        assert mapping_from_dict("stone") is None

    def test_is_usable(self) -> None:
        """Only positive maps and named entities are usable."""
        assert is_usable(Map(1))
        assert not is_usable(Map(0))
        assert is_usable(Entity("x"))
        assert not is_usable(Entity(""))
        assert not is_usable(SKIP)
        assert not is_usable(None)


class TestSuggestMapping:
    """Test cases for the best-guess suggester."""

    def test_block_states_stripped(self) -> None:
        """Block states do not prevent a default match."""
        assert suggest_mapping("minecraft:stone[foo=bar]") == Map(TARGET_IDS["stone"])

    def test_other_namespace(self) -> None:
        """Modded names with a vanilla short name match the vanilla default."""
        assert suggest_mapping("somemod:cobblestone") == Map(TARGET_IDS["cobblestone"])

    @pytest.mark.parametrize("name,target", [
        ("minecraft:stone_brick_stairs", "stone-bricks"),
        ("minecraft:oak_slab", "oak-planks"),
        ("minecraft:cobblestone_wall", "cobblestone"),
    ])
    def test_shape_suffix(self, name: str, target: str) -> None:
        """Shaped blocks map to their material."""
        assert suggest_mapping(name) == Map(TARGET_IDS[target])

    def test_family(self) -> None:
        """Family suffixes catch blocks with no specific entry."""
        assert suggest_mapping("minecraft:jungle_planks") == Map(TARGET_IDS["oak-planks"])
        assert suggest_mapping("minecraft:red_wool") == Map(TARGET_IDS["wool"])

    def test_entity_default(self) -> None:
        """Plants map to environment entities."""
        assert suggest_mapping("minecraft:oak_sapling") == Entity("Oak Tree")

    def test_unknown(self) -> None:
        """Unknown names give None."""
        assert suggest_mapping("modded:mystery_block") is None


class TestNameHelpers:
    """Test cases for block string helpers."""

    def test_parse_block_string(self) -> None:
        """States are split into a dict."""
        assert parse_block_string("minecraft:oak_stairs[facing=north,half=bottom]") == (
            "minecraft:oak_stairs", {"facing": "north", "half": "bottom"})
        assert parse_block_string("minecraft:stone") == ("minecraft:stone", {})

    def test_get_short_name(self) -> None:
        """Namespace is dropped."""
        assert get_short_name("minecraft:oak_stairs") == "oak_stairs"
        assert get_short_name("oak_stairs") == "oak_stairs"

    def test_normalize_name(self) -> None:
        """Only lower-case letters and digits remain."""
        assert normalize_name("Oak Planks") == normalize_name("oak_planks") == "oakplanks"


class TestAutoMap:
    """Test cases for registry name matching."""

    def test_match_short_name(self) -> None:
        """Namespaced names match registry blocks by short name."""
        registry = [{"id": 77, "name": "Oak Planks"}, {"id": 5, "name": "stone"}]
        matches = auto_map_names(["minecraft:oak_planks", "Stone", "modded:thing"], registry)
        assert matches == {"minecraft:oak_planks": Map(77), "Stone": Map(5)}


class TestLoadDefaults:
    """Test cases for extending the default table from a file."""

    def test_yaml_extension(self, tmp_path) -> None:
        """YAML entries are added and override built-ins."""
        path = tmp_path / "defaults.yaml"
        path.write_text(
            "modded:thing:\n  action: map\n  id: 3\n"
            "minecraft:stone:\n  action: skip\n"
            "broken: 12\n"
        )
        table = load_default_mappings(path)

        assert table["modded:thing"] == Map(3)
        assert table["minecraft:stone"] == SKIP
        assert "broken" not in table
        assert table["minecraft:dirt"] == DEFAULT_BLOCK_MAPPINGS["minecraft:dirt"]
