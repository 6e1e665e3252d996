"""End-to-end tests for the two-phase import."""

import json

import pytest

from bpimport.errors import DataAnomaly, FormatError
from bpimport.mapping.defaults import TARGET_IDS
from bpimport.mapping.remapper import SKIP, Entity, Map
from bpimport.mapping.store import MappingStore
from bpimport.pipeline import BlueprintImporter, name_from_filename
from tests.blueprint_factory import VOLUME, build_blueprint, make_region, png_bytes


def _mixed_region():
    """Stone floor at y=0, one unknown block above it, air elsewhere."""
    indices = [0] * VOLUME
    for i in range(256):
        indices[i] = 1
    indices[256] = 2
    return make_region(2, 4, -1, ["minecraft:air", "minecraft:stone", "modded:crystal"], indices)


@pytest.fixture
def importer(tmp_path):
    return BlueprintImporter(MappingStore.load(tmp_path / "mappings.json"), auto_map=False)


class TestBlueprintImporter:
    """Test cases for discover and commit."""

    def test_discover(self, importer) -> None:
        """Discovery reports the unknown name and per-name counts."""
        pending = importer.discover(build_blueprint([_mixed_region()], name="Tower"), "tower.bp")

        assert pending.name == "Tower"
        assert pending.unmapped == ["modded:crystal"]
        assert pending.block_counts["minecraft:stone"] == 256
        assert pending.block_counts["modded:crystal"] == 1

    def test_commit_with_empty_confirmation(self, importer) -> None:
        """An empty confirmation skips the unknown name and still succeeds."""
        pending = importer.discover(build_blueprint([_mixed_region()]), "tower.bp")
        entry = importer.commit(pending, {})

        assert len(entry.schematic.blocks) == 256
        assert set(entry.schematic.blocks.values()) == {TARGET_IDS["stone"]}
        assert entry.schematic.origin == (32, 64, -16)
        assert entry.id.startswith("bp-")
        assert entry.prompt == "Imported BP: Test Build"

    def test_commit_with_decisions(self, importer) -> None:
        """Confirmed decisions are applied and saved to the store."""
        pending = importer.discover(build_blueprint([_mixed_region()]), "tower.bp")
        entry = importer.commit(pending, {"modded:crystal": Entity("Crystal")})

        assert len(entry.schematic.blocks) == 256
        assert [(e.entity_name, e.position) for e in entry.schematic.entities] == [("Crystal", (0, 1, 0))]
        assert MappingStore.load(importer.store.path).get("modded:crystal") == Entity("Crystal")

    def test_saved_mapping_not_asked_again(self, importer) -> None:
        """A usable saved mapping removes the name from the next discovery."""
        importer.store.merge_and_save({"modded:crystal": Map(30)})
        pending = importer.discover(build_blueprint([_mixed_region()]), "tower.bp")
        assert pending.unmapped == []

        entry = importer.commit(pending)
        assert entry.schematic.blocks[(0, 1, 0)] == 30

    def test_saved_skip_asked_again(self, importer) -> None:
        """A saved Skip is still offered for confirmation."""
        importer.store.merge({"modded:crystal": SKIP})
        pending = importer.discover(build_blueprint([_mixed_region()]), "tower.bp")
        assert pending.unmapped == ["modded:crystal"]

    def test_name_from_filename(self, importer) -> None:
        """Without a metadata name the file name is used."""
        pending = importer.discover(build_blueprint([_mixed_region()], name=" "), "My House.BP")
        assert pending.name == "My House"

    def test_format_error_propagates(self, importer) -> None:
        """Unreadable files raise FormatError with no partial result."""
        with pytest.raises(FormatError):
            importer.discover(b"PK\x03\x04not a blueprint", "x.bp")

    def test_bad_preview_counted(self, importer) -> None:
        """An unreadable preview is an anomaly, not an error."""
        pending = importer.discover(build_blueprint([_mixed_region()], preview=b"\x00junk"), "t.bp")
        assert pending.anomalies[DataAnomaly.BAD_PREVIEW] == 1

        pending = importer.discover(build_blueprint([_mixed_region()], preview=png_bytes()), "t.bp")
        assert DataAnomaly.BAD_PREVIEW not in pending.anomalies

    def test_empty_structure(self, importer) -> None:
        """A blueprint with no regions imports as an empty schematic."""
        entry = importer.commit(importer.discover(build_blueprint([]), "empty.bp"))
        assert entry.schematic.blocks == {}
        assert entry.schematic.origin is None

    def test_auto_map_primes_store(self, tmp_path) -> None:
        """Registry name matches are saved and drop out of the unmapped list."""
        importer = BlueprintImporter(
            MappingStore.load(tmp_path / "mappings.json"),
            registry=[{"id": 88, "name": "Crystal"}],
        )
        pending = importer.discover(build_blueprint([_mixed_region()]), "tower.bp")

        assert pending.unmapped == []
        assert MappingStore.load(tmp_path / "mappings.json").get("modded:crystal") == Map(88)

    def test_auto_map_keeps_other_imports_decisions(self, tmp_path) -> None:
        """Registry matches never replace a decision another import has saved."""
        path = tmp_path / "mappings.json"
        importer = BlueprintImporter(MappingStore.load(path), registry=[{"id": 88, "name": "Crystal"}])
        MappingStore.load(path).merge_and_save({"modded:crystal": Entity("Geode")})

        pending = importer.discover(build_blueprint([_mixed_region()]), "tower.bp")

        assert pending.unmapped == []
        assert MappingStore.load(path).get("modded:crystal") == Entity("Geode")
        entry = importer.commit(pending)
        assert [e.entity_name for e in entry.schematic.entities] == ["Geode"]

    def test_import_file(self, importer, tmp_path) -> None:
        """import_file runs discover, confirm and commit."""
        path = tmp_path / "tower.bp"
        path.write_bytes(build_blueprint([_mixed_region()]))
        seen = {}

        def confirm(unmapped, counts):
            seen.update(counts)
            return {name: Map(12) for name in unmapped}

        entry = importer.import_file(path, confirm)
        assert seen["modded:crystal"] == 1
        assert entry.schematic.blocks[(0, 1, 0)] == 12

    def test_entry_to_dict(self, importer) -> None:
        """The persisted entry uses string coordinate keys."""
        entry = importer.commit(importer.discover(build_blueprint([_mixed_region()]), "t.bp"))
        data = json.loads(json.dumps(entry.to_dict()))

        assert data["name"] == "Test Build"
        assert data["schematic"]["blocks"]["0,0,0"] == TARGET_IDS["stone"]
        assert data["schematic"]["min"] == {"x": 32, "y": 64, "z": -16}


class TestComponentImport:
    """Test cases for the JSON component entry point."""

    def test_legend_flow(self, importer) -> None:
        """Legend names are discovered, confirmed and normalised."""
        text = json.dumps({
            "name": "Gate",
            "schematic": {"blocks": {"3,1,3": 1, "4,1,3": 2}},
            "blocksMeta": {"1": {"name": "minecraft:stone"}, "2": {"name": "Weird"}},
        })
        pending = importer.discover_component(text, "gate.json")
        assert pending.unmapped == ["Weird"]

        entry = importer.commit(pending, {"Weird": Map(40)})
        assert entry.id.startswith("comp-")
        assert entry.prompt == "Imported Component: Gate"
        assert entry.schematic.blocks == {(0, 0, 0): TARGET_IDS["stone"], (1, 0, 0): 40}

    def test_no_legend(self, importer) -> None:
        """Components without a legend need no confirmation."""
        pending = importer.discover_component(json.dumps({"blocks": {"1,1,1": 6}}), "piece.json")
        assert pending.unmapped == []
        assert pending.name == "piece"

        entry = importer.commit(pending)
        assert entry.schematic.blocks == {(0, 0, 0): 6}


def test_name_from_filename() -> None:
    """Only the given suffix is stripped, case-insensitively."""
    assert name_from_filename("dir/House.bp", ".bp") == "House"
    assert name_from_filename("House.json", ".bp") == "House.json"
