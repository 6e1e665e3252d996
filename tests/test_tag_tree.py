"""Tests for the flat/wrapped tag-tree adapter."""

from types import SimpleNamespace

import numpy as np

from bpimport.data.tag_tree import TagNode, unwrap
from tests.blueprint_factory import make_structure, make_region, to_wrapped_compound


class TestUnwrap:
    """Test cases for unwrap."""

    def test_nested_wrappers(self) -> None:
        """Wrappers are stripped at any depth."""
        assert unwrap({"type": "list", "value": {"type": "compound", "value": [1, 2]}}) == [1, 2]

    def test_plain_values(self) -> None:
        """Plain payloads come back unchanged."""
        assert unwrap(5) == 5
        assert unwrap("minecraft:stone") == "minecraft:stone"
        assert unwrap(None) is None

    def test_compound_not_unwrapped(self) -> None:
        """A compound with other keys is not mistaken for a wrapper."""
        node = {"value": 1, "Name": "x"}
        assert unwrap(node) is node

    def test_value_attribute(self) -> None:
        """Objects exposing .value are unwrapped."""
        assert unwrap(SimpleNamespace(value=SimpleNamespace(value=7))) == 7


class TestTagNode:
    """Test cases for TagNode."""

    def test_flat_and_wrapped_agree(self) -> None:
        """Both tree shapes expose the same regions, origins and palette names."""
        flat = make_structure([make_region(3, -1, 2, ["minecraft:dirt"])])
        wrapped = to_wrapped_compound(flat)

        for tree in (flat, wrapped):
            regions = TagNode(tree).get("BlockRegion").as_list()
            assert len(regions) == 1
            region = regions[0]
            assert (region.get("X").as_int(), region.get("Y").as_int(), region.get("Z").as_int()) == (3, -1, 2)
            palette = region.get("BlockStates").get("palette").as_list()
            assert palette[0].get("Name").as_str() == "minecraft:dirt"

    def test_missing_child(self) -> None:
        """Missing children are empty nodes, not errors."""
        node = TagNode({}).get("BlockRegion").get("X")
        assert not node.present
        assert node.as_int() is None
        assert node.as_list() is None
        assert node.as_str() is None

    def test_type_checks(self) -> None:
        """Accessors return None for the wrong payload type."""
        assert TagNode("12").as_int() is None
        assert TagNode(True).as_int() is None
        assert TagNode(12).as_str() is None
        assert TagNode(np.int64(4)).as_int() == 4

    def test_array(self) -> None:
        """Array payloads are returned raw."""
        words = np.array([1, 2], dtype=np.int64)
        assert TagNode({"data": words}).get("data").as_array() is words
        assert TagNode({"data": 3}).get("data").as_array() is None
