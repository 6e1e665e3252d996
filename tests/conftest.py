"""Shared fixtures."""

import pytest

from tests.blueprint_factory import VOLUME, make_region


@pytest.fixture
def stone_region():
    """Region at region coords (1, 0, 2): air everywhere except four stone voxels."""
    indices = [0] * VOLUME
    for i in (0, 1, 16, 256):
        indices[i] = 1
    return make_region(1, 0, 2, ["minecraft:air", "minecraft:stone"], indices)
