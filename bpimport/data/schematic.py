"""Terrain maps, entity placements and origin-relative schematics.

Coordinates are integer ``(x, y, z)`` tuples. The persisted form uses
``"x,y,z"`` string keys.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

import numpy as np

logger = logging.getLogger(__name__)

Coord = tuple[int, int, int]
TerrainMap = dict[Coord, int]

ZERO_ROTATION = (0.0, 0.0, 0.0)


@dataclass
class EntityPlacement:
    """An environment entity spawned at a voxel position."""
    entity_name: str
    position: Coord
    rotation: tuple[float, float, float] = ZERO_ROTATION

    def translated(self, origin: Coord) -> "EntityPlacement":
        x, y, z = self.position
        ox, oy, oz = origin
        return EntityPlacement(self.entity_name, (x - ox, y - oy, z - oz), self.rotation)

    def to_dict(self) -> dict:
        return {
            "entityName": self.entity_name,
            "position": list(self.position),
            "rotation": list(self.rotation),
        }


@dataclass
class Schematic:
    """Origin-relative voxel map.

    Attributes:
        blocks: Relative coordinate -> target block ID
        entities: Entity placements, relative to the same origin
        origin: Absolute coordinate that was subtracted, or None if empty
    """
    blocks: TerrainMap = field(default_factory=dict)
    entities: list[EntityPlacement] = field(default_factory=list)
    origin: Optional[Coord] = None

    @property
    def size(self) -> Optional[Coord]:
        """Bounding-box extent (dx, dy, dz) over blocks and entities."""
        box = bounding_box(list(self.blocks) + [e.position for e in self.entities])
        if box is None:
            return None
        lo, hi = box
        return tuple(h - l + 1 for l, h in zip(lo, hi))

    def to_dict(self) -> dict:
        data = {
            "blocks": {format_coordinate_key(c): block_id for c, block_id in self.blocks.items()},
            "entities": [e.to_dict() for e in self.entities],
        }
        if self.origin is not None:
            x, y, z = self.origin
            data["min"] = {"x": x, "y": y, "z": z}
        return data


def format_coordinate_key(coord: Coord) -> str:
    return ",".join(str(int(v)) for v in coord)


def parse_coordinate_key(key: str) -> Optional[Coord]:
    """Parse "x,y,z" into a tuple; None if the key is not three integers."""
    parts = str(key).split(",")
    if len(parts) != 3:
        return None
    try:
        x, y, z = (int(p.strip(), 10) for p in parts)
    except ValueError:
        return None
    return x, y, z


def bounding_box(coords) -> Optional[tuple[Coord, Coord]]:
    """Component-wise (min, max) of a collection of coordinates."""
    coords = list(coords)
    if not coords:
        return None
    arr = np.asarray(coords, dtype=np.int64)
    lo = tuple(int(v) for v in arr.min(axis=0))
    hi = tuple(int(v) for v in arr.max(axis=0))
    return lo, hi


def normalize(terrain: TerrainMap, entities: Optional[list[EntityPlacement]] = None) -> Schematic:
    """Translate a terrain map and its entities so the minimum corner is (0, 0, 0).

    The origin is the component-wise minimum over block coordinates only.
    Entities are translated by the same origin, which means an entity below
    or beside every block keeps a negative offset.

    When there are no blocks at all, entities are normalised against their
    own minimum instead, and that minimum is recorded as the origin. This is
    the only case where entities influence the origin.

    Args:
        terrain: Absolute coordinate -> target block ID
        entities: Absolute entity placements

    Returns:
        Schematic; empty with ``origin=None`` when there is nothing to place
    """
    entities = list(entities or [])

    box = bounding_box(terrain.keys())
    if box is None:
        box = bounding_box(e.position for e in entities)
        if box is None:
            return Schematic()
        origin = box[0]
        logger.debug("No blocks; normalising %d entities against their own minimum %s",
                     len(entities), origin)
        return Schematic(
            blocks={},
            entities=[e.translated(origin) for e in entities],
            origin=origin,
        )

    origin = box[0]
    ox, oy, oz = origin
    blocks = {(x - ox, y - oy, z - oz): block_id for (x, y, z), block_id in terrain.items()}

    logger.debug("Normalised %d blocks, %d entities; origin=%s extent=%s",
                 len(blocks), len(entities), origin, box[1])
    return Schematic(
        blocks=blocks,
        entities=[e.translated(origin) for e in entities],
        origin=origin,
    )
