"""
Import the JSON component format.

A component file is an already-decoded block map, optionally with a legend
that names the source block ids::

    {
      "name": "Tower",
      "schematic": {"blocks": {"0,0,0": 3, "0,1,0": 7}},
      "blocksMeta": {"3": {"id": 3, "name": "Stone"}, "7": {"name": "Torch"}}
    }

With a legend, block ids are turned into names and go through the same
discover/confirm/commit remapping as blueprints. Without one, ids are used
as target ids directly.
"""

import json
import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Optional

from bpimport.data.schematic import (
    Coord,
    EntityPlacement,
    TerrainMap,
    parse_coordinate_key,
)
from bpimport.errors import AnomalyCounter, DataAnomaly, FormatError
from bpimport.mapping.remapper import Map, NameRemapper, Skip, is_usable

logger = logging.getLogger(__name__)


@dataclass
class ComponentDocument:
    """Parsed component file before remapping."""
    name: Optional[str]
    prompt: Optional[str]
    blocks: dict[Coord, int]
    legend: Optional[dict[str, str]]
    anomalies: AnomalyCounter = field(default_factory=AnomalyCounter)

    def source_name(self, source_id: int) -> str:
        return (self.legend or {}).get(str(source_id)) or f"Block_{source_id}"

    def name_counts(self) -> dict[str, int]:
        """Voxel count per source name (legend documents only)."""
        return dict(Counter(self.source_name(sid) for sid in self.blocks.values()))


def _parse_block_id(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value, 10)
        except ValueError:
            return None
    return None


def _read_legend(meta: Any) -> Optional[dict[str, str]]:
    if not isinstance(meta, dict):
        return None
    legend = {}
    for key, info in meta.items():
        if isinstance(info, dict):
            legend[str(key)] = str(info.get("name") or info.get("id") or key)
        else:
            legend[str(key)] = str(key)
    return legend


def parse_component(text: str | bytes) -> ComponentDocument:
    """Parse component JSON.

    Raises:
        FormatError: If the text is not JSON or holds no block map
    """
    try:
        data = json.loads(text)
    except ValueError as e:
        raise FormatError(f"Invalid JSON in component file: {e}") from e
    if not isinstance(data, dict):
        raise FormatError("Component JSON is not an object")

    schematic = data.get("schematic")
    if not isinstance(schematic, dict):
        schematic = data if isinstance(data.get("blocks"), dict) else None
    if schematic is None:
        raise FormatError("JSON does not contain a component schematic")
    raw_blocks = schematic.get("blocks", schematic)
    if not isinstance(raw_blocks, dict):
        raise FormatError("Component schematic has no block map")

    anomalies = AnomalyCounter()
    blocks: dict[Coord, int] = {}
    for key, value in raw_blocks.items():
        coord = parse_coordinate_key(key)
        if coord is None:
            anomalies[DataAnomaly.BAD_COORDINATE] += 1
            continue
        block_id = _parse_block_id(value)
        if block_id is None:
            anomalies[DataAnomaly.BAD_BLOCK_ID] += 1
            continue
        blocks[coord] = block_id

    meta = data.get("blocksMeta")
    if meta is None:
        meta = data.get("blockDetails")
    legend = _read_legend(meta)
    if anomalies:
        logger.debug("Component anomalies: %s", anomalies.summary())

    return ComponentDocument(
        name=data.get("name") if isinstance(data.get("name"), str) else None,
        prompt=data.get("prompt") if isinstance(data.get("prompt"), str) else None,
        blocks=blocks,
        legend=legend,
        anomalies=anomalies,
    )


def scan_component(doc: ComponentDocument, remapper: NameRemapper) -> tuple[list[str], dict[str, int]]:
    """Names that need a decision, with voxel counts. Empty for legend-less documents."""
    if doc.legend is None:
        return [], {}
    counts = doc.name_counts()
    unmapped = [name for name in counts if not is_usable(remapper.resolve(name))]
    return unmapped, counts


def assemble_component(
    doc: ComponentDocument, remapper: Optional[NameRemapper] = None,
) -> tuple[TerrainMap, list[EntityPlacement]]:
    """Build terrain and entities from a component document.

    Legend documents resolve each voxel's source name through ``remapper``;
    legend-less documents keep their ids.
    """
    if doc.legend is None:
        terrain = {coord: block_id for coord, block_id in doc.blocks.items() if block_id > 0}
        return terrain, []
    if remapper is None:
        raise ValueError("A remapper is required for documents with a legend")

    terrain: TerrainMap = {}
    entities: list[EntityPlacement] = []
    for coord, source_id in doc.blocks.items():
        mapping = remapper.resolve(doc.source_name(source_id))
        if not is_usable(mapping):
            if not isinstance(mapping, Skip):
                doc.anomalies[DataAnomaly.UNRESOLVED_NAME] += 1
            continue
        if isinstance(mapping, Map):
            terrain[coord] = mapping.target_id
        else:
            entities.append(EntityPlacement(mapping.entity_name, coord))
    return terrain, entities
