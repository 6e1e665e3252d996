"""
Walk the block regions of a blueprint structure.

Each region is a 16x16x16 cube with its own palette and packed indices.
Local voxel index ``i`` is ordered X fastest, then Z, then Y::

    x = i & 15
    z = (i >> 4) & 15
    y = (i >> 8) & 15

This is the blueprint's own ordering and differs from the Y-Z-X order of
Sponge schematics.

Two passes share the same walk:

- DISCOVER: count voxels per block name and collect names with no usable
  mapping, without building any terrain
- COMMIT: resolve every voxel and build the absolute terrain map and
  entity list
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, Optional

from bpimport.data.bitpack import bits_per_entry, unpack_indices
from bpimport.data.schematic import Coord, EntityPlacement, TerrainMap, bounding_box
from bpimport.data.tag_tree import TagNode
from bpimport.errors import AnomalyCounter, DataAnomaly
from bpimport.mapping.defaults import DEFAULT_BLOCK_MAPPINGS, suggest_mapping
from bpimport.mapping.remapper import Map, Mapping, NameRemapper, Skip, Suggester, is_usable

logger = logging.getLogger(__name__)

REGION_SIZE = 16
REGION_VOLUME = REGION_SIZE ** 3


class DiscoverOrCommit(Enum):
    DISCOVER = "discover"
    COMMIT = "commit"


@dataclass
class Region:
    """One decoded region: world-space base corner, palette names, packed words."""
    origin: Coord
    palette: list[Optional[str]]
    packed_words: Any

    @property
    def base(self) -> Coord:
        x, y, z = self.origin
        return x * REGION_SIZE, y * REGION_SIZE, z * REGION_SIZE


@dataclass
class ScanResult:
    """Outcome of a discovery pass."""
    unmapped: set[str] = field(default_factory=set)
    block_counts: dict[str, int] = field(default_factory=dict)
    region_count: int = 0
    anomalies: AnomalyCounter = field(default_factory=AnomalyCounter)


@dataclass
class AssembleResult:
    """Outcome of a commit pass, in absolute coordinates."""
    terrain: TerrainMap = field(default_factory=dict)
    entities: list[EntityPlacement] = field(default_factory=list)
    region_count: int = 0
    anomalies: AnomalyCounter = field(default_factory=AnomalyCounter)


def local_xyz(index: int) -> Coord:
    """Local (x, y, z) of voxel ``index`` within a region.

    Example:
        >>> local_xyz(1), local_xyz(16), local_xyz(256)
        ((1, 0, 0), (0, 0, 1), (0, 1, 0))
    """
    return index & 15, (index >> 8) & 15, (index >> 4) & 15


def find_regions(structure: Any) -> Optional[list[TagNode]]:
    """The ``BlockRegion`` list, whether flat or wrapped."""
    return TagNode(structure).get("BlockRegion").as_list()


def read_region(node: TagNode, anomalies: AnomalyCounter) -> Optional[Region]:
    """Decode one region node. Returns None (and counts why) if it must be skipped."""
    origin = tuple(node.get(axis).as_int() for axis in ("X", "Y", "Z"))
    if any(v is None for v in origin):
        anomalies[DataAnomaly.MISSING_ORIGIN] += 1
        return None

    states = node.get("BlockStates")
    palette_nodes = states.get("palette").as_list()
    if not palette_nodes:
        anomalies[DataAnomaly.MISSING_PALETTE] += 1
        return None

    words = states.get("data").as_array()
    if words is None:
        anomalies[DataAnomaly.MISSING_DATA] += 1
        return None

    palette = []
    for entry in palette_nodes:
        name = entry.get("Name").as_str()
        palette.append(name if name else None)
    return Region(origin=origin, palette=palette, packed_words=words)


def iter_regions(structure: Any, anomalies: AnomalyCounter) -> Iterator[Region]:
    nodes = find_regions(structure)
    if nodes is None:
        anomalies[DataAnomaly.MISSING_REGIONS] += 1
        logger.debug("Structure has no BlockRegion list")
        return
    for idx, node in enumerate(nodes):
        region = read_region(node, anomalies)
        if region is None:
            logger.debug("Skipping region #%d", idx)
            continue
        yield region


def iter_voxels(region: Region, anomalies: AnomalyCounter) -> Iterator[tuple[Coord, str]]:
    """Yield (world coordinate, block name) for every voxel with a valid palette entry."""
    indices = unpack_indices(region.packed_words, len(region.palette), REGION_VOLUME)
    bx, by, bz = region.base
    palette_size = len(region.palette)
    for i, palette_index in enumerate(indices.tolist()):
        if palette_index >= palette_size:
            anomalies[DataAnomaly.BAD_PALETTE_INDEX] += 1
            continue
        name = region.palette[palette_index]
        if name is None:
            anomalies[DataAnomaly.BAD_BLOCK_NAME] += 1
            continue
        lx, ly, lz = local_xyz(i)
        yield (bx + lx, by + ly, bz + lz), name


def _walk(structure: Any, mode: DiscoverOrCommit, remapper: NameRemapper):
    anomalies = AnomalyCounter()
    if mode is DiscoverOrCommit.DISCOVER:
        result = ScanResult(anomalies=anomalies)
    else:
        result = AssembleResult(anomalies=anomalies)
    counts: Counter = Counter()

    for region in iter_regions(structure, anomalies):
        result.region_count += 1
        logger.debug("Region @%s palette=%d bits=%d", region.base,
                     len(region.palette), bits_per_entry(len(region.palette)))

        for world, name in iter_voxels(region, anomalies):
            if mode is DiscoverOrCommit.DISCOVER:
                counts[name] += 1
                if remapper.is_unmapped(name):
                    result.unmapped.add(name)
                continue

            mapping = remapper.resolve(name)
            if not is_usable(mapping):
                # Skip, or a map/entity record with nothing to place
                if not isinstance(mapping, Skip):
                    anomalies[DataAnomaly.UNRESOLVED_NAME] += 1
                continue
            if isinstance(mapping, Map):
                result.terrain[world] = mapping.target_id
            else:
                result.entities.append(EntityPlacement(mapping.entity_name, world))

    if mode is DiscoverOrCommit.DISCOVER:
        result.block_counts = dict(counts)
        logger.info("Scanned %d regions: %d names, %d unmapped; anomalies: %s",
                    result.region_count, len(counts), len(result.unmapped),
                    anomalies.summary())
    else:
        logger.info("Assembled %d regions: %d blocks, %d entities, bbox=%s; anomalies: %s",
                    result.region_count, len(result.terrain), len(result.entities),
                    bounding_box(result.terrain.keys()), anomalies.summary())
    return result


def scan(
    structure: Any,
    overrides: Optional[dict[str, Mapping]] = None,
    defaults: Optional[dict[str, Mapping]] = None,
    suggest: Optional[Suggester] = None,
) -> ScanResult:
    """Discovery pass: which names need a human decision, and how many voxels each.

    Args:
        structure: Decoded structure tag tree
        overrides: Saved override mappings
        defaults: Default mapping table (built-in table if None)
        suggest: Best-guess suggester (built-in suggester if None)

    Returns:
        ScanResult with the unmapped name set and per-name voxel counts
    """
    remapper = NameRemapper(
        overrides or {},
        DEFAULT_BLOCK_MAPPINGS if defaults is None else defaults,
        suggest_mapping if suggest is None else suggest,
    )
    return _walk(structure, DiscoverOrCommit.DISCOVER, remapper)


def assemble(
    structure: Any,
    overrides: Optional[dict[str, Mapping]] = None,
    suggest: Optional[Suggester] = None,
) -> AssembleResult:
    """Commit pass: resolve every voxel into an absolute terrain map and entities.

    Args:
        structure: Decoded structure tag tree
        overrides: Override mappings, already merged with confirmed decisions
        suggest: Suggester for names without an override (built-in if None)

    Returns:
        AssembleResult with terrain keyed by absolute (x, y, z)
    """
    remapper = NameRemapper(overrides or {}, suggest=suggest_mapping if suggest is None else suggest)
    return _walk(structure, DiscoverOrCommit.COMMIT, remapper)
