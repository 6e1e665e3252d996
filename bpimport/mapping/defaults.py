"""
Default block mappings and the best-guess suggester.

The default table maps common Minecraft block names onto the target block
registry. Names not in the table go through ``suggest_mapping``, which:

1. Strips block states: minecraft:oak_stairs[facing=north] -> minecraft:oak_stairs
2. Tries the vanilla namespace for modded names with a vanilla short name
3. Strips shape suffixes (stairs, slab, wall...) and retries on the material
4. Falls back to a family rule (any *_planks -> planks, any *_log -> log...)
"""

import json
import logging
import re
from pathlib import Path
from typing import Any, Callable, Iterable, Optional

import yaml

from bpimport.mapping.remapper import SKIP, Entity, Map, Mapping, mapping_from_dict

logger = logging.getLogger(__name__)

VANILLA_NAMESPACE = "minecraft"

# Target block registry: (id, name)
TARGET_BLOCKS: list[tuple[int, str]] = [
    (1, "bricks"),
    (2, "cobblestone"),
    (3, "dirt"),
    (4, "grass"),
    (5, "stone"),
    (6, "sand"),
    (7, "gravel"),
    (8, "glass"),
    (9, "oak-planks"),
    (10, "oak-log"),
    (11, "oak-leaves"),
    (12, "water-still"),
    (13, "lava"),
    (14, "stone-bricks"),
    (15, "sandstone"),
    (16, "snow"),
    (17, "clay"),
    (18, "ice"),
    (19, "spruce-planks"),
    (20, "spruce-log"),
    (21, "birch-planks"),
    (22, "birch-log"),
    (23, "andesite"),
    (24, "granite"),
    (25, "diorite"),
    (26, "deepslate"),
    (27, "iron-block"),
    (28, "gold-block"),
    (29, "diamond-block"),
    (30, "obsidian"),
    (31, "wool"),
    (32, "mossy-cobblestone"),
    (33, "netherrack"),
    (34, "glowstone"),
    (35, "bedrock"),
    (36, "coal-ore"),
    (37, "iron-ore"),
    (38, "terracotta"),
    (39, "quartz-block"),
    (40, "bookshelf"),
]

TARGET_IDS = {name: block_id for block_id, name in TARGET_BLOCKS}

_BLOCKS = {
    "air": None,
    "cave_air": None,
    "void_air": None,
    "structure_void": None,
    "barrier": None,
    "bricks": "bricks",
    "cobblestone": "cobblestone",
    "mossy_cobblestone": "mossy-cobblestone",
    "dirt": "dirt",
    "coarse_dirt": "dirt",
    "rooted_dirt": "dirt",
    "podzol": "dirt",
    "dirt_path": "dirt",
    "farmland": "dirt",
    "grass_block": "grass",
    "stone": "stone",
    "smooth_stone": "stone",
    "sand": "sand",
    "red_sand": "sand",
    "gravel": "gravel",
    "glass": "glass",
    "glass_pane": "glass",
    "oak_planks": "oak-planks",
    "oak_log": "oak-log",
    "oak_wood": "oak-log",
    "oak_leaves": "oak-leaves",
    "spruce_planks": "spruce-planks",
    "spruce_log": "spruce-log",
    "birch_planks": "birch-planks",
    "birch_log": "birch-log",
    "water": "water-still",
    "lava": "lava",
    "stone_bricks": "stone-bricks",
    "mossy_stone_bricks": "stone-bricks",
    "cracked_stone_bricks": "stone-bricks",
    "sandstone": "sandstone",
    "smooth_sandstone": "sandstone",
    "cut_sandstone": "sandstone",
    "snow_block": "snow",
    "snow": "snow",
    "clay": "clay",
    "ice": "ice",
    "packed_ice": "ice",
    "andesite": "andesite",
    "polished_andesite": "andesite",
    "granite": "granite",
    "polished_granite": "granite",
    "diorite": "diorite",
    "polished_diorite": "diorite",
    "deepslate": "deepslate",
    "cobbled_deepslate": "deepslate",
    "iron_block": "iron-block",
    "gold_block": "gold-block",
    "diamond_block": "diamond-block",
    "obsidian": "obsidian",
    "white_wool": "wool",
    "netherrack": "netherrack",
    "glowstone": "glowstone",
    "bedrock": "bedrock",
    "coal_ore": "coal-ore",
    "iron_ore": "iron-ore",
    "terracotta": "terracotta",
    "quartz_block": "quartz-block",
    "bookshelf": "bookshelf",
}

# Plants and saplings become environment entities, not blocks
_ENTITIES = {
    "oak_sapling": "Oak Tree",
    "spruce_sapling": "Pine Tree",
    "birch_sapling": "Birch Tree",
    "dandelion": "Flower",
    "poppy": "Flower",
    "short_grass": "Grass Tuft",
    "tall_grass": "Grass Tuft",
    "fern": "Fern",
}


def _build_default_table() -> dict[str, Mapping]:
    table: dict[str, Mapping] = {}
    for short, target in _BLOCKS.items():
        name = f"{VANILLA_NAMESPACE}:{short}"
        table[name] = Map(TARGET_IDS[target]) if target else SKIP
    for short, entity in _ENTITIES.items():
        table[f"{VANILLA_NAMESPACE}:{short}"] = Entity(entity)
    return table


DEFAULT_BLOCK_MAPPINGS: dict[str, Mapping] = _build_default_table()

# Suffixes stripped to find the material of a shaped block (longer first)
SHAPE_SUFFIXES = (
    "_pressure_plate",
    "_fence_gate",
    "_trapdoor",
    "_stairs",
    "_button",
    "_fence",
    "_slab",
    "_wall",
    "_door",
)

# Family fallbacks for names that still did not match
FAMILY_SUFFIXES = (
    ("_planks", "oak-planks"),
    ("_log", "oak-log"),
    ("_wood", "oak-log"),
    ("_stem", "oak-log"),
    ("_leaves", "oak-leaves"),
    ("_wool", "wool"),
    ("_carpet", "wool"),
    ("_stained_glass_pane", "glass"),
    ("_stained_glass", "glass"),
    ("_glazed_terracotta", "terracotta"),
    ("_terracotta", "terracotta"),
    ("_concrete", "stone"),
    ("_bricks", "bricks"),
    ("_ore", "stone"),
)


def parse_block_string(block_string: str) -> tuple[str, dict[str, str]]:
    """Parse a block string into base name and state dict.

    Args:
        block_string: e.g., "minecraft:oak_stairs[facing=north,half=bottom]"

    Returns:
        Tuple of (base_name, state_dict)
        e.g., ("minecraft:oak_stairs", {"facing": "north", "half": "bottom"})
    """
    if "[" not in block_string:
        return block_string, {}

    base_name = block_string[:block_string.index("[")]
    end = block_string.rfind("]")
    state_str = block_string[block_string.index("[") + 1:end if end > 0 else None]

    states = {}
    for pair in state_str.split(","):
        if "=" in pair:
            key, value = pair.split("=", 1)
            states[key] = value
    return base_name, states


def get_short_name(base_name: str) -> str:
    """Block name without its namespace: "minecraft:oak_stairs" -> "oak_stairs"."""
    if ":" in base_name:
        return base_name.split(":", 1)[1]
    return base_name


def normalize_name(name: str) -> str:
    """Lower-case and drop everything but letters and digits."""
    return re.sub(r"[^a-z0-9]+", "", (name or "").lower())


def make_suggester(defaults: dict[str, Mapping]) -> Callable[[str], Optional[Mapping]]:
    """Build a best-guess function over ``defaults``."""

    def lookup(short: str) -> Optional[Mapping]:
        return defaults.get(f"{VANILLA_NAMESPACE}:{short}")

    def suggest(name: str) -> Optional[Mapping]:
        if name in defaults:
            return defaults[name]

        base_name, _ = parse_block_string(name)
        if base_name in defaults:
            return defaults[base_name]

        short = get_short_name(base_name)
        mapping = lookup(short)
        if mapping is not None:
            return mapping

        for suffix in SHAPE_SUFFIXES:
            if short.endswith(suffix):
                material = short[: -len(suffix)]
                for candidate in (material, f"{material}s", f"{material}_planks", f"{material}_block"):
                    mapping = lookup(candidate)
                    if isinstance(mapping, Map):
                        return mapping
                break

        for suffix, target in FAMILY_SUFFIXES:
            if short.endswith(suffix):
                return Map(TARGET_IDS[target])

        return None

    return suggest


suggest_mapping = make_suggester(DEFAULT_BLOCK_MAPPINGS)


def load_table_file(path: str | Path) -> dict[str, Any]:
    """Read a YAML or JSON object from disk."""
    path = Path(path)
    with open(path, "r") as f:
        if path.suffix.lower() in (".yaml", ".yml"):
            data = yaml.safe_load(f)
        else:
            data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"{path} does not contain a mapping table")
    return data


def load_default_mappings(path: Optional[str | Path] = None) -> dict[str, Mapping]:
    """Built-in default table, extended by the entries in ``path`` if given."""
    table = dict(DEFAULT_BLOCK_MAPPINGS)
    if path is None:
        return table
    for name, record in load_table_file(path).items():
        mapping = mapping_from_dict(record)
        if mapping is None:
            logger.warning("Ignoring malformed default mapping for %s: %r", name, record)
            continue
        table[name] = mapping
    logger.info("Loaded default mappings from %s (%d entries)", path, len(table))
    return table


def load_registry(path: Optional[str | Path] = None) -> list[dict[str, Any]]:
    """Target block registry as ``[{"id": N, "name": S}, ...]``."""
    if path is None:
        return [{"id": block_id, "name": name} for block_id, name in TARGET_BLOCKS]
    with open(path, "r") as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError(f"{path} does not contain a block registry list")
    return [entry for entry in data if isinstance(entry, dict) and "id" in entry and "name" in entry]


def auto_map_names(names: Iterable[str], registry: list[dict[str, Any]]) -> dict[str, Mapping]:
    """Match source names to registry blocks by normalised name.

    Both the full name and its namespace-stripped form are tried, so
    "minecraft:oak_planks" matches a registry block called "Oak Planks".

    Returns:
        Name -> Map for every name with a registry match
    """
    by_norm = {}
    for block in registry:
        by_norm.setdefault(normalize_name(str(block["name"])), block)

    matches: dict[str, Mapping] = {}
    for name in names:
        base_name, _ = parse_block_string(name)
        for candidate in (name, get_short_name(base_name)):
            block = by_norm.get(normalize_name(candidate))
            if block is not None:
                try:
                    matches[name] = Map(int(block["id"]))
                except (TypeError, ValueError):
                    continue
                break
    return matches
