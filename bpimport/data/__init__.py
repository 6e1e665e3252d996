"""Blueprint decoding: container framing, tag trees, bit unpacking, regions, schematics."""

from bpimport.data.bitpack import bits_per_entry, compose_word, pack_indices, unpack_indices
from bpimport.data.container import BlueprintContainer, parse_blueprint, read_blueprint
from bpimport.data.regions import DiscoverOrCommit, assemble, local_xyz, scan
from bpimport.data.schematic import EntityPlacement, Schematic, normalize
from bpimport.data.tag_tree import TagNode, decode_tag_tree

__all__ = [
    "bits_per_entry",
    "compose_word",
    "pack_indices",
    "unpack_indices",
    "BlueprintContainer",
    "parse_blueprint",
    "read_blueprint",
    "DiscoverOrCommit",
    "assemble",
    "local_xyz",
    "scan",
    "EntityPlacement",
    "Schematic",
    "normalize",
    "TagNode",
    "decode_tag_tree",
]
