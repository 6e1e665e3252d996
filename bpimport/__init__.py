"""Blueprint import: decode, remap and normalise voxel-editor blueprints."""

from bpimport.errors import DataAnomaly, FormatError
from bpimport.data.container import BlueprintContainer, parse_blueprint
from bpimport.data.regions import DiscoverOrCommit, assemble, scan
from bpimport.data.schematic import EntityPlacement, Schematic, normalize
from bpimport.mapping.remapper import Entity, Map, Skip, resolve
from bpimport.mapping.store import MappingStore
from bpimport.pipeline import BlueprintImporter, ImportEntry

__all__ = [
    "DataAnomaly",
    "FormatError",
    "BlueprintContainer",
    "parse_blueprint",
    "DiscoverOrCommit",
    "assemble",
    "scan",
    "EntityPlacement",
    "Schematic",
    "normalize",
    "Entity",
    "Map",
    "Skip",
    "resolve",
    "MappingStore",
    "BlueprintImporter",
    "ImportEntry",
]
