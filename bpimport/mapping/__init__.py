"""Block name remapping: mapping variants, defaults and the override store."""

from bpimport.mapping.remapper import Entity, Map, Mapping, Skip, SKIP, is_usable, resolve
from bpimport.mapping.store import MappingStore

__all__ = ["Entity", "Map", "Mapping", "Skip", "SKIP", "is_usable", "resolve", "MappingStore"]
