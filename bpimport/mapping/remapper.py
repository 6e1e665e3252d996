"""Resolve source block names to target actions.

A ``Mapping`` is one of three actions:

- ``Map(target_id)``: place target block ``target_id``
- ``Entity(entity_name)``: spawn an environment entity at the voxel
- ``Skip()``: drop the voxel

Lookup order for a name is: the override table (exact, case-sensitive match),
then the best-guess suggester over the default table, then Skip.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional, Union

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Map:
    target_id: int

    def to_dict(self) -> dict:
        return {"action": "map", "id": self.target_id}


@dataclass(frozen=True)
class Entity:
    entity_name: str

    def to_dict(self) -> dict:
        return {"action": "entity", "entityName": self.entity_name}


@dataclass(frozen=True)
class Skip:
    def to_dict(self) -> dict:
        return {"action": "skip"}


Mapping = Union[Map, Entity, Skip]
SKIP = Skip()

Suggester = Callable[[str], Optional[Mapping]]


def is_usable(mapping: Optional[Mapping]) -> bool:
    """True if the mapping places something (a positive block id or a named entity)."""
    if isinstance(mapping, Map):
        return mapping.target_id > 0
    if isinstance(mapping, Entity):
        return bool(mapping.entity_name)
    return False


def _parse_target_id(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip(), 10)
        except ValueError:
            return None
    return None


def mapping_from_dict(record: Any) -> Optional[Mapping]:
    """Build a Mapping from its persisted JSON form.

    Accepts ``{"action": "map", "id": N}`` (or ``targetBlockId``),
    ``{"action": "entity", "entityName": S}`` (or ``targetEntityName``) and
    ``{"action": "skip"}``. A map action without a positive id is Skip.

    Returns:
        The mapping, or None if ``record`` is not a recognisable mapping
    """
    if isinstance(record, (Map, Entity, Skip)):
        return record
    if not isinstance(record, dict):
        return None

    action = record.get("action")
    if action == "skip":
        return SKIP
    if action == "entity":
        name = record.get("entityName") or record.get("targetEntityName")
        if isinstance(name, str) and name:
            return Entity(name)
        return SKIP
    if action == "map":
        target_id = _parse_target_id(record.get("id") or record.get("targetBlockId"))
        if target_id is None or target_id <= 0:
            return SKIP
        return Map(target_id)
    return None


def resolve(
    name: str,
    overrides: dict[str, Mapping],
    suggest: Optional[Suggester] = None,
) -> Mapping:
    """Resolve one source block name.

    Args:
        name: Source block name, e.g. "minecraft:oak_planks"
        overrides: User/session override table; wins over everything
        suggest: Best-guess function over the default table

    Returns:
        The override if one exists, else the suggestion, else Skip
    """
    mapping = overrides.get(name)
    if mapping is not None:
        return mapping
    if suggest is not None:
        mapping = suggest(name)
        if mapping is not None:
            return mapping
    return SKIP


def is_unmapped(
    name: str,
    overrides: dict[str, Mapping],
    defaults: dict[str, Mapping],
    suggest: Optional[Suggester] = None,
) -> bool:
    """True if ``name`` needs a human decision.

    A usable override, any default-table entry (an explicit default Skip, as
    for air, is a decision) or a usable suggestion all count as mapped. A
    saved override Skip does not: those names are asked about again.
    """
    if is_usable(overrides.get(name)) or name in defaults:
        return False
    return not (suggest is not None and is_usable(suggest(name)))


class NameRemapper:
    """Caching resolver bound to one override table and one suggester.

    A blueprint has thousands of voxels but only a handful of distinct names,
    so every name is resolved once per pass.
    """

    def __init__(
        self,
        overrides: dict[str, Mapping],
        defaults: Optional[dict[str, Mapping]] = None,
        suggest: Optional[Suggester] = None,
    ) -> None:
        self.overrides = overrides
        self.defaults = defaults or {}
        self.suggest = suggest
        self._resolved: dict[str, Mapping] = {}
        self._unmapped: dict[str, bool] = {}

    def resolve(self, name: str) -> Mapping:
        if name not in self._resolved:
            self._resolved[name] = resolve(name, self.overrides, self.suggest)
        return self._resolved[name]

    def is_unmapped(self, name: str) -> bool:
        if name not in self._unmapped:
            self._unmapped[name] = is_unmapped(
                name, self.overrides, self.defaults, self.suggest)
            if self._unmapped[name]:
                logger.debug("No usable mapping for %s", name)
        return self._unmapped[name]
