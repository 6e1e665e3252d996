"""
Two-phase blueprint import.

1. ``discover``: parse the file and scan it for block names that have no
   usable mapping. Nothing is built yet.
2. A human (or a script) decides what the unmapped names become.
3. ``commit``: merge those decisions into the override store, resolve every
   voxel and normalise the result into an origin-relative schematic.

``import_file`` runs all three with a confirmation callback.
"""

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

from bpimport.config import ImportConfig
from bpimport.data.component_json import (
    ComponentDocument,
    assemble_component,
    parse_component,
    scan_component,
)
from bpimport.data.container import BlueprintContainer, parse_blueprint
from bpimport.data.preview import inspect_preview
from bpimport.data.regions import assemble, scan
from bpimport.data.schematic import Schematic, normalize
from bpimport.errors import AnomalyCounter, DataAnomaly
from bpimport.mapping.defaults import (
    auto_map_names,
    load_default_mappings,
    load_registry,
    make_suggester,
)
from bpimport.mapping.remapper import Mapping, NameRemapper, Suggester
from bpimport.mapping.store import MappingStore

logger = logging.getLogger(__name__)

# (unmapped names, voxel count per name) -> decisions; {} means skip them all
Confirmer = Callable[[list[str], dict[str, int]], dict[str, Mapping]]


def skip_all(unmapped: list[str], counts: dict[str, int]) -> dict[str, Mapping]:
    return {}


@dataclass
class ImportEntry:
    """A finished import, ready for the persistence layer."""
    id: str
    name: str
    prompt: str
    schematic: Schematic
    timestamp: int
    anomalies: AnomalyCounter = field(default_factory=AnomalyCounter)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "prompt": self.prompt,
            "schematic": self.schematic.to_dict(),
            "timestamp": self.timestamp,
        }


@dataclass
class PendingImport:
    """Result of the discovery phase, waiting for confirmation."""
    kind: str  # "bp" or "comp"
    name: str
    unmapped: list[str]
    block_counts: dict[str, int]
    container: Optional[BlueprintContainer] = None
    component: Optional[ComponentDocument] = None
    anomalies: AnomalyCounter = field(default_factory=AnomalyCounter)


def _now_millis() -> int:
    return int(time.time() * 1000)


def name_from_filename(filename: str, suffix: str) -> str:
    name = Path(filename).name
    if name.lower().endswith(suffix):
        name = name[: -len(suffix)]
    return name


class BlueprintImporter:
    """Runs discover/commit against one override store.

    Args:
        store: Override mappings; confirmed decisions are merged into it
        defaults: Default mapping table
        suggest: Best-guess suggester (built from ``defaults`` if None)
        registry: Target block registry for name-based auto-mapping
        auto_map: Prime the store with registry name matches during discovery
    """

    def __init__(
        self,
        store: MappingStore,
        defaults: Optional[dict[str, Mapping]] = None,
        suggest: Optional[Suggester] = None,
        registry: Optional[list[dict]] = None,
        auto_map: bool = True,
    ) -> None:
        self.store = store
        self.defaults = defaults if defaults is not None else load_default_mappings()
        self.suggest = suggest if suggest is not None else make_suggester(self.defaults)
        self.registry = registry if registry is not None else load_registry()
        self.auto_map = auto_map

    @classmethod
    def from_config(cls, config: ImportConfig) -> "BlueprintImporter":
        return cls(
            store=MappingStore.load(config.mappings_path),
            defaults=load_default_mappings(config.defaults_path),
            registry=load_registry(config.registry_path),
            auto_map=config.auto_map_names,
        )

    def _prime(self, names: list[str]) -> None:
        if not self.auto_map or not names:
            return
        candidates = {n: m for n, m in auto_map_names(names, self.registry).items()
                      if self.store.get(n) is None}
        if not candidates:
            return
        if self.store.path is not None:
            added = self.store.merge_and_save(candidates, replace=False)
        else:
            added = self.store.prime(candidates)
        if added:
            logger.info("Auto-mapped %d names by registry name", added)

    # -- discovery ---------------------------------------------------------

    def discover(self, data: bytes, filename: str = "blueprint.bp") -> PendingImport:
        """Parse a blueprint and find the names that need a decision.

        Raises:
            FormatError: If the file is not a readable blueprint
        """
        container = parse_blueprint(data)
        result = scan(container.structure_tags, self.store.snapshot(), self.defaults, self.suggest)

        if container.preview_bytes and inspect_preview(container.preview_bytes) is None:
            result.anomalies[DataAnomaly.BAD_PREVIEW] += 1

        names = sorted(result.unmapped)
        self._prime(names)
        remaining = self.store.remaining_unmapped(names)

        name = container.name or name_from_filename(filename, ".bp")
        logger.info("Discovered %s: %d names, %d need mapping",
                    name, len(result.block_counts), len(remaining))
        return PendingImport(
            kind="bp",
            name=name,
            unmapped=remaining,
            block_counts=result.block_counts,
            container=container,
            anomalies=result.anomalies,
        )

    def discover_component(self, text: str | bytes, filename: str = "component.json") -> PendingImport:
        """Parse a JSON component and find legend names that need a decision.

        Raises:
            FormatError: If the text is not a component document
        """
        doc = parse_component(text)
        if doc.legend is not None:
            self._prime(sorted(doc.name_counts()))
        remapper = NameRemapper(self.store.snapshot(), self.defaults, self.suggest)
        unmapped, counts = scan_component(doc, remapper)

        name = doc.name or name_from_filename(filename, ".json") or "Imported Component"
        return PendingImport(
            kind="comp",
            name=name,
            unmapped=sorted(unmapped),
            block_counts=counts,
            component=doc,
            anomalies=doc.anomalies,
        )

    # -- commit ------------------------------------------------------------

    def _merge(self, confirmed: Optional[dict[str, Mapping]], save: bool) -> dict[str, Mapping]:
        if confirmed:
            if save and self.store.path is not None:
                self.store.merge_and_save(confirmed)
            else:
                self.store.merge(confirmed)
        return self.store.snapshot()

    def commit(
        self,
        pending: PendingImport,
        confirmed: Optional[dict[str, Mapping]] = None,
        save: bool = True,
    ) -> ImportEntry:
        """Merge confirmed decisions, resolve every voxel and normalise.

        Args:
            pending: Output of ``discover`` or ``discover_component``
            confirmed: Human decisions for unmapped names; None or {} skips them
            save: Persist confirmed decisions if the store is file-backed

        Returns:
            ImportEntry holding the origin-relative schematic
        """
        overrides = self._merge(confirmed, save)
        now = _now_millis()

        if pending.kind == "bp":
            result = assemble(pending.container.structure_tags, overrides, self.suggest)
            schematic = normalize(result.terrain, result.entities)
            anomalies = pending.anomalies + result.anomalies
            entry_id, prompt = f"bp-{now}", f"Imported BP: {pending.name}"
        else:
            doc = pending.component
            remapper = NameRemapper(overrides, self.defaults, self.suggest)
            terrain, entities = assemble_component(doc, remapper)
            schematic = normalize(terrain, entities)
            anomalies = AnomalyCounter(doc.anomalies)
            entry_id = f"comp-{now}"
            prompt = doc.prompt or f"Imported Component: {pending.name}"

        logger.info("Committed %s: %d blocks, %d entities, origin=%s",
                    pending.name, len(schematic.blocks), len(schematic.entities),
                    schematic.origin)
        return ImportEntry(
            id=entry_id,
            name=pending.name,
            prompt=prompt,
            schematic=schematic,
            timestamp=now,
            anomalies=AnomalyCounter(anomalies),
        )

    def import_file(self, path: str | Path, confirm: Confirmer = skip_all) -> ImportEntry:
        """Discover, confirm and commit one ``.bp`` or ``.json`` file."""
        path = Path(path)
        if path.suffix.lower() == ".json":
            pending = self.discover_component(path.read_text(), path.name)
        else:
            pending = self.discover(path.read_bytes(), path.name)

        confirmed = confirm(pending.unmapped, pending.block_counts) if pending.unmapped else {}
        return self.commit(pending, confirmed)
