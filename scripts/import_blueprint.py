"""
Import blueprint (.bp) and component (.json) files as relative schematics.

This script:
1. Parses each file and scans it for block names with no usable mapping
2. Asks for a decision on each unmapped name (or skips them with --no-prompt)
3. Saves the decisions to the mapping store
4. Writes one import entry JSON per file to the output directory

Usage:
    python scripts/import_blueprint.py house.bp
    python scripts/import_blueprint.py builds/*.bp --no-prompt --output-dir out/
    python scripts/import_blueprint.py castle.bp --dry-run
"""

import argparse
import json
import logging
import re
import sys
from pathlib import Path

from tqdm import tqdm

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from bpimport.config import load_config
from bpimport.data.preview import inspect_preview, save_preview
from bpimport.errors import FormatError
from bpimport.mapping.remapper import SKIP, Entity, Map, Mapping
from bpimport.pipeline import BlueprintImporter, ImportEntry, PendingImport

logger = logging.getLogger("import_blueprint")


def sanitize_file_name(name: str) -> str:
    """Make a name safe for use in a file name (max 64 characters)."""
    if not name:
        return "component"
    name = re.sub(r"\s+", "-", str(name).strip())
    name = re.sub(r"[^a-zA-Z0-9\-_.]", "-", name)
    name = re.sub(r"-+", "-", name)
    return name[:64] or "component"


def parse_decision(answer: str) -> Mapping:
    """Turn one line of user input into a Mapping.

    "12" -> Map(12), "entity:Oak Tree" -> Entity("Oak Tree"), "" or "skip" -> Skip
    """
    answer = answer.strip()
    if not answer or answer.lower() == "skip":
        return SKIP
    if answer.lower().startswith("entity:"):
        entity_name = answer.split(":", 1)[1].strip()
        return Entity(entity_name) if entity_name else SKIP
    try:
        target_id = int(answer, 10)
    except ValueError:
        print(f"    Not understood, skipping: {answer!r}")
        return SKIP
    return Map(target_id) if target_id > 0 else SKIP


def prompt_confirm(unmapped: list[str], counts: dict[str, int]) -> dict[str, Mapping]:
    """Ask on stdin what each unmapped name should become."""
    print(f"\n{len(unmapped)} block name(s) need a mapping.")
    print("Enter a target block id, entity:<name>, or leave empty to skip.")
    decisions = {}
    for name in sorted(unmapped, key=lambda n: -counts.get(n, 0)):
        try:
            answer = input(f"  {name} ({counts.get(name, 0)} voxels): ")
        except EOFError:
            print()
            break
        decisions[name] = parse_decision(answer)
    return decisions


def no_confirm(unmapped: list[str], counts: dict[str, int]) -> dict[str, Mapping]:
    return {}


def print_discovery(path: Path, pending: PendingImport) -> None:
    print(f"\n{path.name}: {pending.name}")
    print(f"  Block names: {len(pending.block_counts)}")
    for name, count in sorted(pending.block_counts.items(), key=lambda kv: -kv[1]):
        flag = "  (unmapped)" if name in pending.unmapped else ""
        print(f"    {name}: {count}{flag}")
    if pending.anomalies:
        print(f"  Anomalies: {pending.anomalies.summary()}")


def write_entry(entry: ImportEntry, output_dir: Path) -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    output_path = output_dir / f"{sanitize_file_name(entry.name)}-{entry.id}.json"
    with open(output_path, "w") as f:
        json.dump(entry.to_dict(), f, indent=2)
    return output_path


def process_file(path: Path, importer: BlueprintImporter, args, config) -> bool:
    """Import one file. Returns False if it could not be read."""
    try:
        if path.suffix.lower() == ".json":
            pending = importer.discover_component(path.read_text(), path.name)
        else:
            pending = importer.discover(path.read_bytes(), path.name)
    except (FormatError, OSError) as e:
        logger.error("Failed to import %s: %s", path, e)
        return False

    if args.dry_run:
        print_discovery(path, pending)
        return True

    confirm = prompt_confirm if config.interactive else no_confirm
    confirmed = confirm(pending.unmapped, pending.block_counts) if pending.unmapped else {}
    entry = importer.commit(pending, confirmed)

    output_dir = Path(config.output_dir)
    output_path = write_entry(entry, output_dir)
    size = entry.schematic.size
    print(f"  {path.name}: {len(entry.schematic.blocks)} blocks, "
          f"{len(entry.schematic.entities)} entities, size={size} -> {output_path}")

    if config.save_preview and pending.container is not None:
        preview = pending.container.preview_bytes
        info = inspect_preview(preview)
        saved = save_preview(preview, output_dir / f"{sanitize_file_name(entry.name)}-{entry.id}")
        if saved:
            print(f"    Preview {info[0]} {info[1]}x{info[2]} -> {saved}")
        else:
            logger.warning("No readable preview in %s", path.name)
    return True


def main():
    parser = argparse.ArgumentParser(description="Import blueprint and component files")
    parser.add_argument("files", nargs="+", help=".bp or .json files to import")
    parser.add_argument("--config", type=str, default=None, help="YAML config file")
    parser.add_argument("--mappings", type=str, default=None, help="Saved mapping store (JSON)")
    parser.add_argument("--output-dir", type=str, default=None, help="Output directory")
    parser.add_argument("--dry-run", action="store_true", help="Only list block names and unmapped names")
    parser.add_argument("--no-prompt", action="store_true", help="Skip unmapped names without asking")
    parser.add_argument("--save-preview", action="store_true", help="Save embedded preview images")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    args = parser.parse_args()

    config = load_config(
        args.config,
        mappings_path=args.mappings,
        output_dir=args.output_dir,
        interactive=False if args.no_prompt else None,
        save_preview=True if args.save_preview else None,
        log_level="DEBUG" if args.verbose else None,
    )
    logging.basicConfig(
        level=getattr(logging, str(config.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    importer = BlueprintImporter.from_config(config)
    print(f"Loaded {importer.store.size} saved mappings from {config.mappings_path}")

    paths = [Path(f) for f in args.files]
    missing = [p for p in paths if not p.exists()]
    for p in missing:
        logger.error("File not found: %s", p)
    paths = [p for p in paths if p.exists()]

    failures = len(missing)
    # Prompts and a progress bar do not mix
    show_progress = len(paths) > 1 and not (config.interactive and not args.dry_run)
    for path in tqdm(paths, desc="Importing", disable=not show_progress):
        if not process_file(path, importer, args, config):
            failures += 1

    print(f"\nDone: {len(paths) + len(missing) - failures} imported, {failures} failed")
    sys.exit(1 if failures else 0)


if __name__ == "__main__":
    main()
