"""Import configuration."""

import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional

import yaml

logger = logging.getLogger(__name__)


@dataclass
class ImportConfig:
    """Configuration for blueprint imports."""

    # Paths
    mappings_path: str = "data/mappings/block_mappings.json"  # Saved overrides
    defaults_path: Optional[str] = None  # Extra default mappings (YAML or JSON)
    registry_path: Optional[str] = None  # Target block registry (JSON list)
    output_dir: str = "data/imports"

    # Behaviour
    interactive: bool = True  # Ask a human about unmapped names
    auto_map_names: bool = True  # Prime overrides from registry name matches
    save_preview: bool = False

    # Misc
    log_level: str = "INFO"


def load_config(config_path: Optional[str | Path] = None, **overrides) -> ImportConfig:
    """Load configuration from a YAML file, then apply keyword overrides.

    Args:
        config_path: YAML file; None uses dataclass defaults
        **overrides: Field values that win over the file (None values are ignored)

    Raises:
        FileNotFoundError: If ``config_path`` does not exist
        ValueError: If the file has keys ImportConfig does not know
    """
    values = {}
    if config_path is not None:
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        with open(config_path, "r") as f:
            values = yaml.safe_load(f) or {}
        if not isinstance(values, dict):
            raise ValueError(f"{config_path} must contain a mapping")

    known = {f.name for f in fields(ImportConfig)}
    unknown = set(values) - known
    if unknown:
        raise ValueError(f"Unknown config keys: {sorted(unknown)}. Available: {sorted(known)}")

    values.update({k: v for k, v in overrides.items() if v is not None})
    unknown = set(values) - known
    if unknown:
        raise ValueError(f"Unknown config keys: {sorted(unknown)}")

    config = ImportConfig(**values)
    logger.debug("Loaded config: %s", config)
    return config
