"""Tag-tree decoding and shape normalisation.

Blueprint sections are NBT. ``decode_tag_tree`` reads them with nbtlib, which
produces flat tags: a ``List`` is a Python list, an ``Int`` is an int and so on.

Trees that come from other decoders (or from JSON dumps of them) are
"wrapped": every tag is an object ``{"type": ..., "value": ...}``, so a list of
compounds sits at ``node.value.value``. ``TagNode`` hides the difference so the
region walker never has to probe shapes itself.
"""

import io
import logging
import numbers
from collections.abc import Mapping
from typing import Any, Iterator, Optional

import nbtlib
import numpy as np

from bpimport.errors import FormatError

logger = logging.getLogger(__name__)

WRAPPER_KEYS = {"type", "value", "name"}


def decode_tag_tree(data: bytes) -> nbtlib.File:
    """Decode uncompressed NBT bytes into a tag tree.

    Raises:
        FormatError: If the bytes are not a valid NBT compound
    """
    if not data:
        raise FormatError("Empty tag-tree payload")
    try:
        return nbtlib.File.parse(io.BytesIO(data))
    except Exception as e:
        raise FormatError(f"Invalid tag-tree payload: {e}") from e


def unwrap(value: Any) -> Any:
    """Strip ``.value`` wrappers until a payload is reached."""
    while True:
        if isinstance(value, nbtlib.tag.Base) or value is None:
            return value
        if isinstance(value, Mapping):
            if "value" in value and set(value) <= WRAPPER_KEYS:
                value = value["value"]
                continue
            return value
        if isinstance(value, (str, bytes, list, tuple, np.ndarray, numbers.Number)):
            return value
        if hasattr(value, "value"):
            value = value.value
            continue
        return value


class TagNode:
    """Read-only view over one node of a flat or wrapped tag tree.

    Example:
        >>> node = TagNode({"X": {"type": "int", "value": 3}})
        >>> node.get("X").as_int()
        3
    """

    __slots__ = ("raw",)

    def __init__(self, value: Any) -> None:
        self.raw = unwrap(value)

    def __repr__(self) -> str:
        return f"TagNode({type(self.raw).__name__})"

    @property
    def present(self) -> bool:
        return self.raw is not None

    def get(self, name: str) -> "TagNode":
        """Named child lookup. Missing children give an empty node."""
        if isinstance(self.raw, Mapping):
            return TagNode(self.raw.get(name))
        return TagNode(getattr(self.raw, name, None))

    def as_list(self) -> Optional[list["TagNode"]]:
        """Children of a list tag, or None if this node is not a list."""
        if isinstance(self.raw, (list, tuple)):
            return [TagNode(item) for item in self.raw]
        return None

    def as_int(self) -> Optional[int]:
        if isinstance(self.raw, bool):
            return None
        if isinstance(self.raw, (numbers.Integral, np.integer)):
            return int(self.raw)
        return None

    def as_str(self) -> Optional[str]:
        if isinstance(self.raw, str):
            return str(self.raw)
        return None

    def as_array(self) -> Optional[Any]:
        """Raw payload of an array tag (ndarray or sequence), unconverted."""
        if isinstance(self.raw, (np.ndarray, list, tuple)):
            return self.raw
        return None

    def keys(self) -> Iterator[str]:
        if isinstance(self.raw, Mapping):
            return iter(self.raw.keys())
        return iter(())
