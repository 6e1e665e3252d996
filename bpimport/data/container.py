"""Read the blueprint container framing.

Layout::

    [4-byte magic 0A E5 BB 36]
    [uint32 BE metaLen][metaLen bytes NBT]
    [uint32 BE previewLen][previewLen bytes, opaque image]
    [uint32 BE structLen][structLen bytes, gzip-or-raw NBT]
"""

import gzip
import logging
import struct
import zlib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from bpimport.data.tag_tree import TagNode, decode_tag_tree
from bpimport.errors import FormatError

logger = logging.getLogger(__name__)

MAGIC = bytes([0x0A, 0xE5, 0xBB, 0x36])
LENGTH_PREFIX = struct.Struct(">I")


@dataclass(frozen=True)
class BlueprintContainer:
    """The three decoded sections of one blueprint file."""

    metadata_tags: Any
    preview_bytes: bytes
    structure_tags: Any

    @property
    def name(self) -> str | None:
        return blueprint_name(self.metadata_tags)


def blueprint_name(metadata: Any) -> str | None:
    """Return the metadata ``Name`` tag if it is a non-blank string."""
    name = TagNode(metadata).get("Name").as_str()
    if name is not None and name.strip():
        return name
    return None


def _read_frame(data: bytes, offset: int, section: str) -> tuple[bytes, int]:
    if len(data) - offset < LENGTH_PREFIX.size:
        raise FormatError(f"Truncated {section} length prefix at offset {offset}")
    (length,) = LENGTH_PREFIX.unpack_from(data, offset)
    offset += LENGTH_PREFIX.size
    if length > len(data) - offset:
        raise FormatError(
            f"{section} section declares {length} bytes but only "
            f"{len(data) - offset} remain"
        )
    return data[offset:offset + length], offset + length


def decode_structure(payload: bytes) -> Any:
    """Decode the structure section, trying gzip first and raw NBT second."""
    try:
        inflated = gzip.decompress(payload)
    except (OSError, EOFError, zlib.error) as e:
        logger.info("Structure is not gzip (%s), parsing as raw NBT", e)
        return decode_tag_tree(payload)

    try:
        return decode_tag_tree(inflated)
    except FormatError:
        # gzip happened to succeed on what is really a raw tree
        logger.info("Inflated structure did not parse, retrying as raw NBT")
        return decode_tag_tree(payload)


def parse_blueprint(data: bytes) -> BlueprintContainer:
    """Split a blueprint file into metadata, preview and structure.

    Args:
        data: Entire file contents

    Returns:
        BlueprintContainer with decoded metadata and structure tag trees

    Raises:
        FormatError: On bad magic, a section length that runs past the end
            of the buffer, or a structure that neither inflates nor parses
    """
    data = bytes(data)
    if data[:4] != MAGIC:
        raise FormatError(f"Invalid blueprint magic: {data[:4].hex(' ') or 'empty'}")
    offset = len(MAGIC)

    metadata_bytes, offset = _read_frame(data, offset, "metadata")
    preview_bytes, offset = _read_frame(data, offset, "preview")
    structure_bytes, offset = _read_frame(data, offset, "structure")

    logger.debug(
        "Blueprint sections: metadata=%d preview=%d structure=%d trailing=%d",
        len(metadata_bytes), len(preview_bytes), len(structure_bytes),
        len(data) - offset,
    )

    metadata = decode_tag_tree(metadata_bytes)
    structure = decode_structure(structure_bytes)

    return BlueprintContainer(
        metadata_tags=metadata,
        preview_bytes=preview_bytes,
        structure_tags=structure,
    )


def read_blueprint(path: str | Path) -> BlueprintContainer:
    """Read and parse a blueprint file from disk."""
    return parse_blueprint(Path(path).read_bytes())
