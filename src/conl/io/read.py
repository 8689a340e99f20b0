"""
File loaders for CONL documents and schemas.

Responsibilities
- Read a file as text under the limits of ConlSettings (size ceiling, encoding).
- Hand the decoded text to conl.core.parser.parse / conl.schema.resolver.load_schema.

Notes
- OS and decoding failures are wrapped in IoReadError; ParseError and SchemaError
  from the core and schema layers propagate unchanged.
- The size ceiling counts decoded characters, matching the parser's view of the input.
  At most ``4 * (max_size + 1) + 1`` bytes are read before decoding.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from conl.core.parser import parse
from conl.core.value import Value
from conl.schema.resolver import PatternEngine, Schema, load_schema as _load_schema

from .config import ConlSettings
from .errors import IoReadError

__all__ = [
    "read_text",
    "load_document",
    "load_schema",
]

logger = logging.getLogger(__name__)


def read_text(path: str | os.PathLike[str], settings: ConlSettings | None = None) -> str:
    """
    Read a file as text, enforcing the configured encoding and size ceiling.

    Args:
        path: File to read.
        settings (ConlSettings | None): Limits; defaults to ``ConlSettings()``.

    Returns:
        str: Decoded file contents.

    Raises:
        IoReadError: If the file cannot be read or decoded, or exceeds ``max_size``.
    """
    s = settings or ConlSettings()
    p = Path(path)
    # Encoded characters take at most 4 bytes, plus up to 4 for a byte-order mark.
    limit = 4 * (s.max_size + 1) if s.max_size else -1
    try:
        with p.open("rb") as fh:
            raw = fh.read(limit + 1) if limit >= 0 else fh.read()
    except OSError as exc:
        raise IoReadError(f"cannot read {p}: {exc}") from exc
    if limit >= 0 and len(raw) > limit:
        raise IoReadError(f"{p} exceeds max_size={s.max_size} characters")
    try:
        text = raw.decode(s.encoding)
    except UnicodeDecodeError as exc:
        raise IoReadError(f"cannot decode {p} as {s.encoding}: {exc}") from exc
    if s.max_size and len(text) > s.max_size:
        raise IoReadError(f"{p} exceeds max_size={s.max_size} characters")
    logger.debug("read %s: %d characters", p, len(text))
    return text


def load_document(path: str | os.PathLike[str], settings: ConlSettings | None = None) -> Value:
    """Read and parse a CONL document file."""
    s = settings or ConlSettings()
    return parse(read_text(path, s), max_depth=s.max_depth)


def load_schema(
    path: str | os.PathLike[str],
    settings: ConlSettings | None = None,
    engine: PatternEngine | None = None,
) -> Schema:
    """Read, interpret and resolve a schema file."""
    s = settings or ConlSettings()
    return _load_schema(read_text(path, s), engine=engine, max_depth=s.max_depth)
