"""
CONL core defaults.

Defines the input-bounding defaults consumed by the parser and by the IO layer
settings. This module is zero-IO and uses only the Python standard library.

Notes:
    - The parser rejects documents nested deeper than ``max_depth`` frames.
    - ``conl.io.config.ConlSettings`` takes its defaults from here; change them here.
"""

from __future__ import annotations

__all__ = [
    "DEFAULT_MAX_DEPTH",
    "DEFAULT_MAX_SIZE",
    "DEFAULT_ENCODING",
    "DEFAULT_MAX_REFERENCE_DEPTH",
    "SERIALIZER_INDENT",
]

# Maximum number of nested container frames below the document root.
DEFAULT_MAX_DEPTH: int = 128

# Maximum input size in characters accepted by the IO loaders (0 disables the check).
DEFAULT_MAX_SIZE: int = 16 * 1024 * 1024

DEFAULT_ENCODING: str = "utf-8"

# Longest chain of <name> references a resolved schema may contain; validator
# stack use grows with chain length.
DEFAULT_MAX_REFERENCE_DEPTH: int = 128

# Indentation unit written by conl.core.serde.dumps.
SERIALIZER_INDENT: str = "  "
