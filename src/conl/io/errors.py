"""
Custom exceptions for the conl.io module.

Purpose
- Provide IO-layer error types for file loading and settings.
- Keep conl.core as the source of truth for parse and schema errors (see conl.core.errors).

Source of truth and boundaries
- conl.core.errors.ParseError and SchemaError are raised by the parser and schema loader
  and pass through conl.io unchanged.
- conl.io raises Io* errors for its own concerns:
  - IoConfigError: invalid settings (env, TOML, or constructor arguments).
  - IoReadError: a file could not be read, decoded, or exceeds the size ceiling.
"""

from __future__ import annotations


class IoError(Exception):
    """
    Base class for IO-related errors in conl.io.

    Notes:
        Use this as a catch-all for IO-layer failures, distinct from conl.core errors.
    """


class IoConfigError(IoError):
    """
    Raised when settings are invalid.

    Examples:
        - max_depth < 1
        - CONL_MAX_SIZE is not an integer
    """


class IoReadError(IoError):
    """
    Raised when a document cannot be loaded from disk.

    Notes:
        Wraps OSError and UnicodeDecodeError, and reports inputs larger than
        ConlSettings.max_size.
    """
