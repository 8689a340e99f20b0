"""
Core exception types raised by the lexer, scalar decoder, tree builder and schema loader.

Provides typed exceptions for core-domain failures:
- ParseError and its subclasses for document text that does not conform to CONL.
- SchemaError and its subclasses for schema documents that cannot be loaded.

Every exception carries a stable ``kind`` string so callers can report failures
without depending on class names. Parse errors also carry a 1-based line and
column and can be rendered as an ``ErrorReport``.

Notes:
    - Parse and schema-load errors are fail-fast: the first error aborts the call
      and no partial tree or schema is returned.
    - Validation mismatches are NOT exceptions; see ``conl.schema.validator``.

Examples:
    Catch a duplicate key and report it.

    >>> from conl.core.errors import ParseError
    >>> from conl.core.parser import parse
    >>> try:
    ...     parse("a = 1\\na = 2\\n")
    ... except ParseError as e:
    ...     report = e.report()
    >>> report.kind, report.line
    ('DuplicateKeyError', 2)
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

__all__ = [
    "ConlError",
    "ErrorReport",
    "ParseError",
    "InvalidIndentationError",
    "ScalarDecodeError",
    "DuplicateKeyError",
    "MixedContainerError",
    "MalformedNodeError",
    "NestingDepthError",
    "SchemaError",
    "SchemaShapeError",
    "UnknownDefinitionError",
    "CyclicDefinitionError",
    "InvalidPatternError",
]


class ErrorReport(BaseModel):
    """
    Structured, serializable form of a parse failure.

    Attributes:
        kind (str): Error kind, e.g. "DuplicateKeyError".
        message (str): Human-readable description without position prefix.
        line (int): 1-based line number.
        column (int): 1-based column number.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: str
    message: str
    line: int
    column: int


class ConlError(ValueError):
    """Base class for all CONL parse and schema-load failures."""

    kind: str = "ConlError"


class ParseError(ConlError):
    """
    Document text does not conform to CONL.

    Attributes:
        message (str): Description of the failure.
        line (int): 1-based line of the offending token.
        column (int): 1-based column of the offending token.
    """

    kind = "ParseError"

    def __init__(self, message: str, line: int, column: int = 1) -> None:
        super().__init__(f"line {line}, column {column}: {message}")
        self.message = message
        self.line = line
        self.column = column

    def report(self) -> ErrorReport:
        return ErrorReport(kind=self.kind, message=self.message, line=self.line, column=self.column)


class InvalidIndentationError(ParseError):
    """Mixed tabs/spaces, indentation not a whole number of units, or a dedent to no open level."""

    kind = "IndentationError"


class ScalarDecodeError(ParseError):
    """Malformed escape sequence, unterminated quote, or missing multiline body."""

    kind = "ScalarDecodeError"


class DuplicateKeyError(ParseError):
    """The same key appears twice in one map."""

    kind = "DuplicateKeyError"


class MixedContainerError(ParseError):
    """Key lines and ``=`` list items appear as children of the same parent."""

    kind = "MixedContainerError"


class MalformedNodeError(ParseError):
    """A node is structurally invalid (inline value plus block, or list items at the root)."""

    kind = "MalformedNodeError"


class NestingDepthError(ParseError):
    """The document nests deeper than the configured ceiling."""

    kind = "NestingDepthError"


class SchemaError(ConlError):
    """Schema document cannot be turned into a resolved schema."""

    kind = "SchemaError"


class SchemaShapeError(SchemaError):
    """A schema node has a missing, unknown or conflicting shape."""

    kind = "SchemaShapeError"


class UnknownDefinitionError(SchemaError):
    """A reference names a definition that does not exist."""

    kind = "UnknownDefinitionError"

    def __init__(self, name: str, referrer: str | None = None) -> None:
        where = f" (referenced from {referrer!r})" if referrer else ""
        super().__init__(f"unknown definition <{name}>{where}")
        self.name = name
        self.referrer = referrer


class CyclicDefinitionError(SchemaError):
    """The definition reference graph contains a cycle."""

    kind = "CyclicDefinitionError"

    def __init__(self, cycle: tuple[str, ...]) -> None:
        super().__init__("cyclic definition: " + " -> ".join(f"<{name}>" for name in cycle))
        self.cycle = cycle


class InvalidPatternError(SchemaError):
    """A pattern in the schema could not be compiled by the pattern engine."""

    kind = "InvalidPatternError"

    def __init__(self, pattern: str, reason: str) -> None:
        super().__init__(f"invalid pattern {pattern!r}: {reason}")
        self.pattern = pattern
        self.reason = reason
