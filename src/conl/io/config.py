"""
Configuration for the conl.io module.

Defines ConlSettings, a frozen dataclass carrying runtime limits for loading
CONL documents and schemas from files. Defaults are sourced from
conl.core.constants (the single source of truth).

Source of truth
- conl.core.constants.DEFAULT_MAX_DEPTH, DEFAULT_MAX_SIZE, DEFAULT_ENCODING

Import DAG discipline
- Depends only on stdlib, conl.core.constants and conl.io.errors.

Notes
- Precedence: environment > TOML > defaults.
- max_depth bounds parser nesting; max_size bounds input length in characters
  (0 disables the size check).
"""

from __future__ import annotations

import codecs
import os
import tomllib
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from conl.core.constants import DEFAULT_ENCODING, DEFAULT_MAX_DEPTH, DEFAULT_MAX_SIZE

from .errors import IoConfigError


def _int(name: str, raw: Any) -> int:
    if isinstance(raw, bool):
        raise IoConfigError(f"{name} must be an integer, got {raw!r}")
    try:
        return int(raw)
    except (TypeError, ValueError) as exc:
        raise IoConfigError(f"{name} must be an integer, got {raw!r}") from exc


@dataclass(frozen=True)
class ConlSettings:
    """
    Runtime settings for the conl.io loaders.

    Attributes:
        max_depth (int): Maximum container nesting accepted by the parser (>= 1).
        max_size (int): Maximum input size in characters; 0 disables the check.
        encoding (str): Text encoding used to decode files.

    Raises:
        IoConfigError: If a value is out of range or the encoding is unknown.

    Examples:
        >>> from conl.io import ConlSettings
        >>> ConlSettings(max_depth=16)  # doctest: +ELLIPSIS
        ConlSettings(...)
    """

    max_depth: int = DEFAULT_MAX_DEPTH
    max_size: int = DEFAULT_MAX_SIZE
    encoding: str = DEFAULT_ENCODING

    def __post_init__(self) -> None:
        if self.max_depth < 1:
            raise IoConfigError(f"max_depth must be >= 1, got {self.max_depth}")
        if self.max_size < 0:
            raise IoConfigError(f"max_size must be >= 0, got {self.max_size}")
        try:
            codecs.lookup(self.encoding)
        except LookupError as exc:
            raise IoConfigError(f"unknown encoding {self.encoding!r}") from exc

    # Configuration loaders (env/TOML) with precedence: env > TOML > defaults.

    @classmethod
    def _apply_mapping(cls, base: ConlSettings, cfg: dict[str, Any] | None) -> ConlSettings:
        """Apply a loose config mapping onto ConlSettings, returning a new instance."""
        if not isinstance(cfg, dict):
            return base
        s = base
        if "max_depth" in cfg:
            s = replace(s, max_depth=_int("max_depth", cfg["max_depth"]))
        if "max_size" in cfg:
            s = replace(s, max_size=_int("max_size", cfg["max_size"]))
        if "encoding" in cfg:
            if not isinstance(cfg["encoding"], str):
                raise IoConfigError(f"encoding must be a string, got {cfg['encoding']!r}")
            s = replace(s, encoding=cfg["encoding"].strip())
        return s

    @classmethod
    def from_env(cls, base: ConlSettings | None = None, prefix: str = "CONL_") -> ConlSettings:
        """
        Build ConlSettings from environment variables. Precedence is env > base (if provided) > defaults.

        Recognized variables:
            - CONL_MAX_DEPTH
            - CONL_MAX_SIZE
            - CONL_ENCODING
        """
        s = base or cls()
        mapping: dict[str, Any] = {}
        for name in ("max_depth", "max_size", "encoding"):
            v = os.getenv(prefix + name.upper())
            if v:
                mapping[name] = v
        return cls._apply_mapping(s, mapping)

    @classmethod
    def from_toml(cls, path: str | os.PathLike[str] | None = None) -> ConlSettings:
        """
        Build ConlSettings from a TOML file.

        Search order when `path` is None:
            1) ./conl.toml (with either a [conl] table or top-level keys)
            2) ./pyproject.toml under [tool.conl]

        Returns defaults if no file is present.

        Raises:
            IoConfigError: If a candidate file exists but is not valid TOML.
        """
        s = cls()
        cand: list[Path] = []
        if path is not None:
            cand.append(Path(path))
        else:
            cand.append(Path.cwd() / "conl.toml")
            cand.append(Path.cwd() / "pyproject.toml")

        cfg: dict[str, Any] | None = None
        for p in cand:
            if not p.exists():
                continue
            try:
                with p.open("rb") as fh:
                    data = tomllib.load(fh)
            except (OSError, tomllib.TOMLDecodeError) as exc:
                raise IoConfigError(f"cannot read settings from {p}: {exc}") from exc
            if p.name == "pyproject.toml":
                # Expect [tool.conl]
                tool = data.get("tool", {})
                cfg = tool.get("conl") if isinstance(tool, dict) else None
            elif isinstance(data.get("conl"), dict):
                cfg = data["conl"]
            else:
                cfg = data
            if cfg:
                break

        return cls._apply_mapping(s, cfg)

    @classmethod
    def load(cls, path: str | os.PathLike[str] | None = None) -> ConlSettings:
        """
        Load ConlSettings applying precedence: environment > TOML > defaults.

        Args:
            path: Optional explicit TOML path. If None, search defaults (conl.toml, pyproject.toml).

        Returns:
            ConlSettings
        """
        s = cls.from_toml(path)
        s = cls.from_env(base=s)
        return s
