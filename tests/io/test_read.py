from __future__ import annotations

from pathlib import Path

import pytest

from conl.core.errors import DuplicateKeyError, NestingDepthError, UnknownDefinitionError
from conl.io import ConlSettings, IoReadError, load_document, load_schema, read_text
from conl.schema import validate


def test_load_document_and_schema(tmp_path: Path) -> None:
    doc_path = tmp_path / "service.conl"
    doc_path.write_text("name = api\nport = 8080\n", encoding="utf-8")
    schema_path = tmp_path / "service.schema.conl"
    schema_path.write_text(
        "root = <service>\n"
        "definitions\n"
        "  service\n"
        "    required keys\n"
        "      name = [a-z]+\n"
        "    keys\n"
        "      port = \\d+\n",
        encoding="utf-8",
    )

    doc = load_document(doc_path)
    schema = load_schema(schema_path)

    assert doc["port"].text == "8080"
    assert validate(doc, schema).ok


def test_read_text_respects_encoding(tmp_path: Path) -> None:
    p = tmp_path / "latin.conl"
    p.write_bytes("name = caf\u00e9\n".encode("latin-1"))

    with pytest.raises(IoReadError):
        read_text(p)
    assert load_document(p, ConlSettings(encoding="latin-1"))["name"].text == "caf\u00e9"


def test_read_text_max_size(tmp_path: Path) -> None:
    p = tmp_path / "big.conl"
    p.write_text("a = " + "x" * 100 + "\n")

    with pytest.raises(IoReadError, match="max_size"):
        read_text(p, ConlSettings(max_size=10))
    assert read_text(p, ConlSettings(max_size=0)).startswith("a = x")


def test_missing_file(tmp_path: Path) -> None:
    with pytest.raises(IoReadError):
        read_text(tmp_path / "absent.conl")


def test_parse_and_schema_errors_pass_through(tmp_path: Path) -> None:
    dup = tmp_path / "dup.conl"
    dup.write_text("a = 1\na = 2\n")
    with pytest.raises(DuplicateKeyError):
        load_document(dup)

    deep = tmp_path / "deep.conl"
    deep.write_text("a\n  b\n    c = 1\n")
    with pytest.raises(NestingDepthError):
        load_document(deep, ConlSettings(max_depth=1))

    bad = tmp_path / "bad.schema.conl"
    bad.write_text("root = <missing>\ndefinitions\n  a\n    scalar = x\n")
    with pytest.raises(UnknownDefinitionError):
        load_schema(bad)


def test_read_text_checks_size_before_decoding(tmp_path: Path) -> None:
    p = tmp_path / "binary.conl"
    p.write_bytes(b"\xff" * 1000)

    with pytest.raises(IoReadError, match="max_size"):
        read_text(p, ConlSettings(max_size=10))
    with pytest.raises(IoReadError, match="decode"):
        read_text(p, ConlSettings(max_size=1000))
