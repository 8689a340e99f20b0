from __future__ import annotations

import pytest

from conl.core.errors import ParseError, SchemaShapeError
from conl.schema.model import (
    AnyOfDef,
    DefinitionKind,
    KeyRule,
    ListDef,
    MapDef,
    Matcher,
    MatcherKind,
    ScalarDef,
    iter_matchers,
    parse_schema_model,
)

SCHEMA = r"""
root = <config>
definitions
  config
    docs = Top-level service configuration
    required keys
      name = <name>
    keys
      port
        matches = \d+
        docs = TCP port
      tags = <tags>
      mode = <mode>
      future = ignored
  name
    scalar = [a-z][a-z0-9_]*
  tags
    required items
      = <name>
    items = <name>
  mode
    any of
      = dev
      = prod
"""


def test_parse_schema_model_shapes() -> None:
    model = parse_schema_model(SCHEMA)
    assert model.root == "config"
    assert list(model.definitions) == ["config", "name", "tags", "mode"]

    config = model.definitions["config"]
    assert isinstance(config, MapDef)
    assert config.kind is DefinitionKind.MAP
    assert config.docs == "Top-level service configuration"
    assert config.required_keys == (
        KeyRule(Matcher(MatcherKind.PATTERN, "name"), Matcher(MatcherKind.REFERENCE, "name")),
    )
    port = config.keys[0]
    assert port.value == Matcher(MatcherKind.PATTERN, r"\d+")
    assert port.value.docs == "TCP port"

    assert model.definitions["name"] == ScalarDef(Matcher(MatcherKind.PATTERN, "[a-z][a-z0-9_]*"))
    assert model.definitions["tags"] == ListDef(
        required_items=(Matcher(MatcherKind.REFERENCE, "name"),),
        items=Matcher(MatcherKind.REFERENCE, "name"),
    )
    assert model.definitions["mode"] == AnyOfDef(
        (Matcher(MatcherKind.PATTERN, "dev"), Matcher(MatcherKind.PATTERN, "prod"))
    )


def test_bare_root_name_is_accepted() -> None:
    model = parse_schema_model("root = doc\ndefinitions\n  doc\n    scalar = .*\n")
    assert model.root == "doc"


def test_docs_do_not_affect_equality() -> None:
    assert Matcher(MatcherKind.PATTERN, "x", docs="a") == Matcher(MatcherKind.PATTERN, "x")
    assert str(Matcher.parse("<ref>")) == "<ref>"
    assert Matcher.parse("<>").kind is MatcherKind.PATTERN


def test_empty_rule_blocks_mean_no_rules() -> None:
    model = parse_schema_model("root = <m>\ndefinitions\n  m\n    keys\n")
    assert model.definitions["m"] == MapDef()


def test_iter_matchers_includes_key_matchers() -> None:
    model = parse_schema_model(SCHEMA)
    texts = [m.text for m in iter_matchers(model.definitions["config"])]
    assert texts[:2] == ["name", "name"]
    assert "port" in texts and r"\d+" in texts


@pytest.mark.parametrize(
    "text, fragment",
    [
        ("definitions\n  a\n    scalar = x\n", "root"),
        ("root = <a>\n", "definitions"),
        ("root = <a>\ndefinitions\n  a = x\n", "definitions.a"),
        ("root = <a>\ndefinitions\n  a\n    docs = nothing else\n", "needs one of"),
        ("root = <a>\ndefinitions\n  a\n    scalar = x\n    items = y\n", "mixes"),
        ("root = <a>\ndefinitions\n  a\n    items\n      docs = no matches\n", "matches"),
        ("root = <a>\ndefinitions\n  a\n    required items = x\n", "list of matchers"),
        ("root = <a>\ndefinitions\n  a\n    keys = x\n", "map of key patterns"),
    ],
)
def test_shape_errors(text: str, fragment: str) -> None:
    with pytest.raises(SchemaShapeError) as ei:
        parse_schema_model(text)
    assert fragment in str(ei.value)


def test_schema_parse_errors_propagate() -> None:
    with pytest.raises(ParseError):
        parse_schema_model("root = <a>\nroot = <b>\n")
