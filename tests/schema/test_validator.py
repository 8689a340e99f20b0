from __future__ import annotations

import pytest

from conl.core.parser import parse
from conl.core.value import EMPTY, List, Scalar
from conl.schema.resolver import load_schema
from conl.schema.validator import Validator, ViolationKind, format_path, validate

LIST_SCHEMA = """\
root = <doc>
definitions
  doc
    keys
      letters = <letters>
  letters
    required items
      = A
      = B
    items = C
"""

SERVER_SCHEMA = """\
root = <doc>
definitions
  doc
    required keys
      type = server
"""

SERVICE_SCHEMA = r"""
root = <service>
definitions
  service
    required keys
      name = [a-z]+
    keys
      port = \d+
      servers = <servers>
      mode = <mode>
  servers
    items = <server>
  server
    required keys
      host = .+
    keys
      port = \d+
  mode
    any of
      = dev
      = prod
      = <server>
"""


def _letters(*items: str) -> str:
    return "letters\n" + "".join(f"  = {item}\n" for item in items)


def _kinds(result) -> list[ViolationKind]:
    return [v.kind for v in result.violations]


def test_list_all_items_present() -> None:
    schema = load_schema(LIST_SCHEMA)
    result = validate(parse(_letters("A", "B", "C", "C")), schema)
    assert result.ok
    assert result.violations == []


def test_list_missing_required_item() -> None:
    schema = load_schema(LIST_SCHEMA)
    result = validate(parse(_letters("A")), schema)
    assert not result.ok
    (violation,) = result.violations
    assert violation.kind is ViolationKind.MISSING_REQUIRED_ITEM
    assert violation.path == ("letters", 1)
    assert violation.location == "letters[1]"


def test_list_item_fails_pattern() -> None:
    schema = load_schema(LIST_SCHEMA)
    result = validate(parse(_letters("A", "B", "X")), schema)
    (violation,) = result.violations
    assert violation.kind is ViolationKind.TYPE_MISMATCH
    assert violation.path == ("letters", 2)


def test_list_unexpected_item_without_items_rule() -> None:
    schema = load_schema("root = <d>\ndefinitions\n  d\n    keys\n      l = <l>\n"
                         "  l\n    required items\n      = A\n")
    result = validate(parse("l\n  = A\n  = A\n"), schema)
    assert _kinds(result) == [ViolationKind.UNEXPECTED_ITEM]
    assert result.violations[0].path == ("l", 1)


def test_map_required_key_matches() -> None:
    schema = load_schema(SERVER_SCHEMA)
    assert validate(parse("type = server\n"), schema).ok


def test_map_required_key_wrong_value_is_one_missing_required_key() -> None:
    schema = load_schema(SERVER_SCHEMA)
    result = validate(parse("type = client\n"), schema)
    (violation,) = result.violations
    assert violation.kind is ViolationKind.MISSING_REQUIRED_KEY
    assert violation.path == ()
    assert "'type'" in violation.message
    (cause,) = violation.causes
    assert cause.kind is ViolationKind.TYPE_MISMATCH
    assert cause.path == ("type",)


def test_map_unexpected_and_missing_keys() -> None:
    schema = load_schema(SERVER_SCHEMA)
    result = validate(parse("kind = server\n"), schema)
    assert _kinds(result) == [ViolationKind.MISSING_REQUIRED_KEY, ViolationKind.UNEXPECTED_KEY]
    assert result.violations[1].path == ("kind",)


def test_map_without_rules_must_be_empty() -> None:
    schema = load_schema("root = <d>\ndefinitions\n  d\n    keys\n")
    result = validate(parse("a = 1\nb = 2\n"), schema)
    assert _kinds(result) == [ViolationKind.UNEXPECTED_KEY] * 2


def test_required_rules_bind_distinct_entries() -> None:
    schema = load_schema(
        "root = <d>\ndefinitions\n  d\n    required keys\n      a|b = x\n      a|b = .*\n"
    )
    assert validate(parse("a = x\nb = y\n"), schema).ok
    result = validate(parse("a = x\n"), schema)
    assert _kinds(result) == [ViolationKind.MISSING_REQUIRED_KEY]


def test_service_document_passes() -> None:
    schema = load_schema(SERVICE_SCHEMA)
    doc = parse(
        "name = api\nport = 80\nservers\n  =\n    host = a.example\n  =\n    host = b\n"
        "    port = 81\nmode = prod\n"
    )
    result = Validator(schema).validate(doc)
    assert result.ok, [str(v) for v in result.violations]


def test_violations_are_collected_with_paths() -> None:
    schema = load_schema(SERVICE_SCHEMA)
    doc = parse(
        "name = API\nport = 80x\nservers\n  =\n    port = 1\n  = just-text\nextra = 1\n"
    )
    result = validate(doc, schema)
    assert not result.ok
    found = {(v.location, v.kind) for v in result.violations}
    assert found == {
        ("<root>", ViolationKind.MISSING_REQUIRED_KEY),
        ("port", ViolationKind.TYPE_MISMATCH),
        ("servers[0]", ViolationKind.MISSING_REQUIRED_KEY),
        ("servers[1]", ViolationKind.TYPE_MISMATCH),
        ("extra", ViolationKind.UNEXPECTED_KEY),
    }


def test_any_of_reports_closest_alternative() -> None:
    schema = load_schema(SERVICE_SCHEMA)
    result = validate(parse("name = api\nmode\n  host = h\n  port = p\n"), schema)
    (violation,) = result.violations
    assert violation.kind is ViolationKind.NO_ALTERNATIVE_MATCHED
    assert violation.path == ("mode",)
    (cause,) = violation.causes
    assert cause.kind is ViolationKind.TYPE_MISMATCH
    assert cause.path == ("mode", "port")


def test_any_of_scalar_alternatives() -> None:
    schema = load_schema(SERVICE_SCHEMA)
    assert validate(parse("name = api\nmode = dev\n"), schema).ok
    result = validate(parse("name = api\nmode = staging\n"), schema)
    assert _kinds(result) == [ViolationKind.NO_ALTERNATIVE_MATCHED]


def test_scalar_pattern_is_anchored() -> None:
    schema = load_schema("root = <d>\ndefinitions\n  d\n    keys\n      port = \\d+\n")
    assert validate(parse("port = 8080\n"), schema).ok
    assert not validate(parse("port = 8080ms\n"), schema).ok


def test_empty_matches_nothing() -> None:
    schema = load_schema(SERVER_SCHEMA)
    validator = Validator(schema)
    violations = validator.check(EMPTY, schema.root_definition())
    assert [v.kind for v in violations] == [ViolationKind.TYPE_MISMATCH]
    result = validator.validate(parse("type\n"))
    assert _kinds(result) == [ViolationKind.MISSING_REQUIRED_KEY]


def test_check_against_a_named_definition() -> None:
    schema = load_schema(LIST_SCHEMA)
    validator = Validator(schema)
    value = List((Scalar("A"), Scalar("B")))
    assert validator.check(value, schema.definition("letters")) == []
    problems = validator.check(Scalar("A"), schema.definition("letters"), ("x",))
    assert problems[0].path == ("x",)
    assert problems[0].kind is ViolationKind.TYPE_MISMATCH


def test_validator_is_reusable() -> None:
    validator = Validator(load_schema(SERVER_SCHEMA))
    first = validator.validate(parse("type = client\n"))
    second = validator.validate(parse("type = client\n"))
    assert first == second


@pytest.mark.parametrize(
    "path, expected",
    [
        ((), "<root>"),
        (("servers", 0, "port"), "servers[0].port"),
        ((0,), "[0]"),
        (("odd key", "x"), "['odd key'].x"),
    ],
)
def test_format_path(path: tuple, expected: str) -> None:
    assert format_path(path) == expected


def test_near_misses_exclude_entries_bound_by_later_rules() -> None:
    schema = load_schema(
        "root = <d>\ndefinitions\n  d\n    required keys\n      a|b = x\n      b = y\n"
    )
    result = validate(parse("a = z\nb = y\n"), schema)
    (violation,) = result.violations
    assert violation.kind is ViolationKind.MISSING_REQUIRED_KEY
    assert "'a'" in violation.message
    assert "'b'" not in violation.message
    assert [cause.path for cause in violation.causes] == [("a",)]
