from __future__ import annotations

import pytest
from pydantic import BaseModel

from conl.core.constants import DEFAULT_MAX_DEPTH
from conl.core.errors import NestingDepthError
from conl.core.parser import parse
from conl.core.serde import dump_model, dumps, from_python, load_model, to_python
from conl.core.value import EMPTY, List, Map, Scalar

DOC = """\
name = demo
"odd key" = "a;b"
server
  port = 8080
  hosts
    = alpha
    =
  script = \"\"\"bash
    echo a\\n

    echo b
unset
"""


def test_dumps_round_trip_preserves_tree() -> None:
    tree = parse(DOC)
    text = dumps(tree)
    assert parse(text) == tree
    assert dumps(parse(text)) == text


def test_dumps_layout() -> None:
    tree = parse("a = 1\nb\n  = x\n  =\nc\n  d = \"\"\"sql\n    select 1\n")
    assert dumps(tree) == (
        "a = 1\n"
        "b\n"
        "  = x\n"
        "  =\n"
        "c\n"
        '  d = """sql\n'
        "    select 1\n"
    )


def test_dumps_quotes_when_needed() -> None:
    tree = Map.from_pairs(
        [
            ("k", Scalar(" padded ")),
            ("semi;colon", Scalar("")),
            ("tab", Scalar("a\tb")),
        ]
    )
    text = dumps(tree)
    assert text == 'k = " padded "\n"semi;colon" = ""\ntab = "a\\tb"\n'
    assert parse(text) == tree


def test_multiline_that_cannot_be_written_as_block_is_quoted() -> None:
    tree = Map.from_pairs([("k", Scalar("  leading\nline", hint="txt"))])
    text = dumps(tree)
    assert text == 'k = "  leading\\nline"\n'
    assert parse(text)["k"] == Scalar("  leading\nline")


def test_dumps_tab_indent() -> None:
    tree = parse("a\n  b = 1\n")
    assert dumps(tree, indent="\t") == "a\n\tb = 1\n"


def test_dumps_root_rules() -> None:
    assert dumps(EMPTY) == ""
    with pytest.raises(TypeError):
        dumps(Scalar("x"))
    with pytest.raises(TypeError):
        dumps(List((Scalar("x"),)))


def test_to_python_and_from_python() -> None:
    tree = parse(DOC)
    data = to_python(tree)
    assert data["server"]["hosts"] == ["alpha", None]
    assert data["unset"] is None
    assert data["server"]["script"] == "echo a\\n\n\necho b"

    built = from_python({"on": True, "n": 3, "ratio": 0.5, "xs": (1, "two"), "none": None})
    assert built == Map.from_pairs(
        [
            ("on", Scalar("true")),
            ("n", Scalar("3")),
            ("ratio", Scalar("0.5")),
            ("xs", List((Scalar("1"), Scalar("two")))),
            ("none", EMPTY),
        ]
    )
    with pytest.raises(TypeError):
        from_python({"bad": object()})


def test_from_pairs_rejects_duplicates() -> None:
    with pytest.raises(ValueError):
        Map.from_pairs([("a", EMPTY), ("a", EMPTY)])


class Server(BaseModel):
    port: int
    hosts: list[str] = []
    debug: bool = False
    note: str | None = None


def test_load_and_dump_model() -> None:
    server = load_model("port = 8080\nhosts\n  = a\n  = b\ndebug = true\n", Server)
    assert server == Server(port=8080, hosts=["a", "b"], debug=True)
    text = dump_model(server)
    assert text == "port = 8080\nhosts\n  = a\n  = b\ndebug = true\n"
    assert load_model(parse(text), Server) == server


def _deep(depth: int) -> str:
    return "".join(f"{'  ' * i}k{i}\n" for i in range(depth)) + f"{'  ' * depth}leaf = 1\n"


@pytest.mark.parametrize(
    "text",
    [
        'a = """x"y\n  body\n',
        'a = """"lead\n  body\n',
        'a = """a=b\n  body\n',
        'a = """x\ry\n  body\n',
        'a = """sh\n  one\rtwo\n  three\n',
        'a = """\n  x\n     \n  y\n',
        'a = """txt\n  x\n\n  \ty\n',
        'a = "line\\r\\nnext"\n',
        'l\n  = """md\n    # title\n  = "a;b"\n  =\n',
        '"k;1" = v\n"" = empty key\n',
        "outer\n  =\n    =\n      = deep\n",
    ],
)
def test_round_trip_edge_cases(text: str) -> None:
    tree = parse(text)
    assert parse(dumps(tree)) == tree


def test_round_trip_keeps_hint_with_quote() -> None:
    tree = parse('a = """x"y\n  body\n')
    assert dumps(tree) == 'a = """x"y\n  body\n'
    assert parse(dumps(tree))["a"] == Scalar("body", hint='x"y')


def test_round_trip_at_default_nesting_ceiling() -> None:
    tree = parse(_deep(DEFAULT_MAX_DEPTH))
    assert parse(dumps(tree)) == tree
    with pytest.raises(NestingDepthError):
        parse(_deep(DEFAULT_MAX_DEPTH + 1))


def test_round_trip_beyond_interpreter_recursion_limit() -> None:
    depth = 1200
    tree = parse(_deep(depth), max_depth=depth)
    text = dumps(tree)
    assert text == _deep(depth)
    assert parse(text, max_depth=depth) == tree
    node = to_python(tree)
    for i in range(depth):
        node = node[f"k{i}"]
    assert node == {"leaf": "1"}


def test_multiline_line_ending_in_carriage_return_is_quoted() -> None:
    tree = Map.from_pairs([("k", Scalar("one\r\ntwo", hint="txt"))])
    assert dumps(tree) == 'k = "one\\r\\ntwo"\n'
