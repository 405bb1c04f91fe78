"""
Field projection (masking) for JSON-like values.

Tools that return large collections accept a ``select`` expression so the
agent only pays for the fields it needs. The grammar:

    expression := "" | items
    items      := item ("," item)*
    item       := name
                | name "(" items ")"     nested selection on an object field
                | name "/" item          shorthand: "a/b" == "a(b)"
    name       := any run of characters except , ( ) /   (whitespace trimmed)
                  "*" matches every key of the object

Examples:
    "id,title,upvotes"
    "title,author(name)"
    "postCategory(category),postStatus(name)"
    "author/name"

Parsing produces an explicit tree of Field / FieldWithChildren nodes;
projection walks that tree. Projection never validates names against a
schema: unknown fields are simply absent from the result, so new upstream
fields work without changes here.
"""

import copy
from dataclasses import dataclass
from typing import Any, Union

from featurebase_mcp.errors import MalformedProjectionError

WILDCARD = "*"

_DELIMITERS = ",()/"


@dataclass(frozen=True)
class Field:
    """Keep a field verbatim."""

    name: str


@dataclass(frozen=True)
class FieldWithChildren:
    """Keep a field, projecting its value through ``children``."""

    name: str
    children: tuple["Node", ...]


Node = Union[Field, FieldWithChildren]


# =============================================================================
# Parser
# =============================================================================


class _Parser:
    """Recursive-descent parser over a single expression string."""

    def __init__(self, expression: str) -> None:
        self.text = expression
        self.pos = 0

    def parse(self) -> tuple[Node, ...]:
        if not self.text.strip():
            return ()
        nodes = self._parse_items()
        if self._peek() is not None:
            self._fail(f"unexpected {self._peek()!r}")
        return merge_nodes(nodes)

    def _parse_items(self) -> list[Node]:
        items = [self._parse_item()]
        while self._peek() == ",":
            self.pos += 1
            items.append(self._parse_item())
        return items

    def _parse_item(self) -> Node:
        name = self._parse_name()
        char = self._peek()
        if char == "(":
            self.pos += 1
            children = self._parse_items()
            if self._peek() != ")":
                self._fail("expected ')'")
            self.pos += 1
            return FieldWithChildren(name, merge_nodes(children))
        if char == "/":
            self.pos += 1
            return FieldWithChildren(name, (self._parse_item(),))
        return Field(name)

    def _parse_name(self) -> str:
        start = self.pos
        while self.pos < len(self.text) and self.text[self.pos] not in _DELIMITERS:
            self.pos += 1
        name = self.text[start:self.pos].strip()
        if not name:
            self._fail("expected a field name")
        return name

    def _peek(self) -> str | None:
        """Return the next non-whitespace character without consuming it."""
        while self.pos < len(self.text) and self.text[self.pos].isspace():
            self.pos += 1
        if self.pos >= len(self.text):
            return None
        return self.text[self.pos]

    def _fail(self, reason: str) -> None:
        raise MalformedProjectionError(
            expression=self.text,
            position=self.pos,
            reason=reason,
        )


def merge_nodes(nodes: list[Node] | tuple[Node, ...]) -> tuple[Node, ...]:
    """
    Collapse repeated names into one node each.

    A bare Field wins over a nested selection of the same name (it already
    keeps everything); two nested selections union their children.
    First-seen order is preserved.
    """
    merged: dict[str, Node] = {}
    for node in nodes:
        existing = merged.get(node.name)
        if existing is None:
            merged[node.name] = node
        elif isinstance(existing, Field):
            continue
        elif isinstance(node, Field):
            merged[node.name] = node
        else:
            merged[node.name] = FieldWithChildren(
                node.name, merge_nodes(existing.children + node.children)
            )
    return tuple(merged.values())


def parse_projection(expression: str) -> tuple[Node, ...]:
    """
    Parse a select expression into a projection tree.

    Args:
        expression: The select expression (empty means "no fields")

    Returns:
        Tuple of top-level nodes

    Raises:
        MalformedProjectionError: Unbalanced parentheses, empty names, or
            trailing characters after a complete expression
    """
    return _Parser(expression).parse()


# =============================================================================
# Projection
# =============================================================================


def project(value: Any, expression: str | tuple[Node, ...]) -> Any:
    """
    Reduce ``value`` to the fields named by ``expression``.

    Arrays are projected element-wise (non-object elements pass through);
    objects keep only requested fields that are present; scalars are
    returned unchanged. The input is never mutated.

    Args:
        value: Decoded JSON value
        expression: Select expression string or an already-parsed tree

    Returns:
        The projected value

    Raises:
        MalformedProjectionError: If ``expression`` is a string that does not parse
    """
    tree = parse_projection(expression) if isinstance(expression, str) else expression
    return _apply(value, tree)


def _apply(value: Any, nodes: tuple[Node, ...]) -> Any:
    if isinstance(value, list):
        return [
            _apply_object(item, nodes) if isinstance(item, dict) else copy.deepcopy(item)
            for item in value
        ]
    if isinstance(value, dict):
        return _apply_object(value, nodes)
    return value


def _apply_object(obj: dict[str, Any], nodes: tuple[Node, ...]) -> dict[str, Any]:
    explicit = {node.name: node for node in nodes if node.name != WILDCARD}
    wildcard = next((node for node in nodes if node.name == WILDCARD), None)

    result: dict[str, Any] = {}
    for key, item in obj.items():
        node = explicit.get(key, wildcard)
        if node is None:
            continue
        if isinstance(node, FieldWithChildren):
            result[key] = _apply(item, node.children)
        else:
            result[key] = copy.deepcopy(item)
    return result
