"""Style usage discovery over parsed JSX/TSX syntax trees.

The matcher walks a tree once, depth-first and in source order, and yields a
``UsageSite`` for every style declaration it can see syntactically:

* ``INLINE_OBJECT``: keys of an object literal given to a style attribute,
  e.g. ``style={{ gap: "8px" }}``.
* ``TEMPLATED_STRING``: declarations inside a tagged style template
  (``css`gap: 8px;```), a template given to a style attribute, or a literal
  placed inside a ``<style>`` element.
* ``ATTRIBUTE_LITERAL``: declarations in a plain string given to a style
  attribute, e.g. ``style="gap: 8px"``.

Conditions are never evaluated; both branches of a ternary and every nested
element are visited.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass
from enum import Enum, auto

from tree_sitter import Node

from email_style_lint.errors import ParseInputError
from email_style_lint.normalize import PROPERTY_TOKEN_RE
from email_style_lint.source import SourceFile, SourcePosition

DEFAULT_STYLE_ATTRIBUTES = ("style",)
DEFAULT_STYLE_TAGS = ("css", "styled", "createGlobalStyle", "keyframes", "injectGlobal")
DEFAULT_STYLE_ELEMENTS = ("style",)

# Expression wrappers that keep whatever style value they contain.
PASS_THROUGH_TYPES = {
    "jsx_expression",
    "parenthesized_expression",
    "binary_expression",
    "array",
    "sequence_expression",
    "arguments",
    "as_expression",
    "satisfies_expression",
    "non_null_expression",
}

# Substitutions are masked with a character that cannot start a property name.
_MASK = "0"


class DeclaredForm(Enum):
    """Authoring form of a style declaration."""

    INLINE_OBJECT = "inline_object"
    TEMPLATED_STRING = "templated_string"
    ATTRIBUTE_LITERAL = "attribute_literal"


@dataclass(frozen=True, slots=True)
class UsageSite:
    """A single place where a style property is declared."""

    location: SourcePosition
    declared_property_name: str
    declared_form: DeclaredForm
    raw_value: str


@dataclass(frozen=True, slots=True)
class MatcherOptions:
    """Names that mark JSX attributes, template tags and elements as style-bearing."""

    style_attributes: tuple[str, ...] = DEFAULT_STYLE_ATTRIBUTES
    style_tags: tuple[str, ...] = DEFAULT_STYLE_TAGS
    style_elements: tuple[str, ...] = DEFAULT_STYLE_ELEMENTS


@dataclass(frozen=True, slots=True)
class Declaration:
    """A ``name: value`` pair located inside a declaration block."""

    name: str
    name_offset: int
    value_start: int
    value_end: int


class _Context(Enum):
    CODE = auto()
    STYLE_VALUE = auto()
    STYLE_OBJECT = auto()
    STYLESHEET_HOST = auto()
    STYLESHEET = auto()


class StyleUsageMatcher:
    """Restartable iterable of usage sites for one source file."""

    def __init__(self, source: SourceFile, options: MatcherOptions | None = None) -> None:
        if source is None or getattr(source, "tree", None) is None:
            raise ParseInputError("no syntax tree supplied to the style matcher")
        self._source = source
        self._options = options or MatcherOptions()
        self._strategies: dict[DeclaredForm, Callable[[Node], Iterator[UsageSite]]] = {
            DeclaredForm.INLINE_OBJECT: self._match_inline_object,
            DeclaredForm.TEMPLATED_STRING: self._match_templated_string,
            DeclaredForm.ATTRIBUTE_LITERAL: self._match_attribute_literal,
        }

    def __iter__(self) -> Iterator[UsageSite]:
        stack: list[tuple[Node, _Context]] = [(self._source.root, _Context.CODE)]
        while stack:
            node, context = stack.pop()
            form = _classify(node, context)
            if form is not None:
                yield from self._strategies[form](node)
            stack.extend(reversed(self._children(node, context, form)))

    def _children(
        self, node: Node, context: _Context, form: DeclaredForm | None
    ) -> list[tuple[Node, _Context]]:
        if form is DeclaredForm.INLINE_OBJECT:
            value = node.child_by_field_name("value")
            return [(value, _Context.CODE)] if value is not None else []
        if form is not None:
            return [
                (child, _Context.CODE)
                for child in node.named_children
                if child.type == "template_substitution"
            ]

        if context is _Context.STYLE_VALUE:
            return self._style_value_children(node)
        if context is _Context.STYLESHEET_HOST and node.type == "jsx_expression":
            return _with_context(node.named_children, _Context.STYLESHEET)
        if context is _Context.STYLESHEET and node.type in PASS_THROUGH_TYPES:
            return _with_context(node.named_children, _Context.STYLESHEET)
        return self._code_children(node)

    def _code_children(self, node: Node) -> list[tuple[Node, _Context]]:
        if node.type == "jsx_attribute":
            name, value = _attribute_parts(self._source, node)
            if value is not None and name in self._options.style_attributes:
                return [(value, _Context.STYLE_VALUE)]
        elif node.type == "call_expression":
            function = node.child_by_field_name("function")
            arguments = node.child_by_field_name("arguments")
            if (
                function is not None
                and arguments is not None
                and arguments.type == "template_string"
                and _tag_root(self._source, function) in self._options.style_tags
            ):
                return [(function, _Context.CODE), (arguments, _Context.STYLESHEET)]
        elif node.type == "jsx_element":
            if self._element_name(node) in self._options.style_elements:
                return _with_context(node.named_children, _Context.STYLESHEET_HOST)
        return _with_context(node.named_children, _Context.CODE)

    def _style_value_children(self, node: Node) -> list[tuple[Node, _Context]]:
        if node.type == "object":
            return _with_context(node.named_children, _Context.STYLE_OBJECT)
        if node.type == "ternary_expression":
            condition = node.child_by_field_name("condition")
            return [
                (child, _Context.CODE if _same_node(child, condition) else _Context.STYLE_VALUE)
                for child in node.named_children
            ]
        if node.type == "call_expression":
            function = node.child_by_field_name("function")
            return [
                (child, _Context.CODE if _same_node(child, function) else _Context.STYLE_VALUE)
                for child in node.named_children
            ]
        if node.type in PASS_THROUGH_TYPES:
            return _with_context(node.named_children, _Context.STYLE_VALUE)
        return _with_context(node.named_children, _Context.CODE)

    def _element_name(self, element: Node) -> str | None:
        open_tag = element.child_by_field_name("open_tag")
        if open_tag is None:
            return None
        name = open_tag.child_by_field_name("name")
        return self._source.node_text(name) if name is not None else None

    def _match_inline_object(self, node: Node) -> Iterator[UsageSite]:
        if node.type == "shorthand_property_identifier":
            name = self._source.node_text(node)
            yield self._site(node.start_byte, name, DeclaredForm.INLINE_OBJECT, name)
            return

        key = node.child_by_field_name("key")
        value = node.child_by_field_name("value")
        if key is None:
            return
        if key.type == "property_identifier":
            name = self._source.node_text(key)
        elif key.type == "string":
            name = _unquote(self._source.node_text(key))
        else:
            # computed and numeric keys cannot be resolved syntactically
            return
        raw_value = ""
        if value is not None:
            raw_value = self._source.node_text(value)
            if value.type == "string":
                raw_value = _unquote(raw_value)
        yield self._site(key.start_byte, name, DeclaredForm.INLINE_OBJECT, raw_value)

    def _match_templated_string(self, node: Node) -> Iterator[UsageSite]:
        yield from self._match_block(node, DeclaredForm.TEMPLATED_STRING)

    def _match_attribute_literal(self, node: Node) -> Iterator[UsageSite]:
        yield from self._match_block(node, DeclaredForm.ATTRIBUTE_LITERAL)

    def _match_block(self, node: Node, form: DeclaredForm) -> Iterator[UsageSite]:
        text = self._source.node_text(node)
        body = _blank_delimiters(text)
        masked = self._mask_substitutions(node, body)
        for declaration in iter_declarations(masked):
            byte_offset = node.start_byte + len(text[: declaration.name_offset].encode("utf-8"))
            raw_value = body[declaration.value_start : declaration.value_end]
            yield self._site(byte_offset, declaration.name, form, raw_value)

    def _mask_substitutions(self, node: Node, text: str) -> str:
        chars = list(text)
        for child in node.named_children:
            if child.type != "template_substitution":
                continue
            start = len(self._source.text(node.start_byte, child.start_byte))
            end = start + len(self._source.node_text(child))
            chars[start:end] = _MASK * (end - start)
        return "".join(chars)

    def _site(
        self, byte_offset: int, name: str, form: DeclaredForm, raw_value: str
    ) -> UsageSite:
        return UsageSite(
            location=self._source.position(byte_offset),
            declared_property_name=name,
            declared_form=form,
            raw_value=raw_value.strip(),
        )


def iter_declarations(text: str) -> Iterator[Declaration]:
    """Yield ``name: value`` declarations from CSS declaration or stylesheet text.

    Comments, quoted strings and parenthesized groups never split a
    declaration, and a comment only opens outside a quoted string. Segments
    closed by ``{`` are selectors or at-rule preludes and are skipped, so rule
    blocks nested in a stylesheet are still scanned.
    """
    chars = list(text)
    segment_start = 0
    depth = 0
    quote: str | None = None
    index = 0
    length = len(chars)
    while index < length:
        char = chars[index]
        if quote is not None:
            if char == "\\":
                index += 2
                continue
            if char == quote:
                quote = None
        elif text.startswith("/*", index):
            index = _blank_comment(chars, text, index)
            continue
        elif char in "\"'":
            quote = char
        elif char == "(":
            depth += 1
        elif char == ")":
            depth = max(0, depth - 1)
        elif depth == 0 and char in ";{}":
            if char != "{":
                declaration = _parse_declaration(chars, segment_start, index)
                if declaration is not None:
                    yield declaration
            segment_start = index + 1
        index += 1

    declaration = _parse_declaration(chars, segment_start, length)
    if declaration is not None:
        yield declaration


def _blank_comment(chars: list[str], text: str, start: int) -> int:
    end = text.find("*/", start + 2)
    stop = len(text) if end == -1 else end + 2
    for position in range(start, stop):
        if chars[position] != "\n":
            chars[position] = " "
    return stop


def _parse_declaration(chars: list[str], start: int, end: int) -> Declaration | None:
    segment = "".join(chars[start:end])
    colon = segment.find(":")
    if colon == -1:
        return None
    raw_name = segment[:colon]
    name = raw_name.strip()
    if not PROPERTY_TOKEN_RE.fullmatch(name):
        return None
    name_offset = start + (len(raw_name) - len(raw_name.lstrip()))
    return Declaration(
        name=name,
        name_offset=name_offset,
        value_start=start + colon + 1,
        value_end=end,
    )


def _classify(node: Node, context: _Context) -> DeclaredForm | None:
    if context is _Context.STYLE_OBJECT:
        if node.type in ("pair", "shorthand_property_identifier"):
            return DeclaredForm.INLINE_OBJECT
        return None
    if context is _Context.STYLE_VALUE:
        if node.type == "string":
            return DeclaredForm.ATTRIBUTE_LITERAL
        if node.type == "template_string":
            return DeclaredForm.TEMPLATED_STRING
        return None
    if context is _Context.STYLESHEET and node.type in ("string", "template_string"):
        return DeclaredForm.TEMPLATED_STRING
    return None


def _blank_delimiters(text: str) -> str:
    # quotes and backticks become spaces so offsets still line up with the node
    if len(text) < 2:
        return text
    return f" {text[1:-1]} "


def _attribute_parts(source: SourceFile, node: Node) -> tuple[str | None, Node | None]:
    children = node.named_children
    if not children:
        return (None, None)
    name = source.node_text(children[0])
    value = children[1] if len(children) > 1 else None
    return (name, value)


def _tag_root(source: SourceFile, node: Node) -> str | None:
    current: Node | None = node
    while current is not None:
        if current.type == "identifier":
            return source.node_text(current)
        if current.type == "member_expression":
            current = current.child_by_field_name("object")
        elif current.type == "call_expression":
            current = current.child_by_field_name("function")
        elif current.type in ("parenthesized_expression", "non_null_expression"):
            current = current.named_children[0] if current.named_children else None
        else:
            return None
    return None


def _with_context(nodes: list[Node], context: _Context) -> list[tuple[Node, _Context]]:
    return [(node, context) for node in nodes]


def _same_node(left: Node, right: Node | None) -> bool:
    return right is not None and (left.start_byte, left.end_byte, left.type) == (
        right.start_byte,
        right.end_byte,
        right.type,
    )


def _unquote(text: str) -> str:
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "\"'`":
        return text[1:-1]
    return text
