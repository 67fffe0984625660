"""
JSX / TypeScript compiler for generated preview code.

Source is parsed with tree-sitter's TSX grammar and re-emitted as plain
JavaScript:
- JSX elements become factory calls:
  <Button size="sm">Hi</Button>  ->  __jsx(Button, {"size": "sm"}, "Hi")
- TypeScript-only syntax is erased: interfaces, type aliases, ambient and
  overload declarations, annotations, type parameters and arguments,
  modifiers, `as` / `satisfies` casts and non-null assertions
- enums become objects with TypeScript's reverse mapping

Everything else is copied from the source text. Output keeps the line
structure of the input so runtime errors point at the right line.
"""

import html
import json
import re
from typing import List, Optional, Union

import tree_sitter_typescript
from tree_sitter import Language, Node, Parser

from uigen.errors import TransformError


# =============================================================================
# CONSTANTS
# =============================================================================

TSX_LANGUAGE = Language(tree_sitter_typescript.language_tsx())

IDENT_RE = re.compile(r"[A-Za-z_$][\w$]*")

# No runtime meaning: replaced by the newlines they span
TYPE_ONLY_NODES = frozenset({
    "type_annotation", "type_arguments", "type_parameters",
    "type_predicate_annotation", "asserts_annotation",
    "opting_type_annotation", "omitting_type_annotation",
    "interface_declaration", "type_alias_declaration", "ambient_declaration",
    "function_signature", "method_signature", "abstract_method_signature",
    "index_signature", "implements_clause",
    "accessibility_modifier", "override_modifier",
})

# Replaced by the expression they wrap
CAST_NODES = frozenset({"as_expression", "satisfies_expression", "non_null_expression"})

# Modifier tokens dropped inside these nodes
MODIFIER_TOKENS = frozenset({
    "?", "!", "readonly", "override", "declare", "abstract",
    "public", "private", "protected",
})
MODIFIED_NODES = frozenset({
    "required_parameter", "optional_parameter", "public_field_definition",
    "method_definition", "abstract_class_declaration", "variable_declarator",
})

JSX_NODES = frozenset({"jsx_element", "jsx_self_closing_element", "jsx_fragment"})

DECLARATION_NODES = frozenset({
    "function_declaration", "generator_function_declaration", "class_declaration",
    "abstract_class_declaration", "enum_declaration",
})


# =============================================================================
# JSX TEXT
# =============================================================================

def clean_jsx_text(text: str) -> str:
    """
    Apply React's whitespace rules to a JSX text child.

    Lines are trimmed where they touch a line break, blank lines are
    dropped and the rest are joined with single spaces.
    """
    lines = re.split(r"\r\n|\n|\r", text)
    last_non_empty = -1
    for index, line in enumerate(lines):
        if line.strip(" \t"):
            last_non_empty = index

    result = ""
    for index, line in enumerate(lines):
        trimmed = line.replace("\t", " ")
        if index != 0:
            trimmed = trimmed.lstrip(" ")
        if index != len(lines) - 1:
            trimmed = trimmed.rstrip(" ")
        if trimmed:
            if index != last_non_empty:
                trimmed += " "
            result += trimmed
    return result


def _number(text: str) -> Optional[Union[int, float]]:
    try:
        return int(text, 0)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        return None


# =============================================================================
# COMPILER
# =============================================================================

class JSXCompiler:
    """Compile JSX + TypeScript source text into plain JavaScript."""

    def __init__(self, source: str, factory: str = "__jsx", fragment: str = "__Fragment"):
        self.source = source
        self.src = source.encode("utf-8")
        self.factory = factory
        self.fragment = fragment
        self.declared: List[str] = []
        self.parser = Parser(TSX_LANGUAGE)

    def compile(self) -> str:
        """Return the compiled JavaScript. Raises TransformError on malformed input."""
        root = self.parser.parse(self.src).root_node
        if root.has_error:
            raise self._syntax_error(root)
        self.declared = self._top_level_names(root)
        return self._emit(root)

    # ----- helpers -----------------------------------------------------------

    def _text(self, node: Node) -> str:
        return self.src[node.start_byte:node.end_byte].decode("utf-8")

    def _slice(self, start: int, end: int) -> str:
        return self.src[start:end].decode("utf-8")

    def _blank(self, node: Node) -> str:
        return "\n" * self.src.count(b"\n", node.start_byte, node.end_byte)

    def _pad(self, node: Node, code: str) -> str:
        """Append the newlines of `node` that `code` no longer carries."""
        missing = self.src.count(b"\n", node.start_byte, node.end_byte) - code.count("\n")
        return code + "\n" * max(0, missing)

    def _error(self, message: str, node: Node) -> TransformError:
        row, column = node.start_point
        return TransformError(message, line=row + 1, column=column + 1)

    def _syntax_error(self, root: Node) -> TransformError:
        node = self._first_error(root) or root
        if node.is_missing:
            return self._error(f"Missing {node.type!r}", node)
        snippet = self._text(node).strip().split("\n")[0][:30]
        if not snippet:
            return self._error("Unexpected end of input", node)
        return self._error(f"Unexpected {snippet!r}", node)

    def _first_error(self, node: Node) -> Optional[Node]:
        if node.type == "ERROR" or node.is_missing:
            return node
        for child in node.children:
            if child.has_error or child.is_missing:
                found = self._first_error(child)
                if found is not None:
                    return found
        return None

    def _top_level_names(self, root: Node) -> List[str]:
        names: List[str] = []
        for statement in root.named_children:
            if statement.type in DECLARATION_NODES:
                name = statement.child_by_field_name("name")
                if name is not None:
                    names.append(self._text(name))
            elif statement.type in ("lexical_declaration", "variable_declaration"):
                for declarator in statement.named_children:
                    if declarator.type != "variable_declarator":
                        continue
                    name = declarator.child_by_field_name("name")
                    if name is not None and name.type == "identifier":
                        names.append(self._text(name))
        return names

    @staticmethod
    def _has_token(node: Node, tokens) -> bool:
        return any(not child.is_named and child.type in tokens for child in node.children)

    # ----- JavaScript / TypeScript -------------------------------------------

    def _emit(self, node: Node) -> str:
        kind = node.type
        if kind in TYPE_ONLY_NODES:
            return self._blank(node)
        if kind in CAST_NODES:
            return self._pad(node, self._emit(node.named_children[0]))
        if kind in JSX_NODES:
            return self._pad(node, self._jsx(node))
        if kind == "enum_declaration":
            return self._pad(node, self._enum(node))
        if kind == "public_field_definition" and self._has_token(node, ("abstract", "declare")):
            return self._blank(node)
        if not node.children:
            return self._text(node)

        skip = MODIFIER_TOKENS if kind in MODIFIED_NODES else frozenset()
        out = []
        pos = node.start_byte
        for child in node.children:
            out.append(self._slice(pos, child.start_byte))
            if child.is_named or child.type not in skip:
                out.append(self._emit(child))
            pos = child.end_byte
        out.append(self._slice(pos, node.end_byte))
        return "".join(out)

    def _enum(self, node: Node) -> str:
        """`enum E { A, B = 5 }` -> object with name -> value and value -> name entries."""
        name = self._text(node.child_by_field_name("name"))
        statements = [f"var {name} = {{}};"]
        next_value: Optional[Union[int, float]] = 0
        previous: Optional[str] = None

        for member in node.child_by_field_name("body").named_children:
            if member.type == "comment":
                continue
            if member.type == "enum_assignment":
                parts = [c for c in member.named_children if c.type != "comment"]
                key_node, value_node = parts[0], parts[-1]
            else:
                key_node, value_node = member, None

            key_text = self._text(key_node)
            key = json.dumps(key_text[1:-1] if key_node.type == "string" else key_text)

            if value_node is not None and value_node.type in ("string", "template_string"):
                statements.append(f"{name}[{key}] = {self._emit(value_node)};")
                next_value, previous = None, None
                continue

            if value_node is not None:
                value = self._emit(value_node)
                literal = _number(self._text(value_node))
                next_value = None if literal is None else literal + 1
            elif next_value is not None:
                value = str(next_value)
                next_value += 1
            elif previous is not None:
                value = f"{name}[{previous}] + 1"
            else:
                raise self._error("Enum member must have initializer", member)

            statements.append(f"{name}[{name}[{key}] = {value}] = {key};")
            previous = key
        return " ".join(statements)

    # ----- JSX ---------------------------------------------------------------

    def _jsx(self, node: Node) -> str:
        if node.type == "jsx_self_closing_element":
            return self._jsx_call(self._jsx_type(node), self._jsx_props(node), [])

        if node.type == "jsx_fragment":
            tokens = [c for c in node.children if not c.is_named]
            children = self._jsx_children(node, tokens[1].end_byte, tokens[-3].start_byte)
            return self._jsx_call(self.fragment, "null", children)

        opening, closing = node.children[0], node.children[-1]
        open_name = opening.child_by_field_name("name")
        close_name = closing.child_by_field_name("name")
        open_text = self._text(open_name) if open_name is not None else ""
        close_text = self._text(close_name) if close_name is not None else ""
        if open_text != close_text:
            raise self._error(f"Expected corresponding JSX closing tag for <{open_text}>", closing)

        children = self._jsx_children(node, opening.end_byte, closing.start_byte)
        if open_name is None:
            return self._jsx_call(self.fragment, "null", children)
        return self._jsx_call(self._jsx_type(opening), self._jsx_props(opening), children)

    def _jsx_call(self, type_: str, props: str, children: List[str]) -> str:
        return f"{self.factory}({', '.join([type_, props] + children)})"

    def _jsx_type(self, element: Node) -> str:
        """Intrinsic tags become strings, everything else a reference."""
        name = self._text(element.child_by_field_name("name"))
        if "." not in name and (name[:1].islower() or "-" in name or ":" in name):
            return json.dumps(name)
        return name

    def _jsx_props(self, element: Node) -> str:
        props = []
        for child in element.named_children:
            if child.type == "jsx_expression":
                spread = self._jsx_expression(child)
                if spread is not None:
                    props.append(spread)
            elif child.type == "jsx_attribute":
                props.append(self._jsx_attribute(child))
        return "{" + ", ".join(props) + "}" if props else "null"

    def _jsx_attribute(self, attribute: Node) -> str:
        parts = [c for c in attribute.named_children if c.type != "comment"]
        key = json.dumps(self._text(parts[0]))
        if len(parts) == 1:
            return f"{key}: true"

        value = parts[-1]
        if value.type == "string":
            return f"{key}: {json.dumps(html.unescape(self._text(value)[1:-1]))}"
        if value.type == "jsx_expression":
            expression = self._jsx_expression(value)
            if expression is None:
                raise self._error("JSX attributes must only be assigned a non-empty expression", value)
            return f"{key}: {expression}"
        return f"{key}: {self._jsx(value)}"

    def _jsx_expression(self, container: Node) -> Optional[str]:
        """`{expr}` -> compiled expr; None for `{}` and `{/* comment */}`."""
        inner = [c for c in container.named_children if c.type != "comment"]
        if not inner:
            return None
        return self._emit(inner[0])

    def _jsx_children(self, node: Node, start: int, end: int) -> List[str]:
        """Compile the children between the opening and closing tags."""
        children: List[str] = []
        pos = start
        for child in node.named_children:
            if child.start_byte < start or child.end_byte > end:
                continue
            if child.type == "jsx_expression":
                self._jsx_text(pos, child.start_byte, children)
                expression = self._jsx_expression(child)
                if expression is not None:
                    children.append(expression)
                pos = child.end_byte
            elif child.type in JSX_NODES:
                self._jsx_text(pos, child.start_byte, children)
                children.append(self._jsx(child))
                pos = child.end_byte
        self._jsx_text(pos, end, children)
        return children

    def _jsx_text(self, start: int, end: int, children: List[str]) -> None:
        text = clean_jsx_text(self._slice(start, end))
        if text:
            children.append(json.dumps(html.unescape(text)))


def compile_jsx(source: str, factory: str = "__jsx", fragment: str = "__Fragment") -> str:
    """Compile source text, see JSXCompiler."""
    return JSXCompiler(source, factory=factory, fragment=fragment).compile()
