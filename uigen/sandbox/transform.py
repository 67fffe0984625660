"""
Source transform - turn generated module text into a function body.

Steps:
0. Strip Markdown fences, normalise line endings, drop directive prologue
1. Strip import statements
2. Rewrite exports (default export becomes the returned value)
3. Erase TypeScript syntax and compile JSX (uigen.sandbox.jsx)
4. Prefix the capability destructuring
"""

import re
from dataclasses import dataclass
from typing import Iterable, Tuple

from uigen.errors import TransformError
from uigen.sandbox.jsx import IDENT_RE, JSXCompiler
from uigen.utils import extract_code_block


# =============================================================================
# CONSTANTS
# =============================================================================

FACTORY = "__jsx"
FRAGMENT = "__Fragment"
LIBRARY_PARAM = "__library"

DIRECTIVE_RE = re.compile(r"""\A(?:\s*(['"])use [\w ]+\1\s*;?)+""")

IMPORT_STMT_RE = re.compile(
    r"""^[^\S\n]*import\s+(?:type\s+)?(?:[\w$*{}\s,]+?\s*from\s*)?(['"])[^'"\n]*\1[^\S\n]*;?""",
    re.MULTILINE,
)
EXPORT_DEFAULT_RE = re.compile(r"^([^\S\n]*)export\s+default\s+", re.MULTILINE)
EXPORT_DEFAULT_DECL_RE = re.compile(
    r"^([^\S\n]*)export\s+default\s+((?:async\s+)?function\s*\*?\s*([A-Za-z_$][\w$]*)|(?:abstract\s+)?class\s+([A-Za-z_$][\w$]*))",
    re.MULTILINE,
)
EXPORT_DECL_RE = re.compile(
    r"^([^\S\n]*)export\s+(?=(?:async\s+|declare\s+|abstract\s+)*(?:function|class|const|let|var|interface|type|enum)\b)",
    re.MULTILINE,
)
EXPORT_LIST_RE = re.compile(
    r"""^[^\S\n]*export\s+(?:type\s+)?(?:\*(?:\s+as\s+[\w$]+)?|\{[^}]*\})(?:\s*from\s*(['"])[^'"\n]*\1)?[^\S\n]*;?""",
    re.MULTILINE,
)

# Words that cannot be destructured as capability names
RESERVED_WORDS = frozenset({
    "arguments", "await", "break", "case", "catch", "class", "const", "continue",
    "debugger", "default", "delete", "do", "else", "enum", "eval", "export",
    "extends", "false", "finally", "for", "function", "if", "implements",
    "import", "in", "instanceof", "interface", "let", "new", "null", "package",
    "private", "protected", "public", "return", "static", "super", "switch",
    "this", "throw", "true", "try", "typeof", "var", "void", "while", "with",
    "yield",
})


# =============================================================================
# DATA CLASSES
# =============================================================================

@dataclass(frozen=True)
class TransformedUnit:
    """The executable form of one generated snippet."""
    body: str
    capability_names: Tuple[str, ...] = ()
    declared: Tuple[str, ...] = ()
    has_default_export: bool = False
    imports_removed: int = 0

    @property
    def function_source(self) -> str:
        """The body wrapped as a one-parameter function expression."""
        return f"function ({LIBRARY_PARAM}) {{\n{self.body}\n}}"


# =============================================================================
# STEPS
# =============================================================================

def _blank(match: "re.Match") -> str:
    """Replace a removed statement with its newlines."""
    return "\n" * match.group(0).count("\n")


def normalize_source(source: str) -> str:
    """Strip Markdown fences, CRLF line endings and a leading directive prologue."""
    text = extract_code_block(source).replace("\r\n", "\n").replace("\r", "\n")
    return DIRECTIVE_RE.sub(_blank, text, count=1)


def strip_imports(text: str) -> Tuple[str, int]:
    """Remove every import statement, keeping line numbers. Returns (text, count)."""
    return IMPORT_STMT_RE.subn(_blank, text)


def rewrite_exports(text: str) -> Tuple[str, bool]:
    """
    Rewrite module exports into a function body.

    The first `export default` provides the return value. A named default
    function/class stays a declaration and is returned at the end of the
    body, so code after it still runs. Other exports lose the keyword.
    Without a default export the whole body is returned as an expression.

    Returns:
        (rewritten text, whether a default export was found)
    """
    decl = EXPORT_DEFAULT_DECL_RE.search(text)
    first = EXPORT_DEFAULT_RE.search(text)

    if first is None:
        text = EXPORT_LIST_RE.sub(_blank, text)
        text = EXPORT_DECL_RE.sub(r"\1", text)
        body = text.strip()
        while body.endswith(";"):
            body = body[:-1].rstrip()
        return f"return ({body})", False

    if decl is not None and decl.start() == first.start():
        name = decl.group(3) or decl.group(4)
        text = text[:decl.start()] + decl.group(1) + decl.group(2) + text[decl.end():]
        tail = f"\nreturn {name};"
    else:
        text = text[:first.start()] + first.group(1) + "return " + text[first.end():]
        tail = ""

    # Later default exports are dropped to plain expressions
    text = EXPORT_DEFAULT_RE.sub(r"\1", text)
    text = EXPORT_LIST_RE.sub(_blank, text)
    text = EXPORT_DECL_RE.sub(r"\1", text)
    return text + tail, True


def validate_capability_names(names: Iterable[str]) -> Tuple[str, ...]:
    """Raise TransformError for names that cannot be bound in the function body."""
    result = []
    for name in names:
        if not isinstance(name, str) or not IDENT_RE.fullmatch(name) or name in RESERVED_WORDS:
            raise TransformError(f"Invalid capability name: {name!r}")
        if name in (FACTORY, FRAGMENT, LIBRARY_PARAM):
            continue
        if name not in result:
            result.append(name)
    return tuple(result)


def transform_source(source: str, capability_names: Iterable[str] = ()) -> TransformedUnit:
    """
    Rewrite generated source into the body of `function (__library) { ... }`.

    Args:
        source: Generated module text (TSX/JSX, possibly fenced)
        capability_names: Names made available from the capability map

    Returns:
        TransformedUnit with the executable body

    Raises:
        TransformError: Malformed source or invalid capability name
    """
    names = validate_capability_names(capability_names)

    text = normalize_source(source)
    text, imports_removed = strip_imports(text)
    text, has_default = rewrite_exports(text)

    compiler = JSXCompiler(text, factory=FACTORY, fragment=FRAGMENT)
    compiled = compiler.compile()
    declared = tuple(dict.fromkeys(compiler.declared))

    bound = [FACTORY, FRAGMENT] + [name for name in names if name not in declared]
    prefix = f"const {{ {', '.join(bound)} }} = {LIBRARY_PARAM}; "

    return TransformedUnit(
        body=prefix + compiled,
        capability_names=names,
        declared=declared,
        has_default_export=has_default,
        imports_removed=imports_removed,
    )
