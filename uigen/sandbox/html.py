"""
HTML projection of a rendered UI tree, for the host's preview pane.
"""

import html
import re
from typing import Any, List, Union

from uigen.schemas import RenderedNode


VOID_ELEMENTS = frozenset({
    "area", "base", "br", "col", "embed", "hr", "img", "input", "link",
    "meta", "source", "track", "wbr",
})

ATTRIBUTE_ALIASES = {
    "className": "class",
    "htmlFor": "for",
    "tabIndex": "tabindex",
    "readOnly": "readonly",
    "autoFocus": "autofocus",
    "autoComplete": "autocomplete",
    "maxLength": "maxlength",
    "minLength": "minlength",
    "colSpan": "colspan",
    "rowSpan": "rowspan",
    "defaultValue": "value",
    "defaultChecked": "checked",
    "strokeWidth": "stroke-width",
}

UNITLESS_STYLES = frozenset({
    "flex", "flexGrow", "flexShrink", "fontWeight", "lineHeight", "opacity",
    "order", "zIndex", "zoom", "gridRow", "gridColumn",
})

# Dropped together with their children
BLOCKED_ELEMENTS = frozenset({
    "script", "style", "iframe", "frame", "frameset", "object", "embed",
    "base", "link", "meta", "noscript", "template", "animate", "set",
})

BLOCKED_ATTRIBUTES = frozenset({"srcdoc", "formaction", "dangerouslysetinnerhtml"})

URL_ATTRIBUTES = frozenset({"href", "src", "action", "xlink:href", "poster", "background", "cite", "data"})
UNSAFE_SCHEMES = ("javascript:", "vbscript:", "data:")

SAFE_ATTR_RE = re.compile(r"^[A-Za-z_:][\w:.\-]*$")
CAMEL_RE = re.compile(r"([A-Z])")
URL_NOISE_RE = re.compile(r"[\x00-\x20]+")


def _is_stub(node: RenderedNode) -> bool:
    return node.type[:1].isupper()


def style_to_css(style: Any) -> str:
    """{"fontSize": 12, "marginTop": "1rem"} -> "font-size:12px;margin-top:1rem" """
    if isinstance(style, str):
        return style
    if not isinstance(style, dict):
        return ""
    rules = []
    for name, value in style.items():
        if value is None or value == "" or isinstance(value, bool):
            continue
        prop = name if name.startswith("--") else CAMEL_RE.sub(r"-\1", name).lower()
        if isinstance(value, (int, float)) and value != 0 and name not in UNITLESS_STYLES:
            value = f"{value}px"
        rules.append(f"{prop}:{value}")
    return ";".join(rules)


def _unsafe_url(value: Any) -> bool:
    """Browsers ignore whitespace and control characters inside a scheme."""
    cleaned = URL_NOISE_RE.sub("", str(value)).lower()
    return cleaned.startswith(UNSAFE_SCHEMES)


def _attributes(node: RenderedNode) -> str:
    parts: List[str] = []
    if _is_stub(node):
        kind = "data-icon" if "data-icon" in node.props else "data-component"
        parts.append(f'{kind}="{html.escape(node.type)}"')

    for name, value in node.props.items():
        if name in ("data-icon", "key", "ref"):
            continue
        attr = ATTRIBUTE_ALIASES.get(name, name)
        lowered = attr.lower()
        if not SAFE_ATTR_RE.match(attr) or lowered.startswith("on") or lowered in BLOCKED_ATTRIBUTES:
            continue
        if lowered in URL_ATTRIBUTES and _unsafe_url(value):
            continue
        if name == "style":
            css = style_to_css(value)
            if css:
                parts.append(f'style="{html.escape(css)}"')
            continue
        if value is True:
            parts.append(attr)
        elif value is False or value is None:
            continue
        elif isinstance(value, (dict, list)):
            continue
        else:
            parts.append(f'{attr}="{html.escape(str(value))}"')
    return (" " + " ".join(parts)) if parts else ""


def to_html(node: Union[RenderedNode, str]) -> str:
    """
    Render a RenderedNode tree to escaped HTML.

    Host tags map to themselves, capability stubs become
    `<div data-component="Button">` (icons `<span data-icon="Plus">`) and
    "#fragment" nodes contribute only their children. Scripts, frames and
    other active elements are dropped, as are event handlers, raw-HTML
    props and javascript:/data: URLs.
    """
    if isinstance(node, str):
        return html.escape(node)
    if not _is_stub(node) and node.type.lower() in BLOCKED_ELEMENTS:
        return ""

    inner = "".join(to_html(child) for child in node.children)
    if node.type == "#fragment":
        return inner

    if _is_stub(node):
        tag = "span" if "data-icon" in node.props else "div"
    else:
        tag = node.type if SAFE_ATTR_RE.match(node.type) else "div"

    attrs = _attributes(node)
    if tag in VOID_ELEMENTS:
        return f"<{tag}{attrs} />"
    return f"<{tag}{attrs}>{inner}</{tag}>"
