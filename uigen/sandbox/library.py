"""
Capabilities - the names a preview snippet can use without importing them.

A capability is the JavaScript expression that produces the value inside the
sandbox. The runtime prelude (uigen.sandbox.runtime) defines the helpers the
expressions refer to: React, __stub, __icon.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from uigen.sandbox.jsx import IDENT_RE


# =============================================================================
# CONSTANTS
# =============================================================================

HOOKS = (
    "useState", "useEffect", "useLayoutEffect", "useInsertionEffect", "useMemo",
    "useCallback", "useRef", "useContext", "useReducer", "useId",
    "useTransition", "useDeferredValue", "useImperativeHandle",
    "useSyncExternalStore", "useDebugValue",
)

# shadcn/ui primitives available in the live preview
UI_COMPONENTS = (
    "Card", "CardContent", "CardHeader", "CardTitle", "CardDescription", "CardFooter",
    "Alert", "AlertDescription", "AlertTitle",
    "Badge", "Button", "Input", "Label", "Textarea",
    "Tabs", "TabsContent", "TabsList", "TabsTrigger",
    "ScrollArea",
    "Dialog", "DialogContent", "DialogHeader", "DialogTitle", "DialogTrigger",
    "DialogDescription", "DialogFooter",
)

# lucide-react icons available in the live preview
ICONS = (
    "ChevronDown", "ChevronUp", "ChevronLeft", "ChevronRight",
    "Plus", "Minus", "X", "Check", "Search", "Settings", "User", "Home",
    "Mail", "Phone", "Calendar", "Clock", "Star", "Heart", "ThumbsUp",
    "Share", "Download", "Upload", "Edit", "Trash", "Eye", "EyeOff",
    "Lock", "Unlock", "Bell", "Menu", "MoreHorizontal", "MoreVertical",
    "ArrowUp", "ArrowDown", "ArrowLeft", "ArrowRight", "ExternalLink",
    "Copy", "Clipboard", "FileText", "Folder", "Image", "Video", "Music",
    "Code", "Terminal", "Database", "Server", "Globe", "Wifi", "Bluetooth",
    "Battery", "Zap", "Sun", "Moon", "Cloud", "Umbrella",
)

CN_SOURCE = (
    "function cn() { return Array.prototype.slice.call(arguments)"
    ".filter(Boolean).join(\" \"); }"
)


# =============================================================================
# CAPABILITY
# =============================================================================

@dataclass(frozen=True)
class Capability:
    """A value made available to sandboxed code, as a JavaScript expression."""
    kind: str
    source: str

    @classmethod
    def component(cls, name: str) -> "Capability":
        """Stub component rendering a host node named `name` with its props and children."""
        _check_name(name)
        return cls("component", f"__stub({json.dumps(name)})")

    @classmethod
    def icon(cls, name: str) -> "Capability":
        """Self-closing icon node named `name`."""
        _check_name(name)
        return cls("icon", f"__icon({json.dumps(name)})")

    @classmethod
    def hook(cls, name: str) -> "Capability":
        """One of the runtime's React hooks."""
        if name not in HOOKS:
            raise ValueError(f"Unknown hook: {name!r}")
        return cls("hook", f"React.{name}")

    @classmethod
    def value(cls, obj: Any) -> "Capability":
        """JSON-serializable data."""
        try:
            source = json.dumps(obj)
        except (TypeError, ValueError) as e:
            raise ValueError(f"Capability value is not JSON-serializable: {e}") from e
        return cls("value", source)

    @classmethod
    def script(cls, source: str) -> "Capability":
        """Raw JavaScript expression, evaluated once per render."""
        if not source.strip():
            raise ValueError("Capability script is empty")
        return cls("script", f"({source})")


def _check_name(name: str) -> None:
    if not IDENT_RE.fullmatch(name or ""):
        raise ValueError(f"Invalid component name: {name!r}")


def as_capability(value: Any) -> Capability:
    """Capabilities pass through; plain Python values become Capability.value."""
    if isinstance(value, Capability):
        return value
    return Capability.value(value)


def normalize_library(library: Optional[Mapping[str, Any]]) -> Dict[str, Capability]:
    """Convert a name -> capability/value mapping into name -> Capability."""
    if library is None:
        return default_component_library()
    return {name: as_capability(value) for name, value in library.items()}


def default_component_library() -> Dict[str, Capability]:
    """
    The capability map of the live preview.

    React and its common hooks, the shadcn/ui primitives as stub components,
    the lucide icons and the `cn` class-name helper.
    """
    library: Dict[str, Capability] = {"React": Capability.script("React")}
    for name in ("useState", "useEffect", "useMemo", "useCallback", "useRef",
                 "useContext", "useReducer", "useId"):
        library[name] = Capability.hook(name)
    for name in UI_COMPONENTS:
        library[name] = Capability.component(name)
    for name in ICONS:
        library[name] = Capability.icon(name)
    library["cn"] = Capability.script(CN_SOURCE)
    return library
