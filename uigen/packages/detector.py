"""
Dependency Detector - infer which npm packages a piece of generated source needs.

Two independent passes over the raw text:
1. Import pass: ES `import ... from "<module>"` and CommonJS `require("<module>")`
2. Pattern pass: every registry record's detection patterns, in registry order

Results are concatenated (imports first) and de-duplicated by name, keeping
the first occurrence. Detection is a pure function of the text and the
registry: no I/O, no shared mutable state.
"""

import re
from typing import Iterator, List, Optional

import structlog

from uigen.packages.models import DetectedPackage
from uigen.packages.registry import DEFAULT_REGISTRY, PackageRegistry

log = structlog.get_logger("uigen.packages")


# =============================================================================
# CONSTANTS
# =============================================================================

# `import X from "m"`, `import { a,\n b } from 'm'`, `import type T from "m"`
IMPORT_RE = re.compile(r"""\bimport\s+[^;'"`]*?\bfrom\s*(['"])([^'"\n]+)\1""")

# `require("m")`
REQUIRE_RE = re.compile(r"""\brequire\s*\(\s*(['"])([^'"\n]+)\1\s*\)""")

# Node.js built-in modules: never reported as packages
BUILTIN_MODULES = frozenset({
    "fs", "path", "http", "https", "url", "crypto", "os", "util", "events",
    "stream", "buffer", "child_process", "cluster", "net", "dns", "readline",
    "zlib", "querystring", "assert", "vm",
})

UNKNOWN_VERSION = "latest"
UNKNOWN_DESCRIPTION = "Package detected from imports"


# =============================================================================
# HELPERS
# =============================================================================

def iter_module_specifiers(source: str) -> Iterator[str]:
    """Yield every imported/required module specifier in source order."""
    hits = [(m.start(), m.group(2)) for m in IMPORT_RE.finditer(source)]
    hits.extend((m.start(), m.group(2)) for m in REQUIRE_RE.finditer(source))
    hits.sort(key=lambda hit: hit[0])
    for _, specifier in hits:
        yield specifier.strip()


def is_external_specifier(specifier: str) -> bool:
    """False for relative/absolute paths, `@/` and `~/` path aliases and Node.js built-ins."""
    # `@/` and `~/` are bundler aliases for project files; npm scopes always name a scope (`@scope/pkg`)
    if not specifier or specifier.startswith((".", "/", "@/", "~/", "node:")):
        return False
    return specifier not in BUILTIN_MODULES


def base_package_name(specifier: str) -> str:
    """
    Collapse a module specifier to its package name.

    `@scope/name/sub` -> `@scope/name`; `lodash/debounce` -> `lodash`.
    """
    parts = specifier.split("/")
    if specifier.startswith("@"):
        return "/".join(parts[:2])
    return parts[0]


# =============================================================================
# DETECTOR
# =============================================================================

class PackageDetector:
    """Maps source text to the ordered, unique list of packages it appears to use."""

    def __init__(self, registry: PackageRegistry = DEFAULT_REGISTRY):
        self.registry = registry

    def detect(self, source: str) -> List[DetectedPackage]:
        """
        Detect required packages in `source`.

        Args:
            source: Arbitrary text, usually generated React/TypeScript code

        Returns:
            Import-pass detections (source order) followed by pattern-pass
            detections (registry order), unique by name

        Raises:
            TypeError: If `source` is not a string
        """
        if not isinstance(source, str):
            raise TypeError(f"source must be a str, not {type(source).__name__}")

        from_imports = self.detect_from_imports(source)
        from_patterns = self.detect_from_patterns(source)

        unique: List[DetectedPackage] = []
        seen = set()
        for pkg in from_imports + from_patterns:
            if pkg.name in seen:
                continue
            seen.add(pkg.name)
            unique.append(pkg)

        log.debug(
            "packages.detected",
            total=len(unique),
            imports=len(from_imports),
            patterns=len(from_patterns),
        )
        return unique

    def detect_from_imports(self, source: str) -> List[DetectedPackage]:
        """Import-statement pass. May contain duplicates; `detect` removes them."""
        packages: List[DetectedPackage] = []
        for specifier in iter_module_specifiers(source):
            if not is_external_specifier(specifier):
                continue

            name = base_package_name(specifier)
            record = self.registry.get(name)
            if record is not None:
                packages.append(DetectedPackage(
                    name=name,
                    version=record.version,
                    description=record.description,
                    dev=record.dev,
                    source="import",
                ))
            else:
                # Unknown packages are still reported, with placeholder metadata
                packages.append(DetectedPackage(
                    name=name,
                    version=UNKNOWN_VERSION,
                    description=UNKNOWN_DESCRIPTION,
                    dev=False,
                    source="import",
                ))
        return packages

    def detect_from_patterns(self, source: str) -> List[DetectedPackage]:
        """Pattern pass: one detection per record, on its first matching pattern."""
        packages: List[DetectedPackage] = []
        for record in self.registry:
            for pattern in record.patterns:
                if re.search(pattern, source):
                    packages.append(DetectedPackage(
                        name=record.name,
                        version=record.version,
                        description=record.description,
                        dev=record.dev,
                        source="pattern",
                    ))
                    break
        return packages


_default_detector = PackageDetector()


def detect_packages(source: str, registry: Optional[PackageRegistry] = None) -> List[DetectedPackage]:
    """Detect packages with the given registry, or the built-in one."""
    if registry is None:
        return _default_detector.detect(source)
    return PackageDetector(registry).detect(source)
