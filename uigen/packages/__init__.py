"""
Package detection: infer the npm packages generated source needs.

Components:
- registry: the static table of known packages and detection patterns
- detector: import-statement and pattern passes over source text
- installer: simulated or containerised install of detected packages
"""

from uigen.packages.detector import PackageDetector, detect_packages
from uigen.packages.installer import PackageInstaller, build_package_manifest, get_installer
from uigen.packages.models import DetectedPackage, PackageRecord
from uigen.packages.registry import (
    DEFAULT_PACKAGES,
    DEFAULT_REGISTRY,
    PackageRegistry,
    load_registry,
)

__all__ = [
    # Detector
    "PackageDetector",
    "detect_packages",
    # Models
    "DetectedPackage",
    "PackageRecord",
    # Registry
    "DEFAULT_PACKAGES",
    "DEFAULT_REGISTRY",
    "PackageRegistry",
    "load_registry",
    # Installer
    "PackageInstaller",
    "build_package_manifest",
    "get_installer",
]
