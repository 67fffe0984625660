"""
Data models for package detection.
"""

from dataclasses import dataclass, field
from typing import Dict, Literal, Tuple


DetectionSource = Literal["import", "pattern"]


@dataclass(frozen=True)
class PackageRecord:
    """A known npm package and the source patterns that reveal its use."""
    name: str
    version: str
    description: str
    dev: bool = False
    patterns: Tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict:
        """Convert to the registry JSON shape (name is the key, not a field)."""
        data = {
            "version": self.version,
            "description": self.description,
            "patterns": list(self.patterns),
        }
        if self.dev:
            data["dev"] = True
        return data

    @classmethod
    def from_dict(cls, name: str, data: Dict) -> "PackageRecord":
        """Create from a registry JSON entry."""
        return cls(
            name=name,
            version=data.get("version", "latest"),
            description=data.get("description", ""),
            dev=bool(data.get("dev", False)),
            patterns=tuple(data.get("patterns", ())),
        )


@dataclass(frozen=True)
class DetectedPackage:
    """A package inferred from one piece of generated source."""
    name: str
    version: str
    description: str
    source: DetectionSource
    dev: bool = False

    @property
    def dependency_type(self) -> str:
        """package.json section this package belongs in."""
        return "devDependency" if self.dev else "dependency"

    def to_dict(self) -> Dict:
        """Convert to dictionary for serialization."""
        return {
            "name": self.name,
            "version": self.version,
            "dev": self.dev,
            "description": self.description,
            "source": self.source,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "DetectedPackage":
        """Create from dictionary."""
        return cls(
            name=data["name"],
            version=data.get("version", "latest"),
            description=data.get("description", ""),
            source=data.get("source", "import"),
            dev=bool(data.get("dev", False)),
        )
