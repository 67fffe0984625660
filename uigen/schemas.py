"""
Pydantic schemas for render and install results.
"""

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field


class RenderedNode(BaseModel):
    """One node of a rendered UI tree: a host element or a capability stub."""
    type: str = Field(..., description="Tag name ('div'), stub name ('Button') or '#fragment'")
    props: Dict[str, Any] = Field(default_factory=dict, description="Serializable props, children excluded")
    children: List[Union[str, "RenderedNode"]] = Field(
        default_factory=list, description="Child nodes and text"
    )

    def find_all(self, type_: str) -> List["RenderedNode"]:
        """Every node in this subtree (self included) with the given type, in document order."""
        found = [self] if self.type == type_ else []
        for child in self.children:
            if isinstance(child, RenderedNode):
                found.extend(child.find_all(type_))
        return found

    def text(self) -> str:
        """Concatenated text content of this subtree."""
        return "".join(
            child if isinstance(child, str) else child.text() for child in self.children
        )


RenderedNode.model_rebuild()


class RenderSuccess(BaseModel):
    """The sandboxed code produced something displayable."""
    status: Literal["success"] = "success"
    kind: Literal["element", "component", "value", "empty"] = Field(
        ..., description="What the evaluated code produced"
    )
    rendered: RenderedNode = Field(..., description="Root of the rendered tree")
    logs: List[str] = Field(default_factory=list, description="Captured console output")

    @property
    def ok(self) -> bool:
        return True


class RenderFailure(BaseModel):
    """Transforming or executing the code failed; nothing to display."""
    status: Literal["failure"] = "failure"
    message: str = Field(..., description="Diagnostic message for the error banner")
    error_type: Literal["transform", "execution", "capability_missing", "timeout", "resource"] = Field(
        "execution", description="Which stage failed"
    )
    missing_capability: Optional[str] = Field(
        None, description="Name absent from the capability map, when that caused the failure"
    )
    logs: List[str] = Field(default_factory=list, description="Console output captured before the failure")

    @property
    def ok(self) -> bool:
        return False


RenderResult = Annotated[Union[RenderSuccess, RenderFailure], Field(discriminator="status")]


class InstalledPackage(BaseModel):
    """A package reported by an install run."""
    name: str = Field(..., description="npm package name")
    version: str = Field("latest", description="Version range that was installed")
    type: Literal["dependency", "devDependency"] = Field("dependency", description="package.json section")


class InstallReport(BaseModel):
    """Outcome of installing a set of detected packages."""
    success: bool = Field(..., description="True when every package installed")
    mode: Literal["simulate", "docker"] = Field(..., description="How the install was performed")
    installed: List[InstalledPackage] = Field(default_factory=list, description="Packages installed")
    errors: List[str] = Field(default_factory=list, description="Per-package or tool errors")
    message: str = Field("", description="Human-readable summary")

    @property
    def installed_count(self) -> int:
        return len(self.installed)
