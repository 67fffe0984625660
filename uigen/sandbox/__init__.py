"""
Sandbox module for previewing generated UI code in an isolated runtime.

Components:
- transform / jsx: module text -> executable function body
- library: capabilities (components, icons, hooks, values) exposed to the code
- runtime: the JavaScript program run for one render
- executor: fresh V8 isolate (default) or node container per render
- renderer: the render() pipeline returning RenderSuccess | RenderFailure
- html: static HTML projection of a rendered tree
"""

from uigen.sandbox.executor import DockerExecutor, Executor, IsolateExecutor, get_executor
from uigen.sandbox.html import to_html
from uigen.sandbox.library import Capability, default_component_library
from uigen.sandbox.renderer import SandboxRenderer, render
from uigen.sandbox.transform import TransformedUnit, transform_source

__all__ = [
    # Renderer
    "SandboxRenderer",
    "render",
    # Transform
    "TransformedUnit",
    "transform_source",
    # Capabilities
    "Capability",
    "default_component_library",
    # Executors
    "Executor",
    "IsolateExecutor",
    "DockerExecutor",
    "get_executor",
    # HTML
    "to_html",
]
