"""
Sandbox Renderer - evaluate generated UI code and return a RenderResult.

Pipeline:
1. transform_source: module text -> function body
2. build_program:    body + capability map + runtime prelude -> JS program
3. Executor.run:     program -> JSON text (fresh isolate/container per call)
4. interpret:        JSON text -> RenderSuccess | RenderFailure

render() never raises for string input: every failure comes back as a
RenderFailure and is logged.
"""

import json
import re
import time
from typing import Any, List, Mapping, Optional

import structlog
from pydantic import ValidationError

from uigen.errors import ExecutionError, SandboxResourceError, SandboxTimeout, TransformError
from uigen.sandbox.executor import (
    DEFAULT_MAX_MEMORY,
    DEFAULT_TIMEOUT_MS,
    Executor,
    get_executor,
)
from uigen.sandbox.library import normalize_library
from uigen.sandbox.runtime import build_program
from uigen.sandbox.transform import transform_source
from uigen.schemas import RenderedNode, RenderFailure, RenderResult, RenderSuccess

log = structlog.get_logger("uigen.sandbox")


# =============================================================================
# CONSTANTS
# =============================================================================

MISSING_NAME_RE = re.compile(r"^([A-Za-z_$][\w$]*) is not defined$")

EMPTY_NODE = RenderedNode(
    type="div",
    props={"className": "p-8 text-center text-gray-400"},
    children=["No code to render"],
)


# =============================================================================
# RESULT INTERPRETATION
# =============================================================================

def interpret_output(output: str) -> RenderResult:
    """
    Turn the program's JSON output into a RenderResult.

    Error mapping:
    - ReferenceError "X is not defined" -> capability_missing (X)
    - SyntaxError while compiling the body -> transform
    - anything else thrown -> execution
    """
    try:
        data = json.loads(output)
    except (TypeError, ValueError) as e:
        return RenderFailure(message=f"Sandbox produced unreadable output: {e}", error_type="execution")
    if not isinstance(data, dict):
        return RenderFailure(message="Sandbox produced unreadable output", error_type="execution")

    logs: List[str] = [str(line) for line in data.get("logs", [])]

    if data.get("status") == "ok":
        try:
            return RenderSuccess(
                kind=data["kind"],
                rendered=RenderedNode.model_validate(data["tree"]),
                logs=logs,
            )
        except (KeyError, ValidationError) as e:
            return RenderFailure(message=f"Sandbox produced an invalid tree: {e}", error_type="execution", logs=logs)

    name = data.get("name") or "Error"
    message = data.get("message") or ""
    phase = data.get("phase")

    missing = MISSING_NAME_RE.match(message) if name == "ReferenceError" else None
    if missing:
        return RenderFailure(
            message=f"{name}: {message}",
            error_type="capability_missing",
            missing_capability=missing.group(1),
            logs=logs,
        )
    if phase == "compile" and name == "SyntaxError":
        return RenderFailure(message=f"{name}: {message}", error_type="transform", logs=logs)
    return RenderFailure(message=f"{name}: {message}", error_type="execution", logs=logs)


# =============================================================================
# RENDERER
# =============================================================================

class SandboxRenderer:
    """Renders generated code in a fresh sandbox per call."""

    def __init__(
        self,
        executor: Optional[Executor] = None,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        max_memory: int = DEFAULT_MAX_MEMORY,
    ):
        self.executor = executor if executor is not None else get_executor()
        self.timeout_ms = timeout_ms
        self.max_memory = max_memory

    @classmethod
    def from_config(cls) -> "SandboxRenderer":
        """Renderer using UIGEN_RENDER_BACKEND / _TIMEOUT_MS / _MAX_MEMORY_MB."""
        from uigen.config import get_config
        config = get_config()
        return cls(
            executor=get_executor(config.render_backend, config.sandbox_image),
            timeout_ms=config.render_timeout_ms,
            max_memory=config.render_max_memory,
        )

    def render(self, source: str, component_library: Optional[Mapping[str, Any]] = None) -> RenderResult:
        """
        Evaluate source with the given capabilities and render its result.

        Args:
            source: Generated module text
            component_library: name -> Capability (or plain JSON value);
                the default preview library when None

        Returns:
            RenderSuccess or RenderFailure
        """
        if not isinstance(source, str):
            raise TypeError(f"source must be a str, not {type(source).__name__}")

        if not source.strip():
            return RenderSuccess(kind="empty", rendered=EMPTY_NODE.model_copy(deep=True))

        started = time.monotonic()
        result = self._render(source, component_library)
        elapsed_ms = int((time.monotonic() - started) * 1000)

        if result.ok:
            log.info("render.completed", kind=result.kind, backend=self.executor.name,
                     elapsed_ms=elapsed_ms, logs=len(result.logs))
        else:
            log.warning("render.failed", error_type=result.error_type, message=result.message,
                        missing_capability=result.missing_capability,
                        backend=self.executor.name, elapsed_ms=elapsed_ms)
        return result

    def _render(self, source: str, component_library: Optional[Mapping[str, Any]]) -> RenderResult:
        try:
            library = normalize_library(component_library)
        except ValueError as e:
            return RenderFailure(message=str(e), error_type="execution")

        try:
            unit = transform_source(source, library.keys())
        except TransformError as e:
            return RenderFailure(message=str(e), error_type="transform")

        program = build_program(unit, library)

        try:
            output = self.executor.run(program, timeout_ms=self.timeout_ms, max_memory=self.max_memory)
        except SandboxTimeout as e:
            return RenderFailure(message=str(e), error_type="timeout")
        except SandboxResourceError as e:
            return RenderFailure(message=str(e), error_type="resource")
        except ExecutionError as e:
            return RenderFailure(message=str(e), error_type="execution")

        return interpret_output(output)


# =============================================================================
# MODULE API
# =============================================================================

def render(source: str, component_library: Optional[Mapping[str, Any]] = None) -> RenderResult:
    """
    Render source with the configured backend and the given (or default) capabilities.

    Configuration problems come back as an execution RenderFailure.
    """
    from uigen.config import ConfigError
    try:
        renderer = SandboxRenderer.from_config()
    except (ConfigError, ValueError) as e:
        log.error("render.config_invalid", error=str(e))
        return RenderFailure(message=str(e), error_type="execution")
    return renderer.render(source, component_library)
