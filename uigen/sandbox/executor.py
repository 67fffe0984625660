"""
Sandbox Executors - run a render program in isolation.

Backends:
- isolate: a fresh in-process V8 isolate (mini-racer) per render. The
  isolate exposes no host objects: no filesystem, network or process.
- docker:  a fresh node container per render, network disabled, program
  mounted read-only, memory/CPU limits and a wall-clock timeout.

Both return the JSON text the program evaluates to and raise the typed
sandbox errors (SandboxTimeout, SandboxResourceError, ExecutionError).
"""

import os
import shutil
import tempfile
from typing import Optional

import structlog
from py_mini_racer import (  # type: ignore[import-not-found]
    JSEvalException,
    JSOOMException,
    JSTimeoutException,
    MiniRacer,
)

try:
    import docker  # type: ignore[import-not-found]
    from docker.errors import ImageNotFound  # type: ignore[import-not-found]
    DOCKER_AVAILABLE = True
except ImportError:
    DOCKER_AVAILABLE = False

from uigen.errors import ExecutionError, SandboxResourceError, SandboxTimeout

log = structlog.get_logger("uigen.sandbox")


# =============================================================================
# CONSTANTS
# =============================================================================

DEFAULT_TIMEOUT_MS = 3000
DEFAULT_MAX_MEMORY = 128 * 1024 * 1024  # bytes

NODE_IMAGE = "node:18-slim"
MAX_CPU = 0.5
CONTAINER_STARTUP_GRACE = 30  # seconds on top of the program timeout
PROGRAM_FILE = "render.js"

# `timeout` (coreutils) exits with 124 when it kills the program
TIMEOUT_EXIT_CODE = 124
OOM_EXIT_CODES = {134, 137}


# =============================================================================
# EXECUTORS
# =============================================================================

class Executor:
    """Runs a render program and returns the JSON text it produces."""
    name = "base"

    def run(self, program: str, timeout_ms: int = DEFAULT_TIMEOUT_MS,
            max_memory: int = DEFAULT_MAX_MEMORY) -> str:
        raise NotImplementedError


class IsolateExecutor(Executor):
    """Evaluate the program in a fresh V8 isolate."""
    name = "isolate"

    def run(self, program: str, timeout_ms: int = DEFAULT_TIMEOUT_MS,
            max_memory: int = DEFAULT_MAX_MEMORY) -> str:
        ctx = MiniRacer()
        try:
            result = ctx.eval(program, timeout=timeout_ms, max_memory=max_memory)
        except JSTimeoutException as e:
            raise SandboxTimeout(f"Render timed out after {timeout_ms} ms") from e
        except JSOOMException as e:
            raise SandboxResourceError(
                f"Render exceeded the memory limit of {max_memory // (1024 * 1024)} MB"
            ) from e
        except JSEvalException as e:
            raise ExecutionError(f"Sandbox program failed: {e}") from e
        finally:
            ctx.close()

        if not isinstance(result, str):
            raise ExecutionError(f"Sandbox program returned {type(result).__name__}, expected JSON text")
        return result


class DockerExecutor(Executor):
    """
    Run the program with node inside a throwaway container.

    Lifecycle:
    1. Write the program to a temp directory
    2. Run node under `timeout` with networking disabled and a read-only mount
    3. Collect stdout (the JSON text) and stderr
    4. Always remove the container and the temp directory
    """
    name = "docker"

    def __init__(self, image: str = NODE_IMAGE):
        self.image = image

    def run(self, program: str, timeout_ms: int = DEFAULT_TIMEOUT_MS,
            max_memory: int = DEFAULT_MAX_MEMORY) -> str:
        if not DOCKER_AVAILABLE:
            raise ExecutionError("Docker Python SDK not installed. Run: pip install docker")

        memory_mb = max(16, max_memory // (1024 * 1024))
        timeout_sec = max(1, -(-timeout_ms // 1000))
        temp_dir = None
        container = None

        try:
            client = docker.from_env()
            client.ping()

            temp_dir = tempfile.mkdtemp(prefix="uigen_render_")
            with open(os.path.join(temp_dir, PROGRAM_FILE), "w", encoding="utf-8") as f:
                f.write(f"process.stdout.write({program});\n")

            try:
                client.images.get(self.image)
            except ImageNotFound:
                client.images.pull(self.image)

            container = client.containers.run(
                image=self.image,
                command=[
                    "timeout", str(timeout_sec),
                    "node", f"--max-old-space-size={memory_mb}", f"/sandbox/{PROGRAM_FILE}",
                ],
                working_dir="/sandbox",
                volumes={temp_dir: {"bind": "/sandbox", "mode": "ro"}},
                mem_limit=f"{memory_mb * 2}m",
                cpu_period=100000,
                cpu_quota=int(100000 * MAX_CPU),
                network_disabled=True,
                detach=True,
                remove=False,
            )

            try:
                status = container.wait(timeout=timeout_sec + CONTAINER_STARTUP_GRACE)
            except Exception as e:
                raise SandboxTimeout(f"Render timed out after {timeout_ms} ms") from e

            exit_code = status.get("StatusCode", -1)
            stdout = container.logs(stdout=True, stderr=False).decode("utf-8", errors="replace")
            stderr = container.logs(stdout=False, stderr=True).decode("utf-8", errors="replace")

            if exit_code == TIMEOUT_EXIT_CODE:
                raise SandboxTimeout(f"Render timed out after {timeout_ms} ms")
            if exit_code in OOM_EXIT_CODES or "heap out of memory" in stderr:
                raise SandboxResourceError(f"Render exceeded the memory limit of {memory_mb} MB")
            if exit_code != 0:
                raise ExecutionError(
                    f"Sandbox program exited with code {exit_code}: {stderr.strip()[-500:]}"
                )
            return stdout

        except ExecutionError:
            raise

        except Exception as e:
            error_message = str(e)
            if "connection refused" in error_message.lower() or "docker daemon" in error_message.lower():
                raise ExecutionError("Docker is not running. Please start Docker and try again.") from e
            raise ExecutionError(f"Docker execution failed: {error_message}") from e

        finally:
            if container is not None:
                try:
                    container.remove(force=True)
                except Exception as e:
                    log.warning("sandbox.cleanup_failed", container=getattr(container, "id", None), error=str(e))
            if temp_dir and os.path.exists(temp_dir):
                shutil.rmtree(temp_dir, ignore_errors=True)


# =============================================================================
# FACTORY
# =============================================================================

def get_executor(backend: Optional[str] = None, image: Optional[str] = None) -> Executor:
    """
    Build the executor for a backend name ("isolate" or "docker").

    Defaults come from the configuration (UIGEN_RENDER_BACKEND, UIGEN_SANDBOX_IMAGE).
    """
    if backend is None or (backend == "docker" and image is None):
        from uigen.config import get_config
        config = get_config()
        backend = backend or config.render_backend
        image = image or config.sandbox_image

    if backend == "isolate":
        return IsolateExecutor()
    if backend == "docker":
        return DockerExecutor(image=image or NODE_IMAGE)
    raise ValueError(f"Unknown render backend: {backend!r}")
