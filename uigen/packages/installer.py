"""
Package Installer - turn a detection result into an install side-effect.

Modes:
- simulate: report every package as installed (no I/O)
- docker:   resolve the packages with `npm install` inside a throwaway
            node container (network enabled, memory/CPU limits, timeout)

The installer never raises for tool failures; they come back as an
InstallReport with success=False.
"""

import json
import os
import shutil
import tempfile
from typing import Dict, Iterable, List, Optional

import structlog

try:
    import docker  # type: ignore[import-not-found]
    from docker.errors import ImageNotFound  # type: ignore[import-not-found]
    DOCKER_AVAILABLE = True
except ImportError:
    DOCKER_AVAILABLE = False

from uigen.packages.models import DetectedPackage
from uigen.schemas import InstalledPackage, InstallReport

log = structlog.get_logger("uigen.packages")


# =============================================================================
# CONSTANTS
# =============================================================================

NODE_IMAGE = "node:18-slim"
INSTALL_TIMEOUT = 120  # seconds
MAX_MEMORY = "512m"
MAX_CPU = 0.5

# Resolve the dependency tree without running lifecycle scripts from the registry
INSTALL_COMMAND = "npm install --package-lock-only --ignore-scripts --no-audit --no-fund"


# =============================================================================
# MANIFEST
# =============================================================================

def build_package_manifest(packages: Iterable[DetectedPackage], name: str = "uigen-preview") -> Dict:
    """
    Build a package.json document for the given packages.

    Args:
        packages: Detected packages (dev packages go to devDependencies)
        name: Package name written into the manifest

    Returns:
        package.json contents as a dict
    """
    dependencies: Dict[str, str] = {}
    dev_dependencies: Dict[str, str] = {}
    for pkg in packages:
        target = dev_dependencies if pkg.dev else dependencies
        target[pkg.name] = pkg.version or "latest"

    return {
        "name": name,
        "version": "0.0.0",
        "private": True,
        "dependencies": dependencies,
        "devDependencies": dev_dependencies,
    }


def _as_installed(pkg: DetectedPackage) -> InstalledPackage:
    return InstalledPackage(
        name=pkg.name,
        version=pkg.version or "latest",
        type=pkg.dependency_type,
    )


def _summary(count: int, verb: str = "Installed") -> str:
    return f"{verb} {count} package{'s' if count != 1 else ''}"


# =============================================================================
# INSTALLER
# =============================================================================

class PackageInstaller:
    """Installs detected packages and remembers what it installed."""

    def __init__(
        self,
        mode: str = "simulate",
        image: str = NODE_IMAGE,
        timeout: int = INSTALL_TIMEOUT,
    ):
        if mode not in ("simulate", "docker"):
            raise ValueError(f"Unknown install mode: {mode}")
        self.mode = mode
        self.image = image
        self.timeout = timeout
        self._installed: Dict[str, InstalledPackage] = {}

    def install(self, packages: Iterable[DetectedPackage]) -> InstallReport:
        """
        Install packages using the configured mode.

        Args:
            packages: Packages to install, usually a detect_packages() result

        Returns:
            InstallReport with installed packages, errors and a summary message
        """
        packages = list(packages)
        if not packages:
            return InstallReport(success=True, mode=self.mode, message="No packages to install")

        if self.mode == "docker":
            report = self._install_with_docker(packages)
        else:
            report = self._simulate(packages)

        for item in report.installed:
            self._installed[item.name] = item

        log.info(
            "install.completed",
            mode=self.mode,
            success=report.success,
            installed=report.installed_count,
            errors=len(report.errors),
        )
        return report

    def is_installed(self, name: str) -> bool:
        """Whether this installer has installed `name`."""
        return name in self._installed

    def installed_packages(self) -> List[InstalledPackage]:
        """Everything this installer has installed, in install order."""
        return list(self._installed.values())

    # -------------------------------------------------------------------------

    def _simulate(self, packages: List[DetectedPackage]) -> InstallReport:
        installed = [_as_installed(pkg) for pkg in packages]
        return InstallReport(
            success=True,
            mode="simulate",
            installed=installed,
            message=_summary(len(installed)),
        )

    def _install_with_docker(self, packages: List[DetectedPackage]) -> InstallReport:
        """
        Resolve packages with npm inside a fresh container.

        Lifecycle:
        1. Write package.json to a temp directory
        2. Run npm in a container with the directory mounted read-write
        3. Collect exit code and logs
        4. Remove the container and the temp directory
        """
        if not DOCKER_AVAILABLE:
            return InstallReport(
                success=False,
                mode="docker",
                errors=["Docker Python SDK not installed. Run: pip install docker"],
                message="Package installation unavailable.",
            )

        temp_dir = None
        container = None

        try:
            client = docker.from_env()
            client.ping()

            temp_dir = tempfile.mkdtemp(prefix="uigen_install_")
            manifest = build_package_manifest(packages)
            with open(os.path.join(temp_dir, "package.json"), "w", encoding="utf-8") as f:
                json.dump(manifest, f, indent=2)

            try:
                client.images.get(self.image)
            except ImageNotFound:
                client.images.pull(self.image)

            container = client.containers.run(
                image=self.image,
                command=["sh", "-c", INSTALL_COMMAND],
                working_dir="/app",
                volumes={temp_dir: {"bind": "/app", "mode": "rw"}},
                mem_limit=MAX_MEMORY,
                cpu_period=100000,
                cpu_quota=int(100000 * MAX_CPU),
                network_disabled=False,  # npm needs the registry
                detach=True,
                remove=False,
            )

            result = container.wait(timeout=self.timeout)
            exit_code = result.get("StatusCode", -1)

            if exit_code != 0:
                stderr = container.logs(stdout=False, stderr=True).decode("utf-8", errors="replace")
                return InstallReport(
                    success=False,
                    mode="docker",
                    errors=[line for line in stderr.splitlines() if line.strip()] or [
                        f"npm exited with status {exit_code}"
                    ],
                    message="Dependency installation failed.",
                )

            installed = [_as_installed(pkg) for pkg in packages]
            return InstallReport(
                success=True,
                mode="docker",
                installed=installed,
                # --package-lock-only: the tree is resolved, node_modules is never written
                message=_summary(len(installed), verb="Resolved"),
            )

        except Exception as e:
            error_message = str(e)
            lowered = error_message.lower()

            if "timed out" in lowered or "timeout" in lowered:
                message = f"Installation timed out after {self.timeout} seconds."
            elif "connection refused" in lowered or "docker daemon" in lowered:
                message = "Docker is not running. Please start Docker and try again."
            else:
                message = "Installation failed unexpectedly."

            log.warning("install.failed", mode="docker", error=error_message)
            return InstallReport(success=False, mode="docker", errors=[error_message], message=message)

        finally:
            if container is not None:
                _remove_container(container)
            if temp_dir and os.path.exists(temp_dir):
                shutil.rmtree(temp_dir, ignore_errors=True)


def _remove_container(container) -> None:
    """Stop and remove a container; cleanup failures are logged, not raised."""
    try:
        container.stop(timeout=1)
    except Exception as e:
        log.debug("container.stop_failed", error=str(e))
    try:
        container.remove(force=True)
    except Exception as e:
        log.debug("container.remove_failed", error=str(e))


def get_installer(mode: Optional[str] = None) -> PackageInstaller:
    """Installer for the configured UIGEN_INSTALL_MODE (or an explicit mode)."""
    if mode is None:
        from uigen.config import get_config
        mode = get_config().install_mode
    return PackageInstaller(mode=mode)
