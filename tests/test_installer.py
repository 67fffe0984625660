"""Tests for the package installer."""

import json
import os
from unittest.mock import MagicMock, patch

import pytest

from uigen.packages.installer import PackageInstaller, build_package_manifest, get_installer
from uigen.packages.models import DetectedPackage


def _packages():
    return [
        DetectedPackage("react", "^18.2.0", "React", "import"),
        DetectedPackage("framer-motion", "^10.16.4", "Animation", "pattern"),
        DetectedPackage("typescript", "^5.2.0", "TypeScript", "pattern", dev=True),
    ]


class TestManifest:
    def test_dependencies_split_by_dev_flag(self):
        manifest = build_package_manifest(_packages(), name="demo")
        assert manifest["name"] == "demo"
        assert manifest["private"] is True
        assert manifest["dependencies"] == {"react": "^18.2.0", "framer-motion": "^10.16.4"}
        assert manifest["devDependencies"] == {"typescript": "^5.2.0"}

    def test_empty(self):
        manifest = build_package_manifest([])
        assert manifest["dependencies"] == {}
        assert manifest["devDependencies"] == {}


class TestSimulatedInstall:
    def test_reports_every_package(self):
        installer = PackageInstaller(mode="simulate")
        report = installer.install(_packages())
        assert report.success is True
        assert report.mode == "simulate"
        assert report.installed_count == 3
        assert report.message == "Installed 3 packages"
        types = {p.name: p.type for p in report.installed}
        assert types == {
            "react": "dependency",
            "framer-motion": "dependency",
            "typescript": "devDependency",
        }

    def test_single_package_message(self):
        report = PackageInstaller().install(_packages()[:1])
        assert report.message == "Installed 1 package"

    def test_tracks_installed_packages(self):
        installer = PackageInstaller()
        assert not installer.is_installed("react")
        installer.install(_packages()[:2])
        assert installer.is_installed("react")
        assert installer.is_installed("framer-motion")
        assert not installer.is_installed("typescript")
        assert [p.name for p in installer.installed_packages()] == ["react", "framer-motion"]

    def test_nothing_to_install(self):
        report = PackageInstaller().install([])
        assert report.success is True
        assert report.installed_count == 0

    def test_unknown_mode_rejected(self):
        with pytest.raises(ValueError):
            PackageInstaller(mode="yarn")

    def test_get_installer_uses_config(self, monkeypatch):
        assert get_installer().mode == "simulate"
        monkeypatch.setenv("UIGEN_INSTALL_MODE", "docker")
        from uigen.config import reset_config
        reset_config()
        assert get_installer().mode == "docker"


class TestDockerInstall:
    def _client(self, exit_code=0, stderr=b""):
        client = MagicMock()
        container = MagicMock()
        container.wait.return_value = {"StatusCode": exit_code}
        container.logs.return_value = stderr
        client.containers.run.return_value = container
        return client, container

    def test_successful_install(self):
        client, container = self._client()
        seen = {}

        def run(**kwargs):
            host_dir = next(iter(kwargs["volumes"]))
            with open(os.path.join(host_dir, "package.json"), encoding="utf-8") as f:
                seen["manifest"] = json.load(f)
            seen["kwargs"] = kwargs
            return container

        client.containers.run.side_effect = run

        with patch("uigen.packages.installer.DOCKER_AVAILABLE", True), \
                patch("uigen.packages.installer.docker") as docker_mod:
            docker_mod.from_env.return_value = client
            report = PackageInstaller(mode="docker").install(_packages())

        assert report.success is True
        assert report.mode == "docker"
        assert report.installed_count == 3
        assert report.message == "Resolved 3 packages"
        assert seen["manifest"]["devDependencies"] == {"typescript": "^5.2.0"}
        assert seen["kwargs"]["image"] == "node:18-slim"
        assert "npm install" in seen["kwargs"]["command"][-1]
        container.remove.assert_called_with(force=True)
        host_dir = next(iter(seen["kwargs"]["volumes"]))
        assert not os.path.exists(host_dir)

    def test_failed_install_reports_stderr(self):
        client, container = self._client(exit_code=1, stderr=b"npm ERR! 404 Not Found\n")
        with patch("uigen.packages.installer.DOCKER_AVAILABLE", True), \
                patch("uigen.packages.installer.docker") as docker_mod:
            docker_mod.from_env.return_value = client
            installer = PackageInstaller(mode="docker")
            report = installer.install(_packages())

        assert report.success is False
        assert report.errors == ["npm ERR! 404 Not Found"]
        assert report.message == "Dependency installation failed."
        assert not installer.is_installed("react")
        container.remove.assert_called_with(force=True)

    def test_docker_not_running(self):
        with patch("uigen.packages.installer.DOCKER_AVAILABLE", True), \
                patch("uigen.packages.installer.docker") as docker_mod:
            docker_mod.from_env.side_effect = Exception("Error while fetching server API version: connection refused")
            report = PackageInstaller(mode="docker").install(_packages())

        assert report.success is False
        assert report.message == "Docker is not running. Please start Docker and try again."

    def test_sdk_missing(self):
        with patch("uigen.packages.installer.DOCKER_AVAILABLE", False):
            report = PackageInstaller(mode="docker").install(_packages())
        assert report.success is False
        assert "pip install docker" in report.errors[0]
