"""Shared pytest fixtures for uigen tests."""

import pytest

from uigen.config import reset_config
from uigen.sandbox.executor import IsolateExecutor
from uigen.sandbox.renderer import SandboxRenderer

UIGEN_ENV_VARS = (
    "UIGEN_RENDER_BACKEND",
    "UIGEN_RENDER_TIMEOUT_MS",
    "UIGEN_RENDER_MAX_MEMORY_MB",
    "UIGEN_SANDBOX_IMAGE",
    "UIGEN_INSTALL_MODE",
    "UIGEN_REGISTRY_PATH",
    "UIGEN_LOG_LEVEL",
    "UIGEN_LOG_FORMAT",
)


@pytest.fixture(autouse=True)
def clean_config(monkeypatch):
    """Every test starts from default configuration."""
    for name in UIGEN_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def renderer():
    return SandboxRenderer(executor=IsolateExecutor(), timeout_ms=2000)
