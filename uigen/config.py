"""
Configuration module for loading and validating environment variables.
"""

import os
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv

from uigen.errors import UigenError


class ConfigError(UigenError):
    """Raised when configuration is invalid or missing."""
    pass


RENDER_BACKENDS = ("isolate", "docker")
INSTALL_MODES = ("simulate", "docker")
LOG_FORMATS = ("console", "json")


class Config:
    """Application configuration loaded from environment variables."""
    
    def __init__(self):
        # Load .env file from project root
        env_path = Path(__file__).parent.parent / ".env"
        load_dotenv(dotenv_path=env_path)
        
        # Sandbox renderer settings
        self.render_backend = os.getenv("UIGEN_RENDER_BACKEND", "isolate").lower()
        self.render_timeout_ms = _int_env("UIGEN_RENDER_TIMEOUT_MS", 3000)
        self.render_max_memory_mb = _int_env("UIGEN_RENDER_MAX_MEMORY_MB", 128)
        self.sandbox_image = os.getenv("UIGEN_SANDBOX_IMAGE", "node:18-slim")
        
        # Package detection / installation settings
        self.install_mode = os.getenv("UIGEN_INSTALL_MODE", "simulate").lower()
        self.registry_path = os.getenv("UIGEN_REGISTRY_PATH") or None
        
        # Logging
        self.log_level = os.getenv("UIGEN_LOG_LEVEL", "INFO").upper()
        self.log_format = os.getenv("UIGEN_LOG_FORMAT", "console").lower()
        
        # Validate settings
        self._validate()
    
    @property
    def render_max_memory(self) -> int:
        """Memory cap for a single render, in bytes."""
        return self.render_max_memory_mb * 1024 * 1024
    
    def _validate(self):
        """Validate that every setting holds a usable value."""
        problems = []
        
        if self.render_backend not in RENDER_BACKENDS:
            problems.append(
                f"UIGEN_RENDER_BACKEND must be one of {', '.join(RENDER_BACKENDS)} (got {self.render_backend!r})"
            )
        if self.install_mode not in INSTALL_MODES:
            problems.append(
                f"UIGEN_INSTALL_MODE must be one of {', '.join(INSTALL_MODES)} (got {self.install_mode!r})"
            )
        if self.log_format not in LOG_FORMATS:
            problems.append(
                f"UIGEN_LOG_FORMAT must be one of {', '.join(LOG_FORMATS)} (got {self.log_format!r})"
            )
        if self.render_timeout_ms is None or self.render_timeout_ms <= 0:
            problems.append("UIGEN_RENDER_TIMEOUT_MS must be a positive integer")
        if self.render_max_memory_mb is None or self.render_max_memory_mb <= 0:
            problems.append("UIGEN_RENDER_MAX_MEMORY_MB must be a positive integer")
        if self.registry_path and not Path(self.registry_path).is_file():
            problems.append(f"UIGEN_REGISTRY_PATH does not point to a file: {self.registry_path}")
        
        if problems:
            raise ConfigError(
                "Invalid configuration:\n- " + "\n- ".join(problems) + "\n"
                "Please fix these variables in your environment or .env file."
            )


def _int_env(name: str, default: int) -> Optional[int]:
    """Read an integer environment variable; None when it is not a number."""
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return None


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def reset_config() -> None:
    """Drop the cached configuration so the next get_config() re-reads the environment."""
    global _config
    _config = None
