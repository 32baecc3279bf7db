"""Configuration management for chunkctl.

Supports YAML profiles and environment variable overrides.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from chunkctl.core.exceptions import ConfigurationError, ProfileNotFoundError, ValidationError
from chunkctl.core.validation import validate_chunk_size
from chunkctl.uploaders.constants import DEFAULT_CHUNK_SIZE, DEFAULT_TIMEOUT

# =============================================================================
# Constants
# =============================================================================

CONFIG_DIR = Path.home() / ".config" / "chunkctl"
CONFIG_FILE = CONFIG_DIR / "config.yaml"

# Environment variable names
ENV_URL = "CHUNKCTL_URL"
ENV_TOKEN = "CHUNKCTL_TOKEN"
ENV_PROFILE = "CHUNKCTL_PROFILE"
ENV_VERIFY_SSL = "CHUNKCTL_VERIFY_SSL"
ENV_TIMEOUT = "CHUNKCTL_TIMEOUT"
ENV_CHUNK_SIZE = "CHUNKCTL_CHUNK_SIZE"


# =============================================================================
# Profile
# =============================================================================


@dataclass
class Profile:
    """Configuration profile for a remote store."""

    url: str
    verify_ssl: bool = True
    timeout: int = DEFAULT_TIMEOUT
    chunk_size: int = DEFAULT_CHUNK_SIZE

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "url": self.url,
            "verify_ssl": self.verify_ssl,
            "timeout": self.timeout,
            "chunk_size": self.chunk_size,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Profile":
        """Create from dictionary."""
        return cls(
            url=data.get("url", ""),
            verify_ssl=data.get("verify_ssl", True),
            timeout=data.get("timeout", DEFAULT_TIMEOUT),
            chunk_size=validate_chunk_size(data.get("chunk_size", DEFAULT_CHUNK_SIZE)),
        )


# =============================================================================
# Config
# =============================================================================


@dataclass
class Config:
    """Application configuration."""

    default_profile: str = "default"
    output_format: str = "table"
    profiles: dict[str, Profile] = field(default_factory=dict)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Config":
        """Load config from file with environment variable overrides.

        Priority (highest to lowest):
        1. Environment variables
        2. Config file
        3. Defaults

        Args:
            config_path: Optional path to config file.

        Returns:
            Loaded configuration.
        """
        path = config_path or CONFIG_FILE
        config = cls()

        if path.exists():
            try:
                with open(path) as f:
                    data = yaml.safe_load(f) or {}

                config.default_profile = data.get("default_profile", "default")
                config.output_format = data.get("output_format", "table")

                for name, pdata in data.get("profiles", {}).items():
                    config.profiles[name] = Profile.from_dict(pdata)
            except (OSError, yaml.YAMLError, ValidationError, AttributeError) as e:
                raise ConfigurationError(f"Failed to load config: {e}") from e

        # Environment variable overrides
        if url := os.getenv(ENV_URL):
            verify_ssl = os.getenv(ENV_VERIFY_SSL, "true").lower() in ("true", "1", "yes")
            try:
                timeout = int(os.getenv(ENV_TIMEOUT, str(DEFAULT_TIMEOUT)))
            except ValueError as e:
                raise ConfigurationError(
                    "Invalid timeout", field=ENV_TIMEOUT, value=os.getenv(ENV_TIMEOUT)
                ) from e

            config.profiles["default"] = Profile(
                url=url,
                verify_ssl=verify_ssl,
                timeout=timeout,
            )

        if chunk_size := os.getenv(ENV_CHUNK_SIZE):
            size = validate_chunk_size(chunk_size)
            for profile in config.profiles.values():
                profile.chunk_size = size

        if profile_name := os.getenv(ENV_PROFILE):
            config.default_profile = profile_name

        return config

    def save(self, config_path: Optional[Path] = None) -> None:
        """Save config to file (excludes tokens).

        Args:
            config_path: Optional path to config file.
        """
        path = config_path or CONFIG_FILE
        path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "default_profile": self.default_profile,
            "output_format": self.output_format,
            "profiles": {name: p.to_dict() for name, p in self.profiles.items()},
        }

        with open(path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)

    def get_profile(self, name: Optional[str] = None) -> Profile:
        """Get profile by name or default.

        Raises:
            ProfileNotFoundError: If profile doesn't exist.
        """
        name = name or self.default_profile
        if name not in self.profiles:
            raise ProfileNotFoundError(name)
        return self.profiles[name]

    def has_profile(self, name: str) -> bool:
        """Check if profile exists."""
        return name in self.profiles

    def add_profile(
        self,
        name: str,
        url: str,
        verify_ssl: bool = True,
        timeout: int = DEFAULT_TIMEOUT,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> Profile:
        """Add or update a profile.

        Args:
            name: Profile name.
            url: Remote store base URL.
            verify_ssl: Whether to verify SSL certificates.
            timeout: Request timeout in seconds.
            chunk_size: Chunk size in bytes for new uploads.

        Returns:
            Created profile.
        """
        profile = Profile(
            url=url,
            verify_ssl=verify_ssl,
            timeout=timeout,
            chunk_size=chunk_size,
        )
        self.profiles[name] = profile
        return profile

    def remove_profile(self, name: str) -> bool:
        """Remove a profile.

        Returns:
            True if removed, False if didn't exist.
        """
        if name in self.profiles:
            del self.profiles[name]
            return True
        return False

    def set_default_profile(self, name: str) -> None:
        """Set the default profile.

        Raises:
            ProfileNotFoundError: If profile doesn't exist.
        """
        if name not in self.profiles:
            raise ProfileNotFoundError(name)
        self.default_profile = name


def get_token() -> Optional[str]:
    """Get the bearer token from the environment.

    Returns:
        Token if set, None otherwise.
    """
    return os.getenv(ENV_TOKEN)
