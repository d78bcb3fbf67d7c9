"""
Configuration for the CaaS graph engine.

Values are read from the environment; scripts load `.env.local` / `.env`
through python-dotenv before building a `CaaSConfig`.
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Union

from dotenv import load_dotenv

from .errors import ConfigurationError
from .models import ContentMode

# Number of identifiers sent in one "identifier IN (...)" fetch
REFERENCED_ITEMS_CHUNK_SIZE = 30
DEFAULT_MAX_REFERENCE_DEPTH = 10
DEFAULT_PAGE_SIZE = 30
DEFAULT_MAX_WORKERS = 8

CONTENT_MODES = tuple(mode.value for mode in ContentMode)


@dataclass(frozen=True)
class RemoteProjectConfig:
    """A remote project the local project may reference content from."""
    id: str
    locale: str

    def __post_init__(self):
        if not self.id:
            raise ConfigurationError(ConfigurationError.MISSING_REMOTE_ID)
        if not self.locale:
            raise ConfigurationError(ConfigurationError.MISSING_REMOTE_LOCALE)


@dataclass
class CaaSConfig:
    """Connection and resolution settings for one CaaS project."""
    api_key: str
    caas_url: str
    tenant_id: str
    project_id: str
    content_mode: str = ContentMode.RELEASE.value
    remotes: Dict[str, RemoteProjectConfig] = field(default_factory=dict)
    max_reference_depth: int = DEFAULT_MAX_REFERENCE_DEPTH
    max_workers: int = DEFAULT_MAX_WORKERS

    def __post_init__(self):
        if not self.api_key:
            raise ConfigurationError(ConfigurationError.MISSING_API_KEY)
        if not self.caas_url:
            raise ConfigurationError(ConfigurationError.MISSING_CAAS_URL)
        if not self.tenant_id:
            raise ConfigurationError(ConfigurationError.MISSING_TENANT_ID)
        if not self.project_id:
            raise ConfigurationError(ConfigurationError.MISSING_PROJECT_ID)
        if self.content_mode not in CONTENT_MODES:
            raise ConfigurationError(ConfigurationError.UNKNOWN_CONTENT_MODE)
        self.caas_url = self.caas_url.rstrip("/")
        self.remotes = parse_remotes(self.remotes)

    @classmethod
    def from_env(cls, env_file: Optional[Union[str, Path]] = None) -> "CaaSConfig":
        """
        Build a configuration from environment variables.

        Args:
            env_file: Optional dotenv file loaded before reading the environment

        Returns:
            A validated CaaSConfig

        Raises:
            ConfigurationError: If a mandatory value is missing or invalid
        """
        if env_file:
            load_dotenv(env_file)
        else:
            load_dotenv()

        remotes_raw = os.getenv("CAAS_REMOTES", "")
        try:
            remotes = json.loads(remotes_raw) if remotes_raw.strip() else {}
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"CAAS_REMOTES is not valid JSON: {e}") from e

        return cls(
            api_key=os.getenv("CAAS_API_KEY", ""),
            caas_url=os.getenv("CAAS_URL", ""),
            tenant_id=os.getenv("CAAS_TENANT_ID", ""),
            project_id=os.getenv("CAAS_PROJECT_ID", ""),
            content_mode=os.getenv("CAAS_CONTENT_MODE", ContentMode.RELEASE.value),
            remotes=remotes,
            max_reference_depth=_int_env("CAAS_MAX_REFERENCE_DEPTH", DEFAULT_MAX_REFERENCE_DEPTH),
            max_workers=_int_env("CAAS_MAX_WORKERS", DEFAULT_MAX_WORKERS),
        )


def parse_remotes(remotes) -> Dict[str, RemoteProjectConfig]:
    """Normalize a remotes mapping whose values may be plain dicts."""
    parsed: Dict[str, RemoteProjectConfig] = {}
    for alias, entry in (remotes or {}).items():
        if isinstance(entry, RemoteProjectConfig):
            parsed[alias] = entry
        elif isinstance(entry, dict):
            parsed[alias] = RemoteProjectConfig(id=entry.get("id", ""), locale=entry.get("locale", ""))
        else:
            raise ConfigurationError(f"Invalid remote project configuration for '{alias}'")
    return parsed


def _int_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got '{value}'") from e
