"""
Profile based client configuration.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Mapping, Optional

import yaml

from .negotiation import DEFAULT_GATHER_TIMEOUT
from .signaling.client import DEFAULT_REQUEST_TIMEOUT, DEFAULT_WATCH_PATH

CONFIG_DIR = Path(__file__).resolve().parent / "configs"
PROFILES_PATH = CONFIG_DIR / "profiles.yaml"
ENV_SERVER_VAR = "WATCHRTC_SERVER"

LOG = logging.getLogger(__name__)


class ConfigError(ValueError):
    """Raised when a profile cannot be loaded."""


def _optional_seconds(value: object) -> Optional[float]:
    if value is None:
        return None
    seconds = float(value)
    return seconds if seconds > 0 else None


@dataclass
class WatchConfig:
    profile: str = "default"
    server: str = "http://localhost:8080"
    watch_path: str = DEFAULT_WATCH_PATH
    gather_timeout: Optional[float] = DEFAULT_GATHER_TIMEOUT
    request_timeout: Optional[float] = DEFAULT_REQUEST_TIMEOUT
    ice_servers: List[str] = field(default_factory=lambda: ["stun:stun.l.google.com:19302"])

    @classmethod
    def from_mapping(cls, profile: str, payload: Mapping[str, object]) -> "WatchConfig":
        config = cls(profile=profile)
        if "server" in payload:
            config.server = str(payload["server"])
        if "watch_path" in payload:
            config.watch_path = str(payload["watch_path"])
        if "gather_timeout" in payload:
            config.gather_timeout = _optional_seconds(payload["gather_timeout"])
        if "request_timeout" in payload:
            config.request_timeout = _optional_seconds(payload["request_timeout"])
        if "ice_servers" in payload:
            servers = payload["ice_servers"] or []
            if isinstance(servers, str):
                servers = [servers]
            config.ice_servers = [str(url) for url in servers]  # type: ignore[union-attr]
        return config


def read_profiles(path: Optional[Path] = None) -> dict:
    target = path or PROFILES_PATH
    try:
        with Path(target).open("r", encoding="utf-8") as handle:
            profiles = yaml.safe_load(handle) or {}
    except FileNotFoundError:
        LOG.warning("Profiles file %s not found; using defaults.", target)
        profiles = {}
    if not isinstance(profiles, dict):
        raise ConfigError(f"Profiles file {target} must contain a mapping")
    return profiles


def load_config(profile: str = "default", path: Optional[Path] = None) -> WatchConfig:
    """
    Resolve ``profile`` from the profiles file.

    ``WATCHRTC_SERVER`` overrides the signaling base URL of any profile.
    """

    profiles = read_profiles(path)
    if profile in profiles:
        payload = profiles[profile] or {}
        if not isinstance(payload, dict):
            raise ConfigError(f"Profile '{profile}' must be a mapping")
        config = WatchConfig.from_mapping(profile, payload)
    elif profile == "default":
        config = WatchConfig()
    else:
        raise ConfigError(f"Unknown profile '{profile}'")

    override = os.environ.get(ENV_SERVER_VAR)
    if override:
        config.server = override
    return config


__all__ = ["ConfigError", "WatchConfig", "load_config", "read_profiles"]
