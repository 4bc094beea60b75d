# Overview: JSON configuration file for the print agent, with environment overrides.

from __future__ import annotations

import json
import os
import uuid
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path


DEFAULT_CONFIG_PATH = "agent-config.json"
CONFIG_PATH_ENV = "SLIPSYNC_AGENT_CONFIG"


@dataclass
class AgentConfig:
    backend_url: str = "http://localhost:5000/api"
    device_id: str = ""
    device_name: str = ""
    device_secret: str = ""
    heartbeat_interval_seconds: float = 30
    poll_interval_seconds: float = 5
    request_timeout_seconds: float = 10
    output_dir: str = "receipts"

    @property
    def is_paired(self) -> bool:
        return bool(self.device_secret)


def resolve_config_path(path: str | os.PathLike | None = None) -> Path:
    return Path(path or os.environ.get(CONFIG_PATH_ENV) or DEFAULT_CONFIG_PATH)


def save_config(config: AgentConfig, path: str | os.PathLike | None = None) -> Path:
    target = resolve_config_path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    with open(target, "w", encoding="utf-8") as f:
        json.dump(asdict(config), f, indent=2)
    return target


def apply_env_overrides(config: AgentConfig) -> AgentConfig:
    """Copy of config with SLIPSYNC_BACKEND_URL and SLIPSYNC_DEVICE_SECRET applied."""
    overridden = replace(config)
    if os.environ.get("SLIPSYNC_BACKEND_URL"):
        overridden.backend_url = os.environ["SLIPSYNC_BACKEND_URL"]
    if os.environ.get("SLIPSYNC_DEVICE_SECRET"):
        overridden.device_secret = os.environ["SLIPSYNC_DEVICE_SECRET"]
    return overridden


def load_config(path: str | os.PathLike | None = None, *, apply_env: bool = True) -> AgentConfig:
    """
    Read the config file, creating it with defaults when missing.

    A device_id is generated ("agent-<uuid4>") and persisted on first load so
    the agent keeps its identity across restarts. SLIPSYNC_BACKEND_URL and
    SLIPSYNC_DEVICE_SECRET override the file without rewriting it; pass
    apply_env=False for the values as stored, e.g. before saving.
    """
    target = resolve_config_path(path)
    data = {}
    if target.exists():
        with open(target, "r", encoding="utf-8") as f:
            data = json.load(f) or {}

    known = {field.name for field in fields(AgentConfig)}
    config = AgentConfig(**{key: value for key, value in data.items() if key in known})

    if not config.device_id:
        config.device_id = f"agent-{uuid.uuid4()}"
        save_config(config, target)

    return apply_env_overrides(config) if apply_env else config
