# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Configuration for the Buildbot history browser.

Priority (highest first):
  1. explicit overrides (CLI flags)
  2. environment variables (BUILDBOT_HOST, BUILDBOT_CHANGES_FETCH_LIMIT, ...)
  3. YAML file (default: ~/.config/buildbot-history.yaml)

Example YAML:

    host: https://buildbot.example.com
    changes_fetch_limit: 200
    branch_changes_limit: 10
    builder_build_limit: 20
    use_direct_filter: false
    status_policy:
      pending: [running, building]
      failure: [fail, exception]
      success: [successful]
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from .exceptions import ConfigError
from .status import StatusPolicy

_logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "buildbot-history.yaml"

_ENV_KEYS = {
    "host": "BUILDBOT_HOST",
    "changes_fetch_limit": "BUILDBOT_CHANGES_FETCH_LIMIT",
    "branch_changes_limit": "BUILDBOT_BRANCH_CHANGES_LIMIT",
    "builder_build_limit": "BUILDBOT_BUILDER_BUILD_LIMIT",
    "use_direct_filter": "BUILDBOT_USE_DIRECT_FILTER",
}

_INT_KEYS = ("builder_build_limit", "branch_changes_limit", "changes_fetch_limit", "timeout")


@dataclass
class BuildbotConfig:
    host: str
    builder_build_limit: int = 20
    branch_changes_limit: int = 10
    changes_fetch_limit: int = 100
    use_direct_filter: bool = False
    timeout: int = 10
    status_policy: StatusPolicy = field(default_factory=StatusPolicy)


def _as_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    s = str(value).strip().lower()
    if s in {"1", "true", "yes", "on"}:
        return True
    if s in {"0", "false", "no", "off", ""}:
        return False
    raise ConfigError(f"{key}: expected a boolean, got {value!r}")


def _as_positive_int(key: str, value: Any) -> int:
    try:
        n = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{key}: expected an integer, got {value!r}")
    if n <= 0:
        raise ConfigError(f"{key}: must be positive, got {n}")
    return n


def read_config_file(path: Path) -> Dict[str, Any]:
    """Read the YAML config file; a missing file is an empty config."""
    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text()) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"cannot read config file {path}: {e}")
    if not isinstance(data, dict):
        raise ConfigError(f"config file {path} must contain a mapping")
    return data


def load_config(path: Optional[Path] = None, overrides: Optional[Mapping[str, Any]] = None) -> BuildbotConfig:
    cfg_path = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    raw: Dict[str, Any] = read_config_file(cfg_path)
    for key, env in _ENV_KEYS.items():
        if os.environ.get(env):
            raw[key] = os.environ[env]
    for key, value in (overrides or {}).items():
        if value is not None:
            raw[key] = value

    host = str(raw.get("host") or "").strip()
    if not host:
        raise ConfigError(f"no Buildbot host configured (use --host, BUILDBOT_HOST or 'host:' in {cfg_path})")

    kwargs: Dict[str, Any] = {"host": host}
    for key in _INT_KEYS:
        if raw.get(key) is not None:
            kwargs[key] = _as_positive_int(key, raw[key])
    if raw.get("use_direct_filter") is not None:
        kwargs["use_direct_filter"] = _as_bool("use_direct_filter", raw["use_direct_filter"])
    policy = raw.get("status_policy")
    if policy is not None:
        if not isinstance(policy, Mapping):
            raise ConfigError("status_policy: expected a mapping of status -> keywords")
        kwargs["status_policy"] = StatusPolicy.from_config(policy)

    unknown = sorted(set(raw) - set(_INT_KEYS) - {"host", "use_direct_filter", "status_policy"})
    if unknown:
        _logger.warning("ignoring unknown config keys: %s", ", ".join(unknown))
    return BuildbotConfig(**kwargs)
