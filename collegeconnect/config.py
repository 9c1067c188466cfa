"""
collegeconnect.config — YAML Configuration Loader
==================================================

Reads ``config.yaml`` for application-level settings (pagination limits,
mutation rate limits, error verbosity).  Secrets and connection strings
stay in the environment (``DATABASE_URL``, ``JWT_SECRET``).

Usage::

    from collegeconnect.config import load_config

    cfg = load_config()            # reads ./config.yaml by default
    print(cfg.app_name)            # "CollegeConnect"
    print(cfg.default_page_limit)  # 20
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import yaml

CONFIG_ENV_VAR = "COLLEGECONNECT_CONFIG"


# ---------------------------------------------------------------------------
# Typed settings object
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class CollegeConnectConfig:
    """Immutable configuration loaded from ``config.yaml``."""

    # Identity
    app_name: str

    # API
    api_port: int

    # Listing
    default_page_limit: int
    max_page_limit: int

    # Mutation throttling (per authenticated actor)
    rate_limit_max_requests: int = 100
    rate_limit_window_seconds: int = 900

    # Include exception text in 500 responses (never in production)
    expose_error_details: bool = False


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def default_config_path() -> Path:
    """Resolve the config path from ``COLLEGECONNECT_CONFIG`` or ``./config.yaml``."""
    return Path(os.getenv(CONFIG_ENV_VAR, "config.yaml"))


def load_config(path: str | Path | None = None) -> CollegeConnectConfig:
    """Read *path* and return a :class:`CollegeConnectConfig` instance.

    Parameters
    ----------
    path:
        Filesystem path to the YAML configuration file.  Defaults to
        :func:`default_config_path`.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    KeyError
        If a required key is missing from the YAML file.
    """
    config_path = Path(path) if path is not None else default_config_path()
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    return CollegeConnectConfig(
        app_name=raw["app_name"],
        api_port=int(raw["api_port"]),
        default_page_limit=int(raw["default_page_limit"]),
        max_page_limit=int(raw["max_page_limit"]),
        rate_limit_max_requests=int(raw.get("rate_limit_max_requests", 100)),
        rate_limit_window_seconds=int(raw.get("rate_limit_window_seconds", 900)),
        expose_error_details=bool(raw.get("expose_error_details", False)),
    )
