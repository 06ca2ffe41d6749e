"""Ambient configuration: default project and poll cadence.

The project used when `--project` is omitted is resolved the same way the
Cloud SDK does it: environment first, then the active gcloud configuration,
then the project bound to Application Default Credentials.
"""

from __future__ import annotations

import configparser
import logging
import os
from pathlib import Path

import google.auth
from google.auth.exceptions import DefaultCredentialsError

log = logging.getLogger(__name__)

_PROJECT_ENV_VARS = ("SQLOPS_PROJECT", "CLOUDSDK_CORE_PROJECT", "GOOGLE_CLOUD_PROJECT")
_CLOUDSDK_CONFIG_ENV = "CLOUDSDK_CONFIG"
_ACTIVE_CONFIG_ENV = "CLOUDSDK_ACTIVE_CONFIG_NAME"

POLL_INITIAL_ENV = "SQLOPS_POLL_INITIAL"
POLL_MAX_ENV = "SQLOPS_POLL_MAX"


def _gcloud_config_dir() -> Path:
    """Return the gcloud configuration directory."""
    override = os.getenv(_CLOUDSDK_CONFIG_ENV)
    if override:
        return Path(override)
    return Path.home() / ".config" / "gcloud"


def project_from_gcloud_config(config_dir: Path | None = None) -> str | None:
    """Return `[core] project` from the active gcloud configuration, if any."""
    base = config_dir or _gcloud_config_dir()
    name = os.getenv(_ACTIVE_CONFIG_ENV)
    if not name:
        try:
            name = (base / "active_config").read_text().strip() or "default"
        except OSError:
            name = "default"

    parser = configparser.ConfigParser()
    try:
        read = parser.read(base / "configurations" / f"config_{name}")
    except configparser.Error as exc:
        log.debug("Ignoring unreadable gcloud configuration %s: %s", name, exc)
        return None
    if not read:
        return None
    return parser.get("core", "project", fallback=None) or None


def project_from_adc() -> str | None:
    """Return the project bound to Application Default Credentials, if any."""
    try:
        _, project = google.auth.default()
    except DefaultCredentialsError:
        return None
    return project or None


def resolve_project(explicit: str | None = None) -> str | None:
    """
    Resolve the project identifier to use for a command.

    Order: explicit value, environment variables, active gcloud configuration,
    Application Default Credentials. Returns None when nothing is configured;
    callers decide whether that is an error.
    """
    if explicit:
        return explicit
    for var in _PROJECT_ENV_VARS:
        value = os.getenv(var)
        if value:
            log.debug("Project %s taken from $%s", value, var)
            return value
    project = project_from_gcloud_config()
    if project:
        log.debug("Project %s taken from gcloud configuration", project)
        return project
    return project_from_adc()


def env_seconds(name: str, default: float) -> float:
    """Return a positive float from the environment, or `default`."""
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default
