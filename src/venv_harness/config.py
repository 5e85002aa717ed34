"""Configuration loading."""

import os
from dataclasses import replace
from typing import Mapping, Optional

from venv_harness.errors import ConfigError
from venv_harness.types import Creator, VenvConfig

DEFAULT_CONFIG = VenvConfig()

ENV_PREFIX = "VENV_HARNESS_"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _parse_bool(key: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ConfigError(key, value)


def _parse_creator(key: str, value: str) -> Creator:
    try:
        return Creator(value.strip().lower())
    except ValueError:
        raise ConfigError(key, value) from None


def load_config(
    environ: Optional[Mapping[str, str]] = None, base: VenvConfig = DEFAULT_CONFIG
) -> VenvConfig:
    """Overlay VENV_HARNESS_* variables onto the base configuration."""
    environ = os.environ if environ is None else environ
    overrides = {}

    if (value := environ.get(f"{ENV_PREFIX}DIR")) is not None:
        if not value.strip():
            raise ConfigError(f"{ENV_PREFIX}DIR", value)
        overrides["venv_dir"] = value.strip()

    if (value := environ.get(f"{ENV_PREFIX}CREATOR")) is not None:
        overrides["creator"] = _parse_creator(f"{ENV_PREFIX}CREATOR", value)

    if (value := environ.get(f"{ENV_PREFIX}SEED")) is not None:
        overrides["seed"] = _parse_bool(f"{ENV_PREFIX}SEED", value)

    if (value := environ.get(f"{ENV_PREFIX}PACKAGES")) is not None:
        overrides["default_packages"] = tuple(
            pkg.strip() for pkg in value.split(",") if pkg.strip()
        )

    return replace(base, **overrides)
