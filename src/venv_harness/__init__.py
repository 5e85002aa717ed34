"""Locate or create Python virtual environments and run tools inside them."""

from venv_harness.types import (
    Creator,
    PackageManager,
    VenvConfig,
    VirtualEnv,
    CommandResult,
)
from venv_harness.config import load_config
from venv_harness.venvs.venv import (
    create_venv,
    create_temp_venv,
    cleanup_venv,
    is_valid_venv,
)
from venv_harness.venvs.commands import (
    install_packages,
    run_venv_command,
    run_checked,
    run_module,
)
from venv_harness.builders.maturin import maturin_develop, add_maturin_dep
from venv_harness.test_runners.pytest import run_pytest
from venv_harness.errors import (
    VenvHarnessError,
    VenvCreateError,
    InvalidVenvError,
    InstallError,
    BuildError,
    BinNotFoundError,
    CommandFailedError,
)

__version__ = "0.1.0"

__all__ = [
    # Types
    "Creator",
    "PackageManager",
    "VenvConfig",
    "VirtualEnv",
    "CommandResult",
    "load_config",

    # Venv functions
    "create_venv",
    "create_temp_venv",
    "cleanup_venv",
    "is_valid_venv",

    # Commands
    "install_packages",
    "run_venv_command",
    "run_checked",
    "run_module",
    "maturin_develop",
    "add_maturin_dep",
    "run_pytest",

    # Error types
    "VenvHarnessError",
    "VenvCreateError",
    "InvalidVenvError",
    "InstallError",
    "BuildError",
    "BinNotFoundError",
    "CommandFailedError",
]
