"""Core type definitions"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from tempfile import TemporaryDirectory
from typing import Optional

Creator = Enum('Creator', {'UV': 'uv', 'VENV': 'venv'})
PackageManager = Enum('PackageManager', {'UV': 'uv', 'PIP': 'pip'})
RunnerType = Enum('RunnerType', {'PYTEST': 'pytest'})


@dataclass(frozen=True)
class VenvConfig:
    """Virtual environment configuration"""
    venv_dir: str = ".venv"
    creator: Creator = Creator.UV
    seed: bool = True
    default_packages: tuple[str, ...] = ("pytest", "maturin")
    env_setup: dict[str, str] = field(default_factory=lambda: {
        "PYTHONUNBUFFERED": "1",
        "PYTHONDONTWRITEBYTECODE": "1",
    })

    @property
    def package_manager(self) -> PackageManager:
        return PackageManager.UV if self.creator == Creator.UV else PackageManager.PIP


@dataclass(frozen=True)
class VirtualEnv:
    """Handle on a resolved virtual environment"""
    root: Path
    bin_dir: Path
    python: Path
    env_vars: dict[str, str]
    package_manager: PackageManager
    temp_dir: Optional[TemporaryDirectory] = None

    @property
    def is_temporary(self) -> bool:
        return self.temp_dir is not None


@dataclass(frozen=True)
class CommandResult:
    """Outcome of a spawned process"""
    cmd: list[str]
    returncode: Optional[int]
    stdout: str = ""
    stderr: str = ""
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.returncode == 0


@dataclass(frozen=True)
class Environment:
    """Registered virtual environment"""
    id: str
    venv: VirtualEnv
    created_at: datetime
