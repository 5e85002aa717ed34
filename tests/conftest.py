import os
import stat
from pathlib import Path

import pytest
import pytest_asyncio

from venv_harness.types import Creator, VenvConfig, VirtualEnv
from venv_harness.venvs.venv import create_venv

posix_only = pytest.mark.skipif(os.name == "nt", reason="uses /bin/sh scripts")


def write_script(directory: Path, name: str, body: str) -> Path:
    """Write an executable shell script standing in for an external tool"""
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / name
    path.write_text(f"#!/bin/sh\n{body}\n")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


@pytest.fixture
def venv_config() -> VenvConfig:
    """Stdlib venv creator without pip or default packages, no network needed"""
    return VenvConfig(creator=Creator.VENV, seed=False, default_packages=())


@pytest_asyncio.fixture
async def venv(tmp_path: Path, venv_config: VenvConfig) -> VirtualEnv:
    """Create a real venv under the test's temp directory"""
    return await create_venv(tmp_path / ".venv-test", venv_config)
