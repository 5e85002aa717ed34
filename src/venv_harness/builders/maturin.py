"""Build and install a maturin package into a venv."""

from pathlib import Path
from typing import Sequence, Union

from venv_harness.errors import BuildError
from venv_harness.logging import get_logger
from venv_harness.types import PackageManager, VirtualEnv
from venv_harness.venvs.commands import run_checked

logger = get_logger(__name__)


async def add_maturin_dep(
    venv: VirtualEnv, path: Union[str, Path], extra_args: Sequence[str] = ()
) -> VirtualEnv:
    """Build the maturin project at path and install it into the venv."""
    args = ["develop"]
    if venv.package_manager == PackageManager.UV:
        args.append("--uv")
    args.extend(extra_args)

    logger.info(
        {"event": "maturin_develop", "root": str(venv.root), "project": str(path)}
    )

    await run_checked(
        venv, "maturin", args, error_cls=BuildError, cwd=Path(path), venv_only=True
    )
    return venv


async def maturin_develop(venv: VirtualEnv, path: Union[str, Path] = ".") -> VirtualEnv:
    """Run maturin develop for the project in path (the current directory by default)."""
    return await add_maturin_dep(venv, path)
