"""Virtual environment location, creation and cleanup."""

import os
import shutil
import sys
import tempfile
from pathlib import Path
from typing import Mapping, Optional, Union

from venv_harness.config import load_config
from venv_harness.errors import BinNotFoundError, InvalidVenvError, VenvCreateError
from venv_harness.logging import get_logger
from venv_harness.types import Creator, VenvConfig, VirtualEnv
from venv_harness.venvs.commands import install_packages, run_venv_command

logger = get_logger(__name__)

PathLike = Union[str, os.PathLike]


def venv_bin_dir(root: Path) -> Path:
    """Binary directory of a venv for the current platform."""
    return root / ("Scripts" if os.name == "nt" else "bin")


def venv_python(root: Path) -> Path:
    """Interpreter path of a venv for the current platform."""
    return venv_bin_dir(root) / ("python.exe" if os.name == "nt" else "python")


def is_valid_venv(root: Path) -> bool:
    """Check that root has the layout of a virtual environment."""
    root = Path(root)
    return (
        (root / "pyvenv.cfg").is_file()
        and venv_bin_dir(root).is_dir()
        and venv_python(root).exists()
    )


def build_env_vars(
    root: Path, config: VenvConfig, base_env: Optional[Mapping[str, str]] = None
) -> dict[str, str]:
    """Process environment as seen by a shell after activating the venv."""
    env_vars = dict(os.environ if base_env is None else base_env)
    env_vars.pop("PYTHONHOME", None)
    env_vars.update(config.env_setup)

    current_path = env_vars.get("PATH", "")
    env_vars["PATH"] = os.pathsep.join(
        p for p in (str(venv_bin_dir(root)), current_path) if p
    )
    env_vars["VIRTUAL_ENV"] = str(root)
    return env_vars


def _make_venv(
    root: Path, config: VenvConfig, temp_dir: Optional[tempfile.TemporaryDirectory] = None
) -> VirtualEnv:
    return VirtualEnv(
        root=root,
        bin_dir=venv_bin_dir(root),
        python=venv_python(root),
        env_vars=build_env_vars(root, config),
        package_manager=config.package_manager,
        temp_dir=temp_dir,
    )


def _creator_command(root: Path, config: VenvConfig) -> tuple[str, list[str]]:
    match config.creator:
        case Creator.UV:
            args = ["venv"]
            if config.seed:
                args.append("--seed")
            return "uv", [*args, "--allow-existing", str(root)]
        case Creator.VENV:
            args = ["-m", "venv"]
            if not config.seed:
                args.append("--without-pip")
            return sys.executable, [*args, str(root)]
        case _:
            raise RuntimeError(f"Unsupported venv creator: {config.creator}")


async def _ensure_venv(venv: VirtualEnv, config: VenvConfig) -> VirtualEnv:
    root = venv.root

    if is_valid_venv(root):
        logger.info({"event": "venv_reused", "root": str(root)})
        return venv

    if root.exists() and (not root.is_dir() or any(root.iterdir())):
        raise InvalidVenvError(str(root))

    created_root = not root.exists()
    try:
        await _create_layout(venv, config)
        return await install_packages(venv, config.default_packages)
    except Exception:
        _discard_partial(root, created_root)
        raise


async def _create_layout(venv: VirtualEnv, config: VenvConfig) -> None:
    root = venv.root
    program, args = _creator_command(root, config)
    try:
        result = await run_venv_command(venv, program, args)
    except BinNotFoundError as e:
        raise VenvCreateError([program, *args], None, error=str(e)) from e

    if not result.success:
        raise VenvCreateError.from_result(result)
    if not is_valid_venv(root):
        raise InvalidVenvError(str(root))

    logger.info(
        {
            "event": "venv_created",
            "root": str(root),
            "creator": config.creator.value,
        }
    )


def _discard_partial(root: Path, created_root: bool) -> None:
    """Remove a venv whose setup failed so the next call starts from scratch."""
    logger.warning({"event": "discarding_partial_venv", "root": str(root)})

    if created_root:
        if root.exists():
            shutil.rmtree(root)
        return

    # root was an empty directory before creation, keep the directory itself
    for child in root.iterdir():
        if child.is_dir() and not child.is_symlink():
            shutil.rmtree(child)
        else:
            child.unlink()


async def create_venv(
    path: Optional[PathLike] = None, config: Optional[VenvConfig] = None
) -> VirtualEnv:
    """Locate the venv at path (or the configured default), creating it if absent."""
    config = config or load_config()
    root = Path(path if path is not None else config.venv_dir).absolute()

    return await _ensure_venv(_make_venv(root, config), config)


async def create_temp_venv(config: Optional[VenvConfig] = None) -> VirtualEnv:
    """Create a venv in a uniquely named temp directory, removed by cleanup_venv."""
    config = config or load_config()
    temp_dir = tempfile.TemporaryDirectory(prefix="venv-harness-")
    root = Path(temp_dir.name)

    try:
        return await _ensure_venv(_make_venv(root, config, temp_dir), config)
    except Exception:
        temp_dir.cleanup()
        raise


def cleanup_venv(venv: VirtualEnv) -> None:
    """Remove a temporary venv; persistent venvs are left in place."""
    if not venv.is_temporary:
        return

    logger.debug({"event": "cleaning_venv", "root": str(venv.root)})
    venv.temp_dir.cleanup()
