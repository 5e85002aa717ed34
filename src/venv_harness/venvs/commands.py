"""Command execution inside a virtual environment."""

import asyncio
import os
import shutil
from pathlib import Path
from typing import Optional, Sequence, Type

from venv_harness.errors import (
    BinNotFoundError,
    CommandFailedError,
    InstallError,
    StepFailedError,
)
from venv_harness.logging import get_logger
from venv_harness.types import CommandResult, PackageManager, VirtualEnv

logger = get_logger(__name__)


def resolve_program(
    venv: VirtualEnv, program: str, search_path: Optional[str] = None
) -> str:
    """Resolve a program on the activated PATH, venv binaries first."""
    if os.sep in program or (os.altsep and os.altsep in program):
        return program

    if search_path is None:
        search_path = venv.env_vars.get("PATH", str(venv.bin_dir))
    resolved = shutil.which(program, path=search_path)
    if not resolved:
        raise BinNotFoundError(program, search_path)
    return resolved


def resolve_venv_binary(venv: VirtualEnv, name: str) -> str:
    """Resolve a binary strictly inside the venv binary directory."""
    resolved = shutil.which(name, path=str(venv.bin_dir))
    if not resolved:
        raise BinNotFoundError(name, str(venv.bin_dir))
    return resolved


async def run_venv_command(
    venv: VirtualEnv,
    program: str,
    args: Sequence[str] = (),
    cwd: Optional[Path] = None,
    env_vars: Optional[dict[str, str]] = None,
    venv_only: bool = False,
) -> CommandResult:
    """Run a program with the venv activated and wait for it to exit."""
    cmd_env = {**venv.env_vars, **(env_vars or {})}
    if venv_only:
        resolved = resolve_venv_binary(venv, program)
    else:
        resolved = resolve_program(venv, program, cmd_env.get("PATH"))
    cmd = [resolved, *(str(arg) for arg in args)]

    logger.debug({"event": "venv_cmd_exec", "cmd": cmd, "cwd": str(cwd) if cwd else None})

    try:
        process = await asyncio.create_subprocess_exec(
            *cmd,
            cwd=cwd,
            env=cmd_env,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        logger.error({"event": "venv_cmd_launch_failed", "cmd": cmd, "error": str(e)})
        return CommandResult(cmd=cmd, returncode=None, error=str(e))

    stdout, stderr = await process.communicate()
    stdout_text = stdout.decode(errors="replace") if stdout else ""
    stderr_text = stderr.decode(errors="replace") if stderr else ""

    if stdout_text:
        logger.debug({"event": "venv_cmd_stdout", "cmd": cmd, "output": stdout_text})
    if stderr_text:
        logger.debug({"event": "venv_cmd_stderr", "cmd": cmd, "output": stderr_text})

    logger.debug(
        {"event": "venv_cmd_complete", "cmd": cmd, "returncode": process.returncode}
    )

    return CommandResult(
        cmd=cmd,
        returncode=process.returncode,
        stdout=stdout_text,
        stderr=stderr_text,
    )


async def run_checked(
    venv: VirtualEnv,
    program: str,
    args: Sequence[str] = (),
    error_cls: Type[StepFailedError] = CommandFailedError,
    **kwargs,
) -> CommandResult:
    """Run a command that is expected to succeed."""
    result = await run_venv_command(venv, program, args, **kwargs)
    if not result.success:
        raise error_cls.from_result(result)
    return result


async def run_module(
    venv: VirtualEnv, module: str, args: Sequence[str] = (), cwd: Optional[Path] = None
) -> CommandResult:
    """Execute a python module with the venv interpreter."""
    return await run_checked(
        venv, "python", ["-m", module, *args], cwd=cwd, venv_only=True
    )


async def install_packages(venv: VirtualEnv, packages: Sequence[str]) -> VirtualEnv:
    """Install packages into the venv using its package manager."""
    if not packages:
        return venv

    logger.info(
        {
            "event": "installing_packages",
            "root": str(venv.root),
            "package_manager": venv.package_manager.value,
            "packages": list(packages),
        }
    )

    match venv.package_manager:
        case PackageManager.UV:
            await run_checked(
                venv, "uv", ["pip", "install", *packages], error_cls=InstallError
            )
        case PackageManager.PIP:
            await run_checked(
                venv,
                "python",
                ["-m", "pip", "install", *packages],
                error_cls=InstallError,
                venv_only=True,
            )
        case _:
            raise RuntimeError(f"Unsupported package manager: {venv.package_manager}")

    return venv
