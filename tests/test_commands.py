"""Tests for command execution inside a venv."""

import json
import os
from dataclasses import replace

import pytest

from venv_harness.errors import BinNotFoundError, CommandFailedError, InstallError
from venv_harness.types import PackageManager
from venv_harness.venvs.commands import (
    install_packages,
    resolve_program,
    resolve_venv_binary,
    run_checked,
    run_module,
    run_venv_command,
)

from conftest import posix_only, write_script

PRINT_ENV = (
    "import json, os; "
    "print(json.dumps({'VIRTUAL_ENV': os.environ.get('VIRTUAL_ENV'), 'PATH': os.environ['PATH']}))"
)


@posix_only
@pytest.mark.asyncio
async def test_run_echo(venv):
    """Test running an ambient program with the venv activated."""
    result = await run_venv_command(venv, "echo", ["hello"])

    assert result.success
    assert result.returncode == 0
    assert "hello" in result.stdout


@pytest.mark.asyncio
async def test_nonzero_exit_is_failure(venv):
    result = await run_venv_command(
        venv, "python", ["-c", "import sys; sys.exit(3)"], venv_only=True
    )

    assert not result.success
    assert result.returncode == 3


@pytest.mark.asyncio
async def test_run_checked_raises_with_exit_code(venv):
    with pytest.raises(CommandFailedError) as exc_info:
        await run_checked(
            venv,
            "python",
            ["-c", "import sys; print('oops', file=sys.stderr); sys.exit(3)"],
            venv_only=True,
        )

    error = exc_info.value
    assert error.returncode == 3
    assert "oops" in error.stderr
    assert error.details["step"] == "command"


@pytest.mark.asyncio
async def test_run_checked_returns_result(venv):
    result = await run_checked(venv, "python", ["-c", "print('ok')"], venv_only=True)

    assert result.stdout.strip() == "ok"


@pytest.mark.asyncio
async def test_spawned_command_sees_activated_env(venv):
    """Test VIRTUAL_ENV and PATH as observed by the child process."""
    result = await run_checked(venv, "python", ["-c", PRINT_ENV], venv_only=True)
    observed = json.loads(result.stdout)

    assert observed["VIRTUAL_ENV"] == str(venv.root)
    assert observed["PATH"].split(os.pathsep)[0] == str(venv.bin_dir)


@pytest.mark.asyncio
async def test_extra_env_vars_are_passed(venv):
    result = await run_checked(
        venv,
        "python",
        ["-c", "import os; print(os.environ['HARNESS_FLAG'])"],
        env_vars={"HARNESS_FLAG": "on"},
        venv_only=True,
    )

    assert result.stdout.strip() == "on"


@pytest.mark.asyncio
async def test_venv_only_does_not_fall_back_to_ambient(venv):
    """Test that a tool missing from the venv is not taken from PATH."""
    with pytest.raises(BinNotFoundError) as exc_info:
        await run_venv_command(venv, "pytest", ["--version"], venv_only=True)

    assert exc_info.value.details["search_path"] == str(venv.bin_dir)


@pytest.mark.asyncio
async def test_unknown_program_not_found(venv):
    with pytest.raises(BinNotFoundError):
        await run_venv_command(venv, "definitely-not-a-real-program-xyz")


@posix_only
def test_resolve_program_prefers_venv_bin(venv):
    write_script(venv.bin_dir, "echo", "printf 'venv-echo\\n'")

    assert resolve_program(venv, "echo") == str(venv.bin_dir / "echo")


@posix_only
@pytest.mark.asyncio
async def test_venv_binary_shadows_ambient(venv):
    write_script(venv.bin_dir, "echo", "printf 'venv-echo\\n'")

    result = await run_venv_command(venv, "echo", ["hello"])

    assert result.stdout.strip() == "venv-echo"


def test_resolve_venv_binary_finds_python(venv):
    resolved = resolve_venv_binary(venv, "python")

    assert os.path.dirname(resolved) == str(venv.bin_dir)


@pytest.mark.asyncio
async def test_launch_failure_is_reported(venv, tmp_path):
    """Test that a program that cannot be launched gives a failed result."""
    missing = tmp_path / "missing" / "program"

    result = await run_venv_command(venv, str(missing))

    assert not result.success
    assert result.returncode is None
    assert result.error

    with pytest.raises(CommandFailedError) as exc_info:
        await run_checked(venv, str(missing))
    assert exc_info.value.returncode is None


@pytest.mark.asyncio
async def test_run_module(venv):
    result = await run_module(venv, "json.tool", ["--help"])

    assert result.success
    assert "usage" in result.stdout.lower()


@pytest.mark.asyncio
async def test_run_module_missing(venv):
    with pytest.raises(CommandFailedError) as exc_info:
        await run_module(venv, "no_such_module_xyz")

    assert exc_info.value.returncode == 1


@pytest.mark.asyncio
async def test_install_without_pip_fails(venv):
    """Test that a failing installer raises InstallError."""
    with pytest.raises(InstallError) as exc_info:
        await install_packages(venv, ["requests"])

    assert exc_info.value.details["step"] == "install"
    assert exc_info.value.returncode != 0


@pytest.mark.asyncio
async def test_install_nothing_is_noop(venv):
    assert await install_packages(venv, []) is venv


@posix_only
@pytest.mark.asyncio
async def test_install_with_uv(venv, tmp_path):
    """Test that uv installs target the activated venv."""
    record = tmp_path / "uv-args.txt"
    write_script(
        venv.bin_dir,
        "uv",
        f'printf "%s\\n" "$VIRTUAL_ENV" "$@" > "{record}"',
    )
    uv_venv = replace(venv, package_manager=PackageManager.UV)

    assert await install_packages(uv_venv, ["pytest", "maturin"]) is uv_venv
    assert record.read_text().splitlines() == [
        str(venv.root), "pip", "install", "pytest", "maturin"
    ]


@posix_only
@pytest.mark.asyncio
async def test_path_override_used_for_lookup(venv, tmp_path):
    """Test that a PATH passed in env_vars is searched as well as given to the child."""
    extra_bin = tmp_path / "extra-bin"
    write_script(extra_bin, "only-in-extra", "printf 'found\\n'")
    path = os.pathsep.join([str(extra_bin), venv.env_vars["PATH"]])

    result = await run_venv_command(venv, "only-in-extra", env_vars={"PATH": path})

    assert result.success
    assert result.stdout.strip() == "found"

    with pytest.raises(BinNotFoundError):
        await run_venv_command(venv, "only-in-extra")
