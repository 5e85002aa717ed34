"""Runner implementation for pytest"""

from pathlib import Path
from typing import Any, Dict, Optional, Sequence

from venv_harness.errors import BinNotFoundError
from venv_harness.logging import get_logger
from venv_harness.types import RunnerType, VirtualEnv
from venv_harness.venvs.commands import resolve_venv_binary, run_venv_command

logger = get_logger(__name__)

STATUSES = {
    "PASSED": "passed",
    "FAILED": "failed",
    "SKIPPED": "skipped",
    "ERROR": "error",
}


def parse_pytest_output(stdout_text: str) -> Dict[str, Any]:
    """Collect per-test outcomes from `pytest -v` output"""
    tests = []
    summary = {"total": 0, "passed": 0, "failed": 0, "skipped": 0, "error": 0}

    for line in stdout_text.splitlines():
        if "::" not in line:
            continue
        parts = line.split()
        if len(parts) < 2 or parts[1] not in STATUSES:
            continue

        status = STATUSES[parts[1]]
        tests.append({"nodeid": parts[0], "outcome": status})
        summary[status] += 1
        summary["total"] += 1

    return {"summary": summary, "tests": tests}


async def run_pytest(
    venv: VirtualEnv, args: Sequence[str] = (), cwd: Optional[Path] = None
) -> Dict[str, Any]:
    """Run the venv's pytest and parse results"""
    logger.debug({"event": "starting_pytest_run", "root": str(venv.root), "cwd": str(cwd)})

    result = await run_venv_command(
        venv, "pytest", ["-v", "--tb=short", *args], cwd=cwd, venv_only=True
    )

    # pytest exits 1 when tests fail, anything else means the run itself broke
    if result.returncode not in (0, 1):
        logger.error(
            {
                "event": "pytest_execution_failed",
                "returncode": result.returncode,
                "error": result.error or result.stderr,
            }
        )
        return {
            "runner": RunnerType.PYTEST.value,
            "success": False,
            "returncode": result.returncode,
            "summary": {"total": 0, "passed": 0, "failed": 0, "skipped": 0, "error": 0},
            "tests": [],
            "stdout": result.stdout,
            "stderr": result.stderr,
            "error": "Pytest execution failed",
        }

    parsed = parse_pytest_output(result.stdout)

    logger.info(
        {
            "event": "pytest_run_complete",
            "returncode": result.returncode,
            "summary": parsed["summary"],
        }
    )

    return {
        "runner": RunnerType.PYTEST.value,
        "success": result.success,
        "returncode": result.returncode,
        "summary": parsed["summary"],
        "tests": parsed["tests"],
        "stdout": result.stdout,
        "stderr": result.stderr,
    }


def check_pytest(venv: VirtualEnv) -> bool:
    """Check if pytest is installed in this venv."""
    try:
        resolve_venv_binary(venv, "pytest")
    except BinNotFoundError:
        return False
    return True
