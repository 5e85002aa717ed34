"""Registry of virtual environments created through the server."""
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

from fuuid import b58_fuuid

from venv_harness.errors import UnknownEnvironmentError
from venv_harness.logging import get_logger
from venv_harness.test_runners.pytest import run_pytest
from venv_harness.types import Environment, VenvConfig
from venv_harness.venvs.venv import cleanup_venv, create_temp_venv, create_venv

logger = get_logger(__name__)

# In-memory environment store
_ENVIRONMENTS: Dict[str, Environment] = {}


async def create_environment(
    path: Optional[str] = None, config: Optional[VenvConfig] = None, temporary: bool = False
) -> Environment:
    """Locate or create a venv and register it under a new id."""
    if temporary:
        venv = await create_temp_venv(config)
    else:
        venv = await create_venv(path, config)

    env = Environment(
        id=b58_fuuid(),
        venv=venv,
        created_at=datetime.now(timezone.utc),
    )
    _ENVIRONMENTS[env.id] = env

    logger.info({"event": "environment_registered", "id": env.id, "root": str(venv.root)})
    return env


def get_environment(env_id: str) -> Optional[Environment]:
    """Get environment by ID."""
    return _ENVIRONMENTS.get(env_id)


def require_environment(env_id: str) -> Environment:
    """Get environment by ID or raise UnknownEnvironmentError."""
    env = get_environment(env_id)
    if env is None:
        raise UnknownEnvironmentError(env_id)
    return env


async def run_environment_tests(
    env: Environment, args: Sequence[str] = (), cwd: Optional[str] = None
) -> Dict[str, Any]:
    """Run pytest in environment."""
    return await run_pytest(env.venv, args, Path(cwd) if cwd else None)


def cleanup_environment(env: Environment) -> None:
    """Forget the environment and remove it if it is temporary."""
    _ENVIRONMENTS.pop(env.id, None)
    cleanup_venv(env.venv)
