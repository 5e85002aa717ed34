"""MCP server implementation."""
import asyncio
import json
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, List

import mcp.types as types
from mcp.server.lowlevel import Server
from mcp.server.models import InitializationOptions
from mcp.server import stdio

from venv_harness.builders.maturin import maturin_develop
from venv_harness.config import load_config
from venv_harness.environments.environment import (
    cleanup_environment,
    create_environment,
    require_environment,
    run_environment_tests,
)
from venv_harness.errors import VenvHarnessError, log_error
from venv_harness.logging import configure_logging, get_logger
from venv_harness.types import Environment
from venv_harness.venvs.commands import install_packages, run_venv_command

logger = get_logger("server")

SERVER_NAME = "venv-harness"
SERVER_VERSION = "0.1.0"

_ENV_ID = {"type": "string", "description": "Environment identifier"}
_ARGS = {"type": "array", "items": {"type": "string"}, "description": "Arguments"}

tools = [
    types.Tool(
        name="venv_create",
        description="Locate or create a Python virtual environment",
        inputSchema={
            "type": "object",
            "properties": {
                "path": {"type": "string", "description": "Venv directory (defaults to .venv)"},
                "temporary": {"type": "boolean", "description": "Create in a temp directory"},
                "packages": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Packages to install into a new venv",
                },
            },
        },
    ),
    types.Tool(
        name="venv_install",
        description="Install packages into a virtual environment",
        inputSchema={
            "type": "object",
            "properties": {
                "env_id": _ENV_ID,
                "packages": {"type": "array", "items": {"type": "string"}},
            },
            "required": ["env_id", "packages"],
        },
    ),
    types.Tool(
        name="venv_develop",
        description="Build a maturin project and install it into a virtual environment",
        inputSchema={
            "type": "object",
            "properties": {
                "env_id": _ENV_ID,
                "path": {"type": "string", "description": "Project directory"},
            },
            "required": ["env_id"],
        },
    ),
    types.Tool(
        name="venv_run",
        description="Run a program with a virtual environment activated",
        inputSchema={
            "type": "object",
            "properties": {
                "env_id": _ENV_ID,
                "program": {"type": "string", "description": "Program name or path"},
                "args": _ARGS,
                "cwd": {"type": "string", "description": "Working directory"},
            },
            "required": ["env_id", "program"],
        },
    ),
    types.Tool(
        name="venv_run_tests",
        description="Run the virtual environment's pytest",
        inputSchema={
            "type": "object",
            "properties": {
                "env_id": _ENV_ID,
                "args": _ARGS,
                "cwd": {"type": "string", "description": "Working directory"},
            },
            "required": ["env_id"],
        },
    ),
    types.Tool(
        name="venv_cleanup",
        description="Forget a virtual environment and remove it if temporary",
        inputSchema={
            "type": "object",
            "properties": {"env_id": _ENV_ID},
            "required": ["env_id"],
        },
    ),
]


def _text(payload: Dict[str, Any]) -> list[types.TextContent]:
    return [types.TextContent(type="text", text=json.dumps(payload))]


def _describe(env: Environment) -> Dict[str, Any]:
    return {
        "id": env.id,
        "root": str(env.venv.root),
        "python": str(env.venv.python),
        "temporary": env.venv.is_temporary,
        "created_at": env.created_at.isoformat(),
    }


async def handle_tool_call(name: str, arguments: Dict[str, Any]) -> list[types.TextContent]:
    """Dispatch a tool call and wrap the outcome as a JSON payload."""
    try:
        logger.debug(f"Tool call received: {name} with arguments {arguments}")

        if name == "venv_create":
            config = load_config()
            if "packages" in arguments:
                config = replace(config, default_packages=tuple(arguments["packages"]))
            env = await create_environment(
                arguments.get("path"), config, temporary=arguments.get("temporary", False)
            )
            return _text({"success": True, "data": _describe(env)})

        elif name == "venv_install":
            env = require_environment(arguments["env_id"])
            await install_packages(env.venv, arguments["packages"])
            return _text({"success": True, "data": _describe(env)})

        elif name == "venv_develop":
            env = require_environment(arguments["env_id"])
            await maturin_develop(env.venv, arguments.get("path", "."))
            return _text({"success": True, "data": _describe(env)})

        elif name == "venv_run":
            env = require_environment(arguments["env_id"])
            cwd = arguments.get("cwd")
            result = await run_venv_command(
                env.venv,
                arguments["program"],
                arguments.get("args", []),
                cwd=Path(cwd) if cwd else None,
            )
            return _text({
                "success": result.success,
                "data": {
                    "cmd": result.cmd,
                    "returncode": result.returncode,
                    "stdout": result.stdout,
                    "stderr": result.stderr,
                    "error": result.error,
                },
            })

        elif name == "venv_run_tests":
            env = require_environment(arguments["env_id"])
            results = await run_environment_tests(
                env, arguments.get("args", []), arguments.get("cwd")
            )
            return _text({"success": results["success"], "data": results})

        elif name == "venv_cleanup":
            env = require_environment(arguments["env_id"])
            cleanup_environment(env)
            return _text({
                "success": True,
                "data": {"message": "Environment cleaned up successfully"},
            })

        return _text({"success": False, "error": f"Unknown tool: {name}"})

    except VenvHarnessError as e:
        log_error(e, {"tool": name}, logger)
        return _text({"success": False, "error": str(e), "details": e.details})
    except Exception as e:
        log_error(e, {"tool": name}, logger)
        return _text({"success": False, "error": str(e)})


async def init_server() -> Server:
    logger.info(f"Registered tools: {', '.join(t.name for t in tools)}")

    server = Server(SERVER_NAME)

    @server.list_tools()
    async def list_tools() -> List[types.Tool]:
        logger.debug("Tools requested")
        return tools

    @server.call_tool()
    async def call_tool(name: str, arguments: Dict[str, Any]) -> list[types.TextContent]:
        return await handle_tool_call(name, arguments or {})

    return server


async def serve() -> None:
    configure_logging()
    logger.info("Starting venv harness server")
    server = await init_server()
    async with stdio.stdio_server() as (read_stream, write_stream):
        init_options = InitializationOptions(
            server_name=SERVER_NAME,
            server_version=SERVER_VERSION,
            capabilities=types.ServerCapabilities(
                tools=types.ToolsCapability(listChanged=False),
                logging=types.LoggingCapability(),
            ),
        )
        await server.run(read_stream, write_stream, init_options)


def main() -> None:
    """Run the MCP server."""
    asyncio.run(serve())
