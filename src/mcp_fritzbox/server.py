"""MCP Server for FRITZ!Box smart home management.

This module provides an MCP (Model Context Protocol) server for controlling
FRITZ!Box smart home devices through AI assistants. It exposes device and
switch commands as MCP tools.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx
from dotenv import load_dotenv
from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from .auth import NetworkCredential, UserPassword, auth
from .client import FritzClient
from .errors import FritzError
from .smarthome import (
    ColorTemperature,
    HueSaturation,
    list_devices,
    list_switches,
    smart_device,
)
from .users import list_users

# Load environment variables
load_dotenv()

# Configure module logger
logger = logging.getLogger(__name__)

DEFAULT_URL = "http://fritz.box"


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() not in ("0", "false", "no", "off")


@dataclass
class ClientConfig:
    """Configuration for the FRITZ!Box client."""

    url: str
    username: str
    password: str
    verify_tls: bool = True

    @classmethod
    def from_env(cls) -> ClientConfig:
        """Create configuration from environment variables.

        Returns:
            ClientConfig with values from environment.
        """
        return cls(
            url=os.getenv("FRITZBOX_URL", DEFAULT_URL),
            username=os.getenv("FRITZBOX_USERNAME", ""),
            password=os.getenv("FRITZBOX_PASSWORD", ""),
            verify_tls=_env_flag("FRITZBOX_VERIFY_TLS", True),
        )


class ClientManager:
    """Manages the FRITZ!Box client lifecycle.

    This class provides task-safe access to a shared authenticated client,
    with lazy initialization on first use.

    Attributes:
        config: Client configuration.
    """

    def __init__(self, config: Optional[ClientConfig] = None) -> None:
        """Initialize the client manager.

        Args:
            config: Optional client configuration. If not provided,
                    configuration is loaded from environment variables.
        """
        self._config = config or ClientConfig.from_env()
        self._client: Optional[FritzClient] = None
        self._lock = asyncio.Lock()

    @property
    def config(self) -> ClientConfig:
        """Get the client configuration."""
        return self._config

    async def get_client(self) -> FritzClient:
        """Get or create the authenticated client.

        The router login happens on the first request made with it.

        Returns:
            FritzClient with authentication middleware attached.
        """
        async with self._lock:
            if self._client is None:
                logger.debug("Creating new FritzClient for %s", self._config.url)
                credential = NetworkCredential(self._config.username, self._config.password)
                self._client = FritzClient(
                    self._config.url,
                    verify=self._config.verify_tls,
                ).use(auth(UserPassword(credential)))
            return self._client

    async def reset_client(self) -> None:
        """Log out and drop the client, forcing a new login on next use."""
        async with self._lock:
            if self._client:
                client, self._client = self._client, None
                await client.aclose()
            logger.debug("Client reset")


# Global client manager instance
_client_manager: Optional[ClientManager] = None


def get_client_manager() -> ClientManager:
    """Get the global client manager.

    Returns:
        The global ClientManager instance.
    """
    global _client_manager
    if _client_manager is None:
        _client_manager = ClientManager()
    return _client_manager


# Initialize MCP server
server = Server("mcp-fritzbox")

_AIN_PROPERTY = {
    "type": "string",
    "description": "Actor identification number (AIN) of the device"
}


def _get_tool_definitions() -> List[Tool]:
    """Get the list of available tool definitions.

    Returns:
        List of Tool definitions for the MCP server.
    """
    return [
        Tool(
            name="list_devices",
            description="List all smart home devices known to the FRITZ!Box",
            inputSchema={
                "type": "object",
                "properties": {},
                "required": []
            }
        ),
        Tool(
            name="device_info",
            description="Get current information about a single smart home device",
            inputSchema={
                "type": "object",
                "properties": {"ain": _AIN_PROPERTY},
                "required": ["ain"]
            }
        ),
        Tool(
            name="set_device_power",
            description="Turn a smart home device on or off",
            inputSchema={
                "type": "object",
                "properties": {
                    "ain": _AIN_PROPERTY,
                    "on": {
                        "type": "boolean",
                        "description": "True to turn the device on, false to turn it off"
                    }
                },
                "required": ["ain", "on"]
            }
        ),
        Tool(
            name="set_device_level",
            description="Set brightness or height of a device, as raw level or percentage",
            inputSchema={
                "type": "object",
                "properties": {
                    "ain": _AIN_PROPERTY,
                    "level": {
                        "type": "integer",
                        "description": "Level between 0 and 255"
                    },
                    "percent": {
                        "type": "integer",
                        "description": "Level percentage between 0 and 100"
                    }
                },
                "required": ["ain"]
            }
        ),
        Tool(
            name="set_device_color",
            description="Set a color temperature or a hue/saturation color on a light",
            inputSchema={
                "type": "object",
                "properties": {
                    "ain": _AIN_PROPERTY,
                    "temperature": {
                        "type": "integer",
                        "description": "Color temperature in kelvin (2700-6500)"
                    },
                    "hue": {
                        "type": "integer",
                        "description": "Hue in degrees (0-359)"
                    },
                    "saturation": {
                        "type": "integer",
                        "description": "Saturation (0-255)"
                    }
                },
                "required": ["ain"]
            }
        ),
        Tool(
            name="list_switches",
            description="List the AINs of all switchable outlets",
            inputSchema={
                "type": "object",
                "properties": {},
                "required": []
            }
        ),
        Tool(
            name="list_users",
            description="List the user accounts registered on the FRITZ!Box",
            inputSchema={
                "type": "object",
                "properties": {},
                "required": []
            }
        )
    ]


async def _handle_tool_call(
    client: FritzClient,
    name: str,
    arguments: Dict[str, Any]
) -> Any:
    """Handle a tool call and return the result.

    Args:
        client: The authenticated FritzClient.
        name: The tool name.
        arguments: The tool arguments.

    Returns:
        The result of the tool call.

    Raises:
        ValueError: If the tool name or its arguments are invalid.
        FritzError: If the router request fails.
    """
    if name == "list_devices":
        return [device.to_dict() for device in await list_devices(client)]

    elif name == "device_info":
        device = await smart_device(client, arguments["ain"])
        return device.to_dict()

    elif name == "set_device_power":
        device = await smart_device(client, arguments["ain"])
        if arguments["on"]:
            await device.turn_on()
        else:
            await device.turn_off()
        return {"success": True}

    elif name == "set_device_level":
        device = await smart_device(client, arguments["ain"])
        if "percent" in arguments:
            await device.set_level_percent(int(arguments["percent"]))
        elif "level" in arguments:
            await device.set_level(int(arguments["level"]))
        else:
            raise ValueError("Either level or percent is required")
        return {"success": True}

    elif name == "set_device_color":
        device = await smart_device(client, arguments["ain"])
        if "temperature" in arguments:
            await device.set_color(ColorTemperature(int(arguments["temperature"])))
        elif "hue" in arguments and "saturation" in arguments:
            await device.set_color(
                HueSaturation(int(arguments["hue"]), int(arguments["saturation"]))
            )
        else:
            raise ValueError("Either temperature or hue and saturation are required")
        return {"success": True}

    elif name == "list_switches":
        return await list_switches(client)

    elif name == "list_users":
        return [user.to_dict() for user in await list_users(client)]

    else:
        raise ValueError(f"Unknown tool: {name}")


@server.list_tools()
async def list_tools() -> List[Tool]:
    """List available tools.

    Returns:
        List of available Tool definitions.
    """
    return _get_tool_definitions()


@server.call_tool()
async def call_tool(name: str, arguments: Dict[str, Any]) -> List[TextContent]:
    """Handle tool calls.

    Args:
        name: The tool name to call.
        arguments: The arguments for the tool.

    Returns:
        List containing a single TextContent with the JSON result.
    """
    manager = get_client_manager()
    client = await manager.get_client()

    try:
        result = await _handle_tool_call(client, name, arguments)
        return [TextContent(type="text", text=json.dumps(result, indent=2))]
    except KeyError as e:
        logger.warning("Missing argument for %s: %s", name, e)
        error = {"error": f"Missing argument: {e.args[0]}"}
        return [TextContent(type="text", text=json.dumps(error, indent=2))]
    except ValueError as e:
        logger.warning("Invalid tool call: %s", e)
        return [TextContent(type="text", text=json.dumps({"error": str(e)}, indent=2))]
    except (FritzError, httpx.HTTPError) as e:
        logger.error("Router error for %s: %s", name, e)
        return [TextContent(type="text", text=json.dumps({"error": str(e)}, indent=2))]


def main() -> None:
    """Main entry point for the MCP server."""
    # Configure logging
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    async def run() -> None:
        """Run the MCP server."""
        logger.info("Starting MCP FRITZ!Box server")
        try:
            async with stdio_server() as (read_stream, write_stream):
                await server.run(
                    read_stream,
                    write_stream,
                    server.create_initialization_options()
                )
        finally:
            await get_client_manager().reset_client()

    asyncio.run(run())


if __name__ == "__main__":
    main()
