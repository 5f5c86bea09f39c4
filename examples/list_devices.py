#!/usr/bin/env python3
"""List all smart home devices from a FRITZ!Box."""

import asyncio
import json
import os

from dotenv import load_dotenv

from mcp_fritzbox import FritzClient, NetworkCredential, UserPassword, auth
from mcp_fritzbox.smarthome import list_devices

# Load environment variables from .env file
load_dotenv()


async def run(url: str, username: str, password: str) -> None:
    credential = NetworkCredential(username, password)

    async with FritzClient(url).use(auth(UserPassword(credential))) as client:
        devices = await list_devices(client)

        print("\nSmart Home Devices:")
        print("-" * 80)

        if not devices:
            print("No devices found")
            return

        print(f"{'Name':<24} {'AIN':<20} {'Product':<20} {'Present':<8}")
        print("-" * 80)

        for device in devices:
            print(f"{device.name:<24} "
                  f"{device.actor_id:<20} "
                  f"{device.product_name:<20} "
                  f"{'yes' if device.present else 'no':<8}")

        # Also print as JSON for debugging
        print("\n\nRaw JSON output:")
        print(json.dumps([device.to_dict() for device in devices], indent=2))

    print("\nDisconnected from router")


def main():
    # Get router configuration from environment
    url = os.getenv("FRITZBOX_URL", "http://fritz.box")
    username = os.getenv("FRITZBOX_USERNAME", "")
    password = os.getenv("FRITZBOX_PASSWORD")

    if not password:
        print("Error: FRITZBOX_PASSWORD not set in environment or .env file")
        print("Create a .env file with:")
        print("  FRITZBOX_URL=http://fritz.box")
        print("  FRITZBOX_USERNAME=fritz1234")
        print("  FRITZBOX_PASSWORD=your_password")
        return

    print(f"Connecting to router at {url}...")
    asyncio.run(run(url, username, password))


if __name__ == "__main__":
    main()
