"""Router user accounts."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .client import FritzClient
from .protocol.login_sid import REQUEST_SID

SERIALIZATION_VERSION = 1


@dataclass(frozen=True)
class FritzUser:
    """A user registered on the router."""

    name: str
    was_last_active: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "version": SERIALIZATION_VERSION,
            "name": self.name,
            "was_last_active": self.was_last_active,
        }


async def list_users(client: FritzClient) -> List[FritzUser]:
    """List the users shown on the router login page.

    Args:
        client: The client used to make the request.

    Returns:
        All registered users.
    """
    state = await client.call(REQUEST_SID)
    return [
        FritzUser(name=entry["user"], was_last_active=entry.get("last") == "1")
        for entry in state["sessionInfo"]["users"]
    ]


async def last_active_user(client: FritzClient) -> Optional[FritzUser]:
    """The user who logged in last, or ``None``."""
    for user in await list_users(client):
        if user.was_last_active:
            return user
    return None
