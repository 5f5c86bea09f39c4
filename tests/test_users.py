"""Tests for router user listing."""

import httpx
import pytest

from mcp_fritzbox.client import FritzClient
from mcp_fritzbox.users import FritzUser, last_active_user, list_users

BASE_URL = "http://fritz.box"


def login_page(users) -> httpx.Response:
    return httpx.Response(200, json={
        "device": {},
        "sessionInfo": {
            "sid": "0000000000000000",
            "challenge": "2$60000$aa$6000$bb",
            "blockTime": 0,
            "users": users,
        },
    })


class TestFritzUser:
    """Tests for the FritzUser dataclass."""

    def test_to_dict(self) -> None:
        """Test serialization includes the format version."""
        user = FritzUser(name="fritz1234", was_last_active=True)
        assert user.to_dict() == {
            "version": 1,
            "name": "fritz1234",
            "was_last_active": True,
        }

    def test_default_not_last_active(self) -> None:
        """Test users are not last active by default."""
        assert FritzUser("guest").was_last_active is False


class TestListUsers:
    """Tests for list_users and last_active_user."""

    @pytest.mark.asyncio
    async def test_list_users(self) -> None:
        """Test users are read from the unauthenticated login page."""
        client = FritzClient.create_test_client(
            BASE_URL,
            lambda request: login_page([{"user": "fritz1234", "last": "1"}, {"user": "guest"}]),
        )

        users = await list_users(client)

        assert users == [FritzUser("fritz1234", True), FritzUser("guest", False)]

    @pytest.mark.asyncio
    async def test_last_active_user(self) -> None:
        """Test the last active user is found."""
        client = FritzClient.create_test_client(
            BASE_URL,
            lambda request: login_page([{"user": "guest"}, {"user": "fritz1234", "last": "1"}]),
        )
        assert await last_active_user(client) == FritzUser("fritz1234", True)

    @pytest.mark.asyncio
    async def test_no_last_active_user(self) -> None:
        """Test None is returned when nobody logged in last."""
        client = FritzClient.create_test_client(BASE_URL, lambda request: login_page([]))
        assert await last_active_user(client) is None
