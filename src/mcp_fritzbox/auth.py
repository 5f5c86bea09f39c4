"""Session authentication for the FRITZ!Box client.

The :func:`auth` middleware logs in on the first request, injects the
session id (``sid``) into every request, and logs out when the client is
closed:

    >>> handler = UserPassword(NetworkCredential("fritz1234", "secret"))
    >>> async with FritzClient("http://fritz.box").use(auth(handler)) as client:
    ...     await client.call(Switches.LIST, {"switchcmd": "getswitchlist"})
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import httpx

from .challenge import compute_response
from .client import FritzClient, Middleware, RequestFunc
from .errors import AuthenticationError
from .protocol.login_sid import LOGIN_SID, LOGOUT_SID, REQUEST_SID, VALIDATE_SID
from .transport import OutgoingRequest

# Configure module logger
logger = logging.getLogger(__name__)

SID_PARAM = "sid"


@dataclass(frozen=True)
class SessionInfo:
    """An authenticated router session."""

    sid: str


@dataclass(frozen=True)
class NetworkCredential:
    """Username and password for the router."""

    username: str
    password: str = ""

    def __repr__(self) -> str:
        return f"NetworkCredential(username={self.username!r}, password='***')"


def is_valid_sid(sid: str) -> bool:
    """The router reports "no session" as a sid made of zeros."""
    return bool(sid) and sid.strip("0") != ""


class AuthHandler(ABC):
    """Strategy for creating and ending router sessions."""

    @abstractmethod
    async def login(self, client: FritzClient) -> SessionInfo:
        """Create a new session using ``client``."""

    @abstractmethod
    async def logout(self, client: FritzClient, session: SessionInfo) -> None:
        """End ``session`` using ``client``."""


class UserPassword(AuthHandler):
    """Authentication using username and password.

    Attributes:
        credential: The username and password to log in with.
    """

    def __init__(self, credential: NetworkCredential) -> None:
        self.credential = credential

    async def login(self, client: FritzClient) -> SessionInfo:
        """Log in with the challenge-response procedure.

        Args:
            client: Client used for the login requests.

        Returns:
            The new session.

        Raises:
            AuthenticationError: If the router rejects the credentials.
            MalformedChallengeError: If the challenge cannot be parsed.
            RequestFailedError: If a login request fails.
        """
        state = await client.call(REQUEST_SID)
        challenge = state["sessionInfo"]["challenge"]
        logger.debug("Received login challenge")

        username = self.credential.username
        result = await client.call(LOGIN_SID, {
            "username": username,
            "response": compute_response(challenge, self.credential.password),
        })

        session_info = result["sessionInfo"]
        if not is_valid_sid(session_info["sid"]):
            block_time = int(session_info["blockTime"])
            logger.error("Login rejected for user %s (block time: %ds)", username, block_time)
            raise AuthenticationError(
                f"Login failed for user {username!r}", block_time=block_time
            )

        logger.info("Logged in as %s", username)
        return SessionInfo(sid=session_info["sid"])

    async def logout(self, client: FritzClient, session: SessionInfo) -> None:
        """End the session on the router."""
        async with await client.request(LOGOUT_SID, {"logout": "1", "sid": session.sid}) as response:
            await response.ensure_ok()
        logger.info("Logged out")

    @staticmethod
    def handle_challenge(challenge: str, password: str) -> str:
        """Compute the challenge response for ``password``."""
        return compute_response(challenge, password)


async def validate_session(client: FritzClient, session: SessionInfo) -> bool:
    """Check whether the router still accepts ``session``."""
    result = await client.call(VALIDATE_SID, {"sid": session.sid})
    return is_valid_sid(result["sessionInfo"]["sid"])


class SessionStore:
    """Holds the session of one authenticated client.

    Login is single-flight: concurrent requests wait for the same login
    instead of each starting their own.
    """

    def __init__(self) -> None:
        self.session: Optional[SessionInfo] = None
        self._lock = asyncio.Lock()

    async def get_or_login(self, handler: AuthHandler, client: FritzClient) -> SessionInfo:
        session = self.session
        if session is not None:
            return session
        async with self._lock:
            if self.session is None:
                self.session = await handler.login(client)
            return self.session

    async def take(self) -> Optional[SessionInfo]:
        """Remove and return the current session."""
        async with self._lock:
            session, self.session = self.session, None
            return session


class AuthMiddleware(Middleware):
    """Middleware that keeps a session and adds its ``sid`` to requests.

    Attributes:
        handler: The authentication strategy.
        store: Session state of the composed client.
    """

    def __init__(self, handler: AuthHandler) -> None:
        self.handler = handler
        self.store = SessionStore()

    async def request(
        self,
        request: OutgoingRequest,
        next_: RequestFunc,
        client: FritzClient,
    ) -> httpx.Response:
        session = await self.store.get_or_login(self.handler, client)

        request.set_query_param(SID_PARAM, session.sid)
        if request.body is not None:
            request.body[SID_PARAM] = session.sid

        return await next_(request)

    async def dispose(self, client: FritzClient) -> None:
        session = await self.store.take()
        if session is None:
            return
        await self.handler.logout(client, session)


def auth(handler: AuthHandler) -> AuthMiddleware:
    """Create middleware that authenticates requests with ``handler``."""
    return AuthMiddleware(handler)
