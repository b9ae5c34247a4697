"""Console login flow.

The request executor only ever *reads* the token. Writing it is the job
of this service, which the host calls from its login/logout screens.
"""

from __future__ import annotations

import logging

from pydantic import ValidationError

from pystorefront.credentials import TokenStore
from pystorefront.exceptions import StorefrontAuthError
from pystorefront.executor import RequestExecutor
from pystorefront.models.requests import HttpMethod, UnauthorizedBehavior
from pystorefront.models.user import AuthResponse, User

_logger = logging.getLogger(__name__)

LOGIN_PATH = "/api/auth/login"
CURRENT_USER_PATH = "/api/auth/me"


class AuthService:
    """Login, logout and "who am I" on top of a :class:`RequestExecutor`."""

    def __init__(self, executor: RequestExecutor, token_store: TokenStore) -> None:
        self._executor = executor
        self._tokens = token_store

    async def login(self, username: str, password: str) -> AuthResponse:
        """Authenticate and persist the returned bearer token.

        Raises
        ------
        HttpError
            Credentials rejected (the server's message is kept verbatim).
        StorefrontAuthError
            The server answered 2xx without a usable ``{token, user}`` body.
        """
        response = await self._executor.request(
            LOGIN_PATH,
            HttpMethod.POST,
            {"username": username, "password": password},
        )
        if response.empty:
            raise StorefrontAuthError(f"{LOGIN_PATH} returned no body")
        try:
            auth = AuthResponse.model_validate(response.data)
        except ValidationError as exc:
            raise StorefrontAuthError(f"{LOGIN_PATH} returned an invalid body: {exc}") from exc

        self._tokens.set_token(auth.token)
        _logger.debug("Logged in as user id=%s", auth.user.id)
        return auth

    async def current_user(self) -> User | None:
        """Return the logged-in user, or ``None`` when the token is missing or rejected."""
        response = await self._executor.request(
            CURRENT_USER_PATH,
            on_unauthorized=UnauthorizedBehavior.RETURN_NONE,
        )
        if response.empty:
            return None
        return User.model_validate(response.data)

    def logout(self) -> None:
        self._tokens.remove_token()

    def is_authenticated(self) -> bool:
        return bool(self._tokens.get_token())
