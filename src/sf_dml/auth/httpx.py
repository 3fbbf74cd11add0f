import typing

import httpx

from ..logger import getLogger
from .types import SalesforceLogin, SalesforceToken, TokenRefreshCallback

LOGGER = getLogger("auth")


class SalesforceAuth(httpx.Auth):
    """Attaches the session token to each request, logging in when needed"""

    login: SalesforceLogin | None
    callback: TokenRefreshCallback | None
    token: SalesforceToken | None

    def __init__(
        self,
        login: SalesforceLogin | None = None,
        session_token: SalesforceToken | None = None,
        callback: TokenRefreshCallback | None = None,
    ):
        self.login = login
        self.token = session_token
        self.callback = callback

    def _login_flow(self) -> typing.Generator[httpx.Request, httpx.Response, None]:
        assert self.login is not None, "No login method provided"
        login_flow = self.login()
        try:
            login_request = next(login_flow)
            while True:
                if isinstance(login_request, httpx.Request):
                    login_response = yield login_request
                    login_request = login_flow.send(login_response)
                else:
                    login_request = next(login_flow)
        except StopIteration as login_result:
            new_token: SalesforceToken = login_result.value
            self.token = new_token
            LOGGER.debug("Obtained session token for %s", new_token.instance)
            if self.callback is not None:
                self.callback(new_token)

    def auth_flow(
        self, request: httpx.Request
    ) -> typing.Generator[httpx.Request, httpx.Response, None]:
        if self.token is None:
            yield from self._login_flow()
            assert self.token is not None, "Failed to perform initial login"

        request.headers["Authorization"] = f"Bearer {self.token.token}"
        response = yield request

        if response.status_code == 401 and self.login and _is_invalid_session(response):
            LOGGER.info("Session expired, logging in again")
            yield from self._login_flow()
            request.headers["Authorization"] = f"Bearer {self.token.token}"
            yield request


def _is_invalid_session(response: httpx.Response) -> bool:
    response.read()
    try:
        body = response.json()
    except ValueError:
        return False
    if not isinstance(body, list) or not body:
        return False
    return "INVALID_SESSION_ID" in (
        body[0].get("errorCode"),
        body[0].get("errorDetails"),
    )
