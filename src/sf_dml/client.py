from enum import Enum
from functools import cached_property
from types import TracebackType
from typing import ClassVar

from typing_extensions import override
from httpx import URL, Client, Response

from .logger import getLogger
from .metrics import ApiUsage, parse_api_usage
from .exceptions import raise_for_status
from .auth import (
    SalesforceAuth,
    SalesforceLogin,
    SalesforceToken,
    TokenRefreshCallback,
)
from .apimodels import ApiVersion, UserInfo

LOGGER = getLogger("client")


class OrgType(Enum):
    PRODUCTION = "Production"
    SCRATCH = "Scratch"
    SANDBOX = "Sandbox"
    DEVELOPER = "Developer"


class SalesforceClient(Client):
    """
    An httpx Client bound to a single Salesforce org.

    Clients register themselves under ``connection_name`` so that SObject
    types bound to that connection can find them without passing the client
    around explicitly.
    """

    DEFAULT_CONNECTION_NAME: ClassVar[str] = "default"
    _connections: ClassVar[dict[str, "SalesforceClient"]] = {}

    token_refresh_callback: TokenRefreshCallback | None
    api_version: ApiVersion | None = None
    api_usage: ApiUsage | None = None
    _userinfo: UserInfo | None = None
    _auth: SalesforceAuth
    connection_name: str

    def __init__(
        self,
        connection_name: str = DEFAULT_CONNECTION_NAME,
        login: SalesforceLogin | None = None,
        token: SalesforceToken | None = None,
        token_refresh_callback: TokenRefreshCallback | None = None,
        api_version: ApiVersion | int | float | str | None = None,
        headers={"Accept": "application/json"},
        **kwargs,
    ):
        assert login or token, (
            "Either auth or session parameters are required.\n"
            "Both are permitted simultaneously."
        )
        auth = SalesforceAuth(login, token, self.handle_token_refresh)
        super().__init__(auth=auth, headers=headers, **kwargs)
        if api_version is not None:
            self.api_version = ApiVersion.lazy_build(api_version)
        if token:
            self._derive_base_url(token)
        self.token_refresh_callback = token_refresh_callback
        self.connection_name = connection_name
        self.register_connection(connection_name, self)

    def __str__(self):
        if self._auth.token is None:
            return f"{type(self).__name__} ({self.connection_name})"
        return (
            f"{type(self).__name__} ({self.connection_name}) -> "
            f"{self._auth.token.instance.host} as {(_ui := self._userinfo) and _ui.preferred_username}"
        )

    def handle_token_refresh(self, token: SalesforceToken):
        self._derive_base_url(token)
        if self.token_refresh_callback:
            self.token_refresh_callback(token)

    def _derive_base_url(self, token: SalesforceToken):
        self.base_url = token.instance

    @property
    def org_type(self) -> OrgType:
        host = self.base_url.host.lower()
        if not host:
            raise ValueError("Base URL is not set on the client.")
        if ".scratch." in host:
            return OrgType.SCRATCH
        elif ".sandbox." in host:
            return OrgType.SANDBOX
        elif host.split(".", 1)[0].endswith("-dev-ed"):
            return OrgType.DEVELOPER
        else:
            return OrgType.PRODUCTION

    # connection registry
    @classmethod
    def get_connection(cls, name: str | None = None) -> "SalesforceClient":
        name = name or cls.DEFAULT_CONNECTION_NAME
        try:
            return cls._connections[name]
        except KeyError:
            raise KeyError(
                f"No SalesforceClient connection named '{name}' is registered."
            ) from None

    @classmethod
    def register_connection(cls, connection_name: str, instance: "SalesforceClient"):
        if connection_name in cls._connections:
            raise KeyError(
                f"SalesforceClient connection '{connection_name}' has already been registered."
            )
        cls._connections[connection_name] = instance

    @classmethod
    def unregister_connection(cls, name_or_instance: "str | SalesforceClient"):
        if isinstance(name_or_instance, str):
            names_to_unregister = [name_or_instance]
        else:
            names_to_unregister = [
                name
                for name, instance in cls._connections.items()
                if instance is name_or_instance
            ]
        for name in names_to_unregister:
            cls._connections.pop(name, None)

    # API resource urls
    @property
    def data_url(self) -> str:
        if not self.api_version:
            self.api_version = self.versions[max(self.versions)]
        return self.api_version.url

    @property
    def sobjects_url(self) -> str:
        return f"{self.data_url}/sobjects"

    @property
    def query_url(self) -> str:
        return f"{self.data_url}/query"

    def composite_sobjects_url(self, sobject: str | None = None) -> str:
        url = f"{self.data_url}/composite/sobjects"
        if sobject:
            url += "/" + sobject
        return url

    def _ensure_token(self):
        """Run the login flow up front so the instance url is known"""
        if self._auth.token is not None:
            return
        login_flow = self._auth._login_flow()
        try:
            login_request = next(login_flow)
            while True:
                login_request = login_flow.send(self.send(login_request, auth=None))
        except StopIteration:
            pass

    @override
    def __enter__(self):
        _ = super().__enter__()
        try:
            self._ensure_token()
            self._userinfo = UserInfo(
                **self.request(
                    "GET", "/services/oauth2/userinfo", resource_name="userinfo"
                ).json()
            )
            versions = self.versions
            if self.api_version:
                self.api_version = versions[self.api_version.version]
            else:
                self.api_version = versions[max(versions)]
            LOGGER.info(
                "Logged into %s as %s (%s)",
                self.base_url,
                self._userinfo.name,
                self._userinfo.preferred_username,
            )
        except Exception as e:
            self.__exit__(type(e), e, e.__traceback__)
            raise
        return self

    @override
    def __exit__(
        self,
        exc_type: type[BaseException] | None = None,
        exc_value: BaseException | None = None,
        traceback: TracebackType | None = None,
    ):
        self.unregister_connection(self)
        return super().__exit__(exc_type, exc_value, traceback)

    @override
    def close(self):
        self.unregister_connection(self)
        super().close()

    @override
    def request(
        self,
        method: str,
        url: URL | str,
        resource_name: str = "",
        response_status_raise: bool = True,
        **kwargs,
    ) -> Response:
        LOGGER.debug("%s %s", method, url)
        response = super().request(method, url, **kwargs)

        if response_status_raise:
            raise_for_status(response, resource_name)

        sforce_limit_info = response.headers.get("Sforce-Limit-Info")
        if sforce_limit_info and isinstance(sforce_limit_info, str):
            self.api_usage = parse_api_usage(sforce_limit_info)
        return response

    @staticmethod
    def _parse_versions(response: Response) -> dict[float, ApiVersion]:
        return {
            (f_ver := float(version["version"])): ApiVersion(
                f_ver, version["label"], version["url"]
            )
            for version in response.json()
        }

    @cached_property
    def versions(self) -> dict[float, ApiVersion]:
        """
        Returns a dictionary of API versions available in the org.
        https://developer.salesforce.com/docs/atlas.en-us.api_rest.meta/api_rest/dome_versions.htm
        """
        return self._parse_versions(
            self.request("GET", "/services/data", resource_name="versions")
        )
