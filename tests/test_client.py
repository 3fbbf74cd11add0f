import httpx
import pytest
from httpx import URL
from unittest.mock import Mock

from sf_dml.apimodels import ApiVersion
from sf_dml.auth.types import SalesforceToken
from sf_dml.client import OrgType, SalesforceClient
from sf_dml.exceptions import (
    SalesforceExpiredSession,
    SalesforceRefusedRequest,
    SalesforceResourceNotFound,
)
from sf_dml.metrics import Usage

pytestmark = pytest.mark.usefixtures("clean_connections")

MOCK_TOKEN = SalesforceToken(URL("https://test.salesforce.com"), "mock_access_token")

MOCK_VERSIONS = [
    {"version": "50.0", "label": "Winter '21", "url": "/services/data/v50.0"},
    {"version": "51.0", "label": "Spring '21", "url": "/services/data/v51.0"},
    {"version": "52.0", "label": "Summer '21", "url": "/services/data/v52.0"},
]

MOCK_USERINFO = {
    "name": "Test User",
    "preferred_username": "test@example.com",
    "user_id": "005XXXXXXXXXXXX",
    "organization_id": "00DXXXXXXXXXXXX",
    "email": "test@example.com",
    "locale": "en_US",
}


def org_transport(seen: list, userinfo_status: int = 200) -> httpx.MockTransport:
    """Answers the userinfo and versions calls made when entering a client"""

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.path)
        if request.url.path == "/services/oauth2/userinfo":
            if userinfo_status != 200:
                return httpx.Response(
                    userinfo_status, json=[{"errorCode": "INSUFFICIENT_ACCESS"}]
                )
            return httpx.Response(200, json=MOCK_USERINFO)
        return httpx.Response(200, json=MOCK_VERSIONS)

    return httpx.MockTransport(handler)


def test_client_context_manager():
    seen = []
    with SalesforceClient(token=MOCK_TOKEN, transport=org_transport(seen)) as client:
        assert seen == ["/services/oauth2/userinfo", "/services/data"]
        assert isinstance(client.api_version, ApiVersion)
        assert client.api_version.version == 52.0
        assert client.data_url == "/services/data/v52.0"
        assert client.versions[50.0].label == "Winter '21"
        assert "test@example.com" in str(client)
        assert SalesforceClient.get_connection() is client

    # versions are read once, leaving the context unregisters the connection
    assert seen.count("/services/data") == 1
    with pytest.raises(KeyError):
        SalesforceClient.get_connection()


def test_client_context_manager_pinned_version():
    seen = []
    with SalesforceClient(
        token=MOCK_TOKEN, api_version="v51.0", transport=org_transport(seen)
    ) as client:
        assert client.api_version.version == 51.0
        assert client.api_version.label == "Spring '21"


def test_failed_userinfo_raises_salesforce_error():
    seen = []
    client = SalesforceClient(token=MOCK_TOKEN, transport=org_transport(seen, 403))

    with pytest.raises(SalesforceRefusedRequest) as excinfo:
        client.__enter__()

    assert excinfo.value.resource_name == "userinfo"
    assert seen == ["/services/oauth2/userinfo"]
    with pytest.raises(KeyError):
        SalesforceClient.get_connection()


def test_rejected_session_on_enter():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json=[{"errorCode": "INVALID_SESSION_ID"}])

    with pytest.raises(SalesforceExpiredSession):
        with SalesforceClient(token=MOCK_TOKEN, transport=httpx.MockTransport(handler)):
            pass


def test_client_requires_login_or_token():
    with pytest.raises(AssertionError):
        SalesforceClient()


def test_connection_registry():
    client = SalesforceClient(token=MOCK_TOKEN, api_version=63)
    other = SalesforceClient("other", token=MOCK_TOKEN, api_version=63)

    assert SalesforceClient.get_connection() is client
    assert SalesforceClient.get_connection("other") is other

    with pytest.raises(KeyError, match="already been registered"):
        SalesforceClient(token=MOCK_TOKEN)

    other.close()
    with pytest.raises(KeyError, match="No SalesforceClient connection named 'other'"):
        SalesforceClient.get_connection("other")
    client.close()


def test_resource_urls():
    client = SalesforceClient(token=MOCK_TOKEN, api_version=63)
    assert client.data_url == "/services/data/v63.0"
    assert client.sobjects_url == "/services/data/v63.0/sobjects"
    assert client.query_url == "/services/data/v63.0/query"
    assert client.composite_sobjects_url() == "/services/data/v63.0/composite/sobjects"
    assert (
        client.composite_sobjects_url("Account")
        == "/services/data/v63.0/composite/sobjects/Account"
    )
    client.close()


@pytest.mark.parametrize(
    "host, org_type",
    [
        ("https://acme.my.salesforce.com", OrgType.PRODUCTION),
        ("https://acme--dev.sandbox.my.salesforce.com", OrgType.SANDBOX),
        ("https://shape-fun-1234.scratch.my.salesforce.com", OrgType.SCRATCH),
        ("https://acme-dev-ed.develop.my.salesforce.com", OrgType.DEVELOPER),
    ],
)
def test_org_type(host, org_type):
    client = SalesforceClient(token=SalesforceToken(URL(host), "token"))
    assert client.org_type == org_type
    client.close()


def test_request_raises_for_status():
    def handler(request: httpx.Request):
        return httpx.Response(404, json=[{"errorCode": "NOT_FOUND"}])

    client = SalesforceClient(
        token=MOCK_TOKEN, api_version=63, transport=httpx.MockTransport(handler)
    )
    with pytest.raises(SalesforceResourceNotFound) as excinfo:
        client.request(
            "GET",
            client.sobjects_url + "/Account/001000000000001AAA",
            resource_name="Account",
        )
    assert excinfo.value.method == "GET"
    assert excinfo.value.resource_name == "Account"
    client.close()


def test_request_tracks_api_usage():
    def handler(request: httpx.Request):
        assert request.headers["Authorization"] == "Bearer mock_access_token"
        return httpx.Response(
            200, json={}, headers={"Sforce-Limit-Info": "api-usage=18/5000"}
        )

    client = SalesforceClient(
        token=MOCK_TOKEN, api_version=63, transport=httpx.MockTransport(handler)
    )
    client.get(client.query_url, params={"q": "SELECT Id FROM Account"})
    assert client.api_usage.api_usage == Usage(18, 5000)
    client.close()


def test_expired_session_logs_in_again():
    new_token = SalesforceToken(URL("https://new.salesforce.com"), "new_token")

    def login():
        yield httpx.Request("POST", "https://login.salesforce.com/token")
        return new_token

    def handler(request: httpx.Request):
        if request.url.path == "/token":
            return httpx.Response(200, json={})
        if request.headers["Authorization"] == "Bearer mock_access_token":
            return httpx.Response(401, json=[{"errorCode": "INVALID_SESSION_ID"}])
        return httpx.Response(200, json={"done": True})

    callback = Mock()
    client = SalesforceClient(
        login=login,
        token=MOCK_TOKEN,
        token_refresh_callback=callback,
        api_version=63,
        transport=httpx.MockTransport(handler),
    )
    response = client.get(client.query_url)

    assert response.json() == {"done": True}
    callback.assert_called_once_with(new_token)
    assert client.base_url.host == "new.salesforce.com"
    client.close()


def test_login_only_client_resolves_instance():
    token = SalesforceToken(URL("https://login-only.my.salesforce.com"), "token")

    def login():
        yield None
        return token

    def handler(request: httpx.Request):
        assert request.url.host == "login-only.my.salesforce.com"
        if request.url.path == "/services/oauth2/userinfo":
            return httpx.Response(200, json=MOCK_USERINFO)
        return httpx.Response(200, json=MOCK_VERSIONS)

    with SalesforceClient(login=login, transport=httpx.MockTransport(handler)) as client:
        assert client.api_version.version == 52.0
        assert client.base_url.host == "login-only.my.salesforce.com"
