"""SOAP partner API login flows

Based on simple-salesforce 1.12.5
"""

from html import escape

import httpx
import lxml.etree as etree

from ..exceptions import SalesforceAuthenticationFailed
from ..logger import getLogger
from .types import SalesforceLogin, SalesforceToken, SalesforceTokenGenerator

LOGGER = getLogger("auth.soap")

DEFAULT_CLIENT_ID_PREFIX = "sf-dml"
DEFAULT_API_VERSION = 63.0
XML_NS = "sf"


def get_xml_element_value(xml_string: bytes | str, element_name: str) -> str | None:
    """
    Extracts the text of the first element with the given local name.

    get_xml_element_value('<?xml version="1.0"?><foo>bar</foo>', 'foo') == 'bar'
    """
    if isinstance(xml_string, str):
        xml_string = xml_string.encode("utf-8")

    root = etree.fromstring(xml_string)
    if etree.QName(root).localname == element_name:
        return root.text

    elements = root.findall(f".//{{*}}{element_name}")
    if elements and elements[0].text:
        return elements[0].text
    return None


def soap_login(
    domain: str, api_version: float | int, request_body: str
) -> SalesforceTokenGenerator:
    """Send the SOAP login envelope and read the session from the response"""
    soap_url = httpx.URL(
        f"https://{domain}.salesforce.com/services/Soap/u/{api_version:.01f}"
    )
    LOGGER.info("Logging in via SOAP at %s", soap_url.host)
    response = yield httpx.Request(
        "POST",
        soap_url,
        content=request_body,
        headers={
            "content-type": "text/xml",
            "charset": "UTF-8",
            "SOAPAction": "login",
        },
    )
    if response is None:
        raise ValueError("No response received")

    if not response.is_success:
        raise SalesforceAuthenticationFailed(
            get_xml_element_value(response.text, "exceptionCode"),
            get_xml_element_value(response.text, "exceptionMessage"),
        )

    session_id = get_xml_element_value(response.text, "sessionId")
    server_url = get_xml_element_value(response.text, "serverUrl")
    assert server_url is not None, "Unable to find Server URL"
    assert session_id is not None, "Unable to find Session ID"

    server = httpx.URL(server_url)
    return SalesforceToken(httpx.URL(f"{server.scheme}://{server.host}"), session_id)


def _login_envelope(username: str, password: str, client_id: str | None) -> str:
    if client_id:
        client_id = DEFAULT_CLIENT_ID_PREFIX + "/" + client_id
    else:
        client_id = DEFAULT_CLIENT_ID_PREFIX

    return f"""<?xml version="1.0" encoding="utf-8" ?>
<soapenv:Envelope
        xmlns:soapenv="http://schemas.xmlsoap.org/soap/envelope/"
        xmlns:urn="urn:partner.soap.sforce.com">
    <soapenv:Header>
        <urn:CallOptions>
            <urn:client>{escape(client_id)}</urn:client>
            <urn:defaultNamespace>{XML_NS}</urn:defaultNamespace>
        </urn:CallOptions>
    </soapenv:Header>
    <soapenv:Body>
        <urn:login>
            <urn:username>{escape(username)}</urn:username>
            <urn:password>{escape(password)}</urn:password>
        </urn:login>
    </soapenv:Body>
</soapenv:Envelope>"""


def security_token_login(
    username: str,
    password: str,
    security_token: str = "",
    client_id: str | None = None,
    domain: str = "login",
    api_version: float | int = DEFAULT_API_VERSION,
) -> SalesforceLogin:
    """
    Username/password login. The security token is appended to the password;
    leave it empty for orgs that trust the caller's IP range.
    """
    body = _login_envelope(username, password + security_token, client_id)
    return lambda: soap_login(domain, api_version, body)


def lazy_soap_login(**kwargs) -> SalesforceLogin:
    if "username" not in kwargs or "password" not in kwargs:
        raise ValueError("Username and password are required parameters")

    return security_token_login(
        username=kwargs["username"],
        password=kwargs["password"],
        security_token=kwargs.get("security_token", ""),
        client_id=kwargs.get("client_id"),
        domain=kwargs.get("domain", "login"),
        api_version=kwargs.get("api_version", DEFAULT_API_VERSION),
    )
