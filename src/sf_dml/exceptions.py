"""Exception types raised for failed Salesforce API calls.

Status code mapping follows the Salesforce REST API response codes:
https://developer.salesforce.com/docs/atlas.en-us.api_rest.meta/api_rest/errorcodes.htm
"""

from collections.abc import Sequence

import httpx

from ._models import SObjectSaveResult


class SalesforceError(Exception):
    """Base Salesforce API exception"""

    message = "Unknown error occurred for {url_path}. Response content: {content}"

    def __init__(
        self,
        status_code: int,
        resource_name: str,
        url_path: str,
        method: str,
        content: str,
    ):
        self.status_code = status_code
        self.resource_name = resource_name
        self.url_path = url_path
        self.method = method
        self.content = content
        super().__init__(str(self))

    def __str__(self):
        return self.message.format(
            url_path=self.url_path,
            content=self.content,
            resource_name=self.resource_name,
            status_code=self.status_code,
            method=self.method,
        )

    def __repr__(self):
        return f"{type(self).__name__}({str(self)!r})"


class SalesforceMoreThanOneRecord(SalesforceError):
    message = "More than one record for {url_path} ({status_code}). Response content: {content}"


class SalesforceRecordNotModifiedSince(SalesforceError):
    message = "Data has not been modified since {if_modified_since} ({status_code})"

    def __init__(self, *args, if_modified_since: str | None = None):
        self.if_modified_since = if_modified_since
        super().__init__(*args)

    def __str__(self):
        return self.message.format(
            if_modified_since=self.if_modified_since, status_code=self.status_code
        )


class SalesforceMalformedRequest(SalesforceError):
    message = "Malformed request {url_path} ({status_code}). Response content: {content}"


class SalesforceExpiredSession(SalesforceError):
    message = "Expired session for {url_path} ({status_code}). Response content: {content}"


class SalesforceRefusedRequest(SalesforceError):
    message = "Request refused for {url_path} ({status_code}). Response content: {content}"


class SalesforceResourceNotFound(SalesforceError):
    message = "Resource {resource_name} Not Found ({status_code}) at {url_path}. Response content: {content}"


class SalesforceMethodNotAllowedForResource(SalesforceError):
    message = "HTTP Method {method} not allowed for {url_path} ({status_code})"


class SalesforceApiVersionIncompatible(SalesforceError):
    message = "Request conflicts with the current state of {url_path} ({status_code}). Response content: {content}"


class SalesforceResourceRemoved(SalesforceError):
    message = "Resource {resource_name} has been removed ({status_code}) from {url_path}"


class SalesforceInvalidHeaderPreconditions(SalesforceError):
    message = "Header preconditions not met for {url_path} ({status_code}). Response content: {content}"


class SalesforceUriLimitExceeded(SalesforceError):
    message = "URI length limit exceeded ({status_code})"


class SalesforceUnsupportedFormat(SalesforceError):
    message = "Unsupported content format for {url_path} ({status_code}). Response content: {content}"


class SalesforceEdgeRoutingUnavailable(SalesforceError):
    message = "Salesforce Edge could not route {url_path} ({status_code})"


class SalesforceMissingConditionalHeader(SalesforceError):
    message = "Conditional header missing for {url_path} ({status_code})"


class SalesforceHeaderLimitExceeded(SalesforceError):
    message = "Combined header length exceeded for {url_path} ({status_code})"


class SalesforceServerError(SalesforceError):
    message = "Internal Salesforce error for {url_path} ({status_code}). Response content: {content}"


class SalesforceEdgeCommFailure(SalesforceError):
    message = "Salesforce Edge communication failure for {url_path} ({status_code})"


class SalesforceServerUnavailable(SalesforceError):
    message = "Salesforce server unavailable for {url_path} ({status_code})"


class SalesforceGeneralError(SalesforceError):
    message = "Error Code {status_code} for {method} {url_path}. Response content: {content}"

    def __str__(self):
        url_path = self.url_path
        if len(url_path) > 255:
            url_path = url_path[:252] + "..."
        return self.message.format(
            status_code=self.status_code,
            method=self.method.upper(),
            url_path=url_path,
            content=self.content,
        )


class SalesforceAuthenticationFailed(Exception):
    """Raised when a login attempt is rejected"""

    def __init__(self, code: str | None, message: str | None):
        self.code = code
        self.message = message
        super().__init__(f"{code}: {message}")


class SalesforceSaveFailed(Exception):
    """Raised when one or more records in a write could not be saved"""

    def __init__(self, operation: str, sobject_type: str, results: Sequence[SObjectSaveResult]):
        self.operation = operation
        self.sobject_type = sobject_type
        self.results = list(results)
        self.failures = [result for result in self.results if not result.success]
        super().__init__(str(self))

    def __str__(self):
        details = "; ".join(
            str(error) for result in self.failures for error in result.errors
        )
        return (
            f"{self.operation} of {len(self.results)} {self.sobject_type} record(s) "
            f"failed for {len(self.failures)}: {details}"
        )


_STATUS_EXCEPTIONS: dict[int, type[SalesforceError]] = {
    300: SalesforceMoreThanOneRecord,
    304: SalesforceRecordNotModifiedSince,
    400: SalesforceMalformedRequest,
    401: SalesforceExpiredSession,
    403: SalesforceRefusedRequest,
    404: SalesforceResourceNotFound,
    405: SalesforceMethodNotAllowedForResource,
    409: SalesforceApiVersionIncompatible,
    410: SalesforceResourceRemoved,
    412: SalesforceInvalidHeaderPreconditions,
    414: SalesforceUriLimitExceeded,
    415: SalesforceUnsupportedFormat,
    420: SalesforceEdgeRoutingUnavailable,
    428: SalesforceMissingConditionalHeader,
    431: SalesforceHeaderLimitExceeded,
    500: SalesforceServerError,
    502: SalesforceEdgeCommFailure,
    503: SalesforceServerUnavailable,
}


def raise_for_status(response: httpx.Response, resource_name: str = ""):
    """Raise the matching SalesforceError when the response is not a success"""
    if response.is_success:
        return

    args = (
        response.status_code,
        resource_name,
        response.url.path,
        response.request.method,
        response.text,
    )
    exc_type = _STATUS_EXCEPTIONS.get(response.status_code, SalesforceGeneralError)
    if exc_type is SalesforceRecordNotModifiedSince:
        raise SalesforceRecordNotModifiedSince(
            *args, if_modified_since=response.headers.get("If-Modified-Since")
        )
    raise exc_type(*args)
