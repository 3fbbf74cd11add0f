import httpx
import pytest

from sf_dml._models import SObjectSaveResult
from sf_dml.exceptions import (
    SalesforceError,
    SalesforceExpiredSession,
    SalesforceGeneralError,
    SalesforceMalformedRequest,
    SalesforceMoreThanOneRecord,
    SalesforceRecordNotModifiedSince,
    SalesforceResourceNotFound,
    SalesforceSaveFailed,
    SalesforceServerUnavailable,
    raise_for_status,
)

INSTANCE = "https://acme.my.salesforce.com"
ACCOUNT_PATH = "/services/data/v63.0/sobjects/Account/001000000000001AAA"


def api_response(status_code: int, method="GET", path=ACCOUNT_PATH, **kwargs):
    return httpx.Response(
        status_code, request=httpx.Request(method, INSTANCE + path), **kwargs
    )


@pytest.mark.parametrize("status_code", [200, 201, 204])
def test_success_passes_through(status_code):
    assert raise_for_status(api_response(status_code)) is None


@pytest.mark.parametrize(
    "status_code, expected",
    [
        (300, SalesforceMoreThanOneRecord),
        (400, SalesforceMalformedRequest),
        (401, SalesforceExpiredSession),
        (404, SalesforceResourceNotFound),
        (503, SalesforceServerUnavailable),
        (418, SalesforceGeneralError),
        (429, SalesforceGeneralError),
    ],
)
def test_status_code_selects_exception(status_code, expected):
    with pytest.raises(expected) as exc_info:
        raise_for_status(api_response(status_code), "Account")
    assert isinstance(exc_info.value, SalesforceError)
    assert exc_info.value.status_code == status_code


def test_error_carries_request_details():
    body = '[{"errorCode":"NOT_FOUND","message":"The requested resource does not exist"}]'
    response = api_response(404, method="PATCH", text=body)

    with pytest.raises(SalesforceResourceNotFound) as exc_info:
        raise_for_status(response, "Account")

    error = exc_info.value
    assert (error.resource_name, error.url_path, error.method) == (
        "Account",
        ACCOUNT_PATH,
        "PATCH",
    )
    assert error.content == body
    assert str(error).startswith("Resource Account Not Found (404) at " + ACCOUNT_PATH)
    assert repr(error) == f"SalesforceResourceNotFound({str(error)!r})"


def test_malformed_request_reports_store_errors():
    body = '[{"errorCode":"REQUIRED_FIELD_MISSING","fields":["LastName"]}]'
    with pytest.raises(SalesforceMalformedRequest, match="REQUIRED_FIELD_MISSING"):
        raise_for_status(api_response(400, method="POST", text=body))


def test_not_modified_reads_header():
    response = api_response(
        304, headers={"If-Modified-Since": "Tue, 01 Jan 2023 00:00:00 GMT"}
    )
    with pytest.raises(SalesforceRecordNotModifiedSince) as exc_info:
        raise_for_status(response, "Contact")

    assert exc_info.value.if_modified_since == "Tue, 01 Jan 2023 00:00:00 GMT"
    assert str(exc_info.value) == (
        "Data has not been modified since Tue, 01 Jan 2023 00:00:00 GMT (304)"
    )


def test_general_error_truncates_long_urls():
    long_path = "/services/data/v63.0/query/" + "a" * 300
    with pytest.raises(SalesforceGeneralError) as exc_info:
        raise_for_status(api_response(418, method="delete", path=long_path))

    message = str(exc_info.value)
    assert message.startswith("Error Code 418 for DELETE /services/data/v63.0/query/")
    assert long_path not in message
    assert "..." in message


class TestSaveFailed:
    @pytest.fixture
    def results(self):
        return [
            SObjectSaveResult("003000000000001AAA", True),
            SObjectSaveResult(
                None,
                False,
                [
                    {
                        "statusCode": "REQUIRED_FIELD_MISSING",
                        "message": "Required fields are missing",
                        "fields": ["LastName"],
                    }
                ],
            ),
        ]

    def test_failures(self, results):
        error = SalesforceSaveFailed("insert", "Contact", results)
        assert error.operation == "insert"
        assert error.sobject_type == "Contact"
        assert error.results == results
        assert error.failures == [results[1]]

    def test_message(self, results):
        error = SalesforceSaveFailed("insert", "Contact", results)
        assert str(error) == (
            "insert of 2 Contact record(s) failed for 1: "
            "REQUIRED_FIELD_MISSING (LastName): Required fields are missing"
        )

    def test_not_an_api_status_error(self, results):
        assert not isinstance(SalesforceSaveFailed("delete", "Case", results), SalesforceError)
