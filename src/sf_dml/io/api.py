from collections.abc import Sequence
from typing import Any, TypeVar
from urllib.parse import quote_plus

from httpx import Response
from more_itertools import chunked

from ..client import SalesforceClient
from ..data.fields import dirty_fields, query_fields, serialize_object
from ..data.sobject import SObject, SObjectList
from ..exceptions import SalesforceSaveFailed
from ..logger import getLogger
from .._models import SObjectSaveResult

_logger = getLogger("io")
_sObject = TypeVar("_sObject", bound=SObject)

# sObject Collections accept at most 200 records per request
COMPOSITE_BATCH_SIZE = 200


def resolve_client(
    cls: type[SObject], client: SalesforceClient | None = None
) -> SalesforceClient:
    if client:
        return client
    return SalesforceClient.get_connection(cls.attributes.connection)


def _record_url(sf_client: SalesforceClient, record: SObject | type[SObject], record_id: str):
    return f"{sf_client.sobjects_url}/{record.attributes.type}/{record_id}"


def fetch(
    cls: type[_sObject],
    record_id: str,
    sf_client: SalesforceClient | None = None,
) -> _sObject:
    """Read a single record by Id. Unknown Ids raise SalesforceResourceNotFound."""
    sf_client = resolve_client(cls, sf_client)
    response_data = sf_client.get(
        _record_url(sf_client, cls, record_id),
        params={"fields": ",".join(query_fields(cls))},
    ).json()
    return cls.from_api(response_data)


def save_insert(
    record: SObject,
    sf_client: SalesforceClient | None = None,
    reload_after_success: bool = False,
):
    sf_client = resolve_client(type(record), sf_client)

    if _id := getattr(record, record.attributes.id_field, None):
        raise ValueError(
            f"Cannot insert record that already has an {record.attributes.id_field} set: {_id}"
        )

    payload = serialize_object(record)
    payload.pop(record.attributes.id_field, None)
    response_data = sf_client.post(
        f"{sf_client.sobjects_url}/{record.attributes.type}",
        json=payload,
    ).json()

    setattr(record, record.attributes.id_field, response_data["id"])
    _logger.info("Inserted %s %s", record.attributes.type, response_data["id"])

    if reload_after_success:
        reload(record, sf_client)

    dirty_fields(record).clear()


def save_update(
    record: SObject,
    sf_client: SalesforceClient | None = None,
    only_changes: bool = False,
    reload_after_success: bool = False,
):
    sf_client = resolve_client(type(record), sf_client)

    if not (_id_val := getattr(record, record.attributes.id_field, None)):
        raise ValueError(f"Cannot update record without {record.attributes.id_field}")

    # nothing to send
    if only_changes and not dirty_fields(record):
        return

    payload = serialize_object(record, only_changes)
    payload.pop(record.attributes.id_field, None)

    if payload:
        _ = sf_client.patch(
            _record_url(sf_client, record, _id_val),
            json=payload,
            headers={"Content-Type": "application/json"},
        )
        _logger.info("Updated %s %s", record.attributes.type, _id_val)

    if reload_after_success:
        reload(record, sf_client)

    dirty_fields(record).clear()


def save_upsert(
    record: _sObject,
    external_id_field: str,
    sf_client: SalesforceClient | None = None,
    update_only: bool = False,
    only_changes: bool = False,
) -> _sObject:
    """
    Create or update a record matched on an external Id field.
    https://developer.salesforce.com/docs/atlas.en-us.api_rest.meta/api_rest/dome_upsert.htm
    """
    sf_client = resolve_client(type(record), sf_client)

    if not (ext_id_val := getattr(record, external_id_field, None)):
        raise ValueError(
            f"Cannot upsert record without a value for external ID field: {external_id_field}"
        )

    payload = serialize_object(record, only_changes)
    payload.pop(external_id_field, None)
    payload.pop(record.attributes.id_field, None)

    if only_changes and not payload:
        return record

    response = sf_client.patch(
        f"{sf_client.sobjects_url}/{record.attributes.type}/{external_id_field}/"
        + quote_plus(str(ext_id_val)),
        json=payload,
        params={"updateOnly": "true"} if update_only else None,
        headers={"Content-Type": "application/json"},
    )

    # an insert responds with the new Id, an update with 204 No Content
    if response.status_code == 201 and (_id_val := response.json().get("id")):
        setattr(record, record.attributes.id_field, _id_val)

    dirty_fields(record).clear()
    return record


def save(
    record: SObject,
    sf_client: SalesforceClient | None = None,
    only_changes: bool = False,
    reload_after_success: bool = False,
    external_id_field: str | None = None,
):
    """Update when the record has an Id, upsert when an external Id field is given, else insert"""
    if getattr(record, record.attributes.id_field, None) is not None:
        return save_update(
            record,
            sf_client=sf_client,
            only_changes=only_changes,
            reload_after_success=reload_after_success,
        )
    elif external_id_field:
        return save_upsert(
            record,
            external_id_field=external_id_field,
            sf_client=sf_client,
            only_changes=only_changes,
        )
    return save_insert(
        record, sf_client=sf_client, reload_after_success=reload_after_success
    )


def delete(
    record: SObject,
    sf_client: SalesforceClient | None = None,
    clear_id_field: bool = True,
):
    sf_client = resolve_client(type(record), sf_client)
    _id_val = getattr(record, record.attributes.id_field, None)

    if not _id_val:
        raise ValueError("Cannot delete unsaved record (missing ID to delete)")

    sf_client.delete(_record_url(sf_client, record, _id_val))
    _logger.info("Deleted %s %s", record.attributes.type, _id_val)
    if clear_id_field:
        delattr(record, record.attributes.id_field)


def reload(record: SObject, sf_client: SalesforceClient | None = None):
    record_id: str = getattr(record, record.attributes.id_field)
    reloaded = fetch(type(record), record_id, sf_client)
    record._values.update(reloaded._values)


def update_record(record: SObject, /, **props):
    """Assign several field values at once, ignoring names the type does not declare"""
    for key, value in props.items():
        if key in record.keys():
            setattr(record, key, value)


# sObject Collections
# https://developer.salesforce.com/docs/atlas.en-us.api_rest.meta/api_rest/resources_composite_sobjects_collections.htm


def _collection_payload(record: SObject, only_changes: bool = False) -> dict[str, Any]:
    payload = serialize_object(record, only_changes)
    payload.pop(record.attributes.id_field, None)
    payload["attributes"] = {"type": record.attributes.type}
    return payload


def _save_results(
    response: Response, operation: str, sobject_type: str
) -> list[SObjectSaveResult]:
    results = [
        SObjectSaveResult(
            item.get("id"),
            item.get("success", False),
            item.get("errors"),
            item.get("created", operation == "insert"),
        )
        for item in response.json()
    ]
    if not all(result.success for result in results):
        raise SalesforceSaveFailed(operation, sobject_type, results)
    return results


def save_insert_list(
    records: Sequence[_sObject],
    sf_client: SalesforceClient | None = None,
    all_or_none: bool = True,
    batch_size: int = COMPOSITE_BATCH_SIZE,
) -> list[SObjectSaveResult]:
    """
    Insert records in batches of up to 200 per request. New Ids are set on
    the records. Any failed row raises SalesforceSaveFailed.
    """
    if not records:
        return []
    if not isinstance(records, SObjectList):
        records = SObjectList(records)
    sobject_type = records.assert_single_type()
    sf_client = sf_client or records._get_client()
    id_field = sobject_type.attributes.id_field

    for index, record in enumerate(records):
        if getattr(record, id_field, None):
            raise ValueError(
                f"Cannot insert record that already has an {id_field} set (index {index})"
            )

    results: list[SObjectSaveResult] = []
    for batch in chunked(records, batch_size):
        response = sf_client.post(
            sf_client.composite_sobjects_url(),
            json={
                "allOrNone": all_or_none,
                "records": [_collection_payload(record) for record in batch],
            },
        )
        batch_results = _save_results(response, "insert", sobject_type.attributes.type)
        for record, result in zip(batch, batch_results):
            setattr(record, id_field, result.id)
            dirty_fields(record).clear()
        results.extend(batch_results)

    _logger.info("Inserted %d %s record(s)", len(results), sobject_type.attributes.type)
    return results


def save_update_list(
    records: Sequence[_sObject],
    sf_client: SalesforceClient | None = None,
    only_changes: bool = False,
    all_or_none: bool = True,
    batch_size: int = COMPOSITE_BATCH_SIZE,
) -> list[SObjectSaveResult]:
    """Update records by Id in batches of up to 200 per request."""
    if not records:
        return []
    if not isinstance(records, SObjectList):
        records = SObjectList(records)
    sobject_type = records.assert_single_type()
    sf_client = sf_client or records._get_client()
    id_field = sobject_type.attributes.id_field

    for index, record in enumerate(records):
        if not getattr(record, id_field, None):
            raise ValueError(f"Record at index {index} has no {id_field} for update")

    if only_changes:
        records = SObjectList(record for record in records if dirty_fields(record))

    results: list[SObjectSaveResult] = []
    for batch in chunked(records, batch_size):
        payload = []
        for record in batch:
            record_payload = _collection_payload(record, only_changes)
            record_payload[id_field] = getattr(record, id_field)
            payload.append(record_payload)
        response = sf_client.patch(
            sf_client.composite_sobjects_url(),
            json={"allOrNone": all_or_none, "records": payload},
        )
        results.extend(_save_results(response, "update", sobject_type.attributes.type))
        for record in batch:
            dirty_fields(record).clear()

    _logger.info("Updated %d %s record(s)", len(results), sobject_type.attributes.type)
    return results


def save_list(
    records: Sequence[_sObject],
    sf_client: SalesforceClient | None = None,
    only_changes: bool = False,
    all_or_none: bool = True,
) -> list[SObjectSaveResult]:
    """
    Upsert records on their Id: records with an Id are updated, records
    without one are inserted. Results are returned in input order.
    """
    if not records:
        return []
    if not isinstance(records, SObjectList):
        records = SObjectList(records)
    sf_client = sf_client or records._get_client()
    id_field = records.assert_single_type().attributes.id_field
    to_update = [
        (index, record)
        for index, record in enumerate(records)
        if getattr(record, id_field, None)
    ]
    to_insert = [
        (index, record)
        for index, record in enumerate(records)
        if not getattr(record, id_field, None)
    ]

    results: list[SObjectSaveResult | None] = [None] * len(records)
    if only_changes:
        # unchanged records are reported as saved without being sent
        for index, record in to_update:
            if not dirty_fields(record):
                results[index] = SObjectSaveResult(getattr(record, id_field), True)
        to_update = [(index, record) for index, record in to_update if dirty_fields(record)]
    if to_update:
        update_results = save_update_list(
            [record for _, record in to_update],
            sf_client=sf_client,
            only_changes=only_changes,
            all_or_none=all_or_none,
        )
        for (index, _), result in zip(to_update, update_results):
            results[index] = result
    if to_insert:
        insert_results = save_insert_list(
            [record for _, record in to_insert],
            sf_client=sf_client,
            all_or_none=all_or_none,
        )
        for (index, _), result in zip(to_insert, insert_results):
            results[index] = result
    return results  # type: ignore[return-value]


def delete_list(
    records: Sequence[SObject],
    sf_client: SalesforceClient | None = None,
    clear_id_field: bool = True,
    all_or_none: bool = True,
    batch_size: int = COMPOSITE_BATCH_SIZE,
) -> list[SObjectSaveResult]:
    """Delete records by Id in batches of up to 200 per request."""
    if not records:
        return []
    if not isinstance(records, SObjectList):
        records = SObjectList(records)
    sobject_type = records.assert_single_type()
    sf_client = sf_client or records._get_client()
    id_field = sobject_type.attributes.id_field

    ids: list[str] = []
    for index, record in enumerate(records):
        if not (_id_val := getattr(record, id_field, None)):
            raise ValueError(f"Record at index {index} has no {id_field} to delete")
        ids.append(_id_val)

    results: list[SObjectSaveResult] = []
    for batch in chunked(ids, batch_size):
        response = sf_client.delete(
            sf_client.composite_sobjects_url(),
            params={"ids": ",".join(batch), "allOrNone": str(all_or_none).lower()},
        )
        results.extend(_save_results(response, "delete", sobject_type.attributes.type))

    if clear_id_field:
        for record in records:
            delattr(record, id_field)

    _logger.info("Deleted %d %s record(s)", len(results), sobject_type.attributes.type)
    return results
