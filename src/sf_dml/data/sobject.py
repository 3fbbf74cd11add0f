from typing import Any, TypeVar
from collections.abc import Iterable

from .._models import SObjectAttributes
from ..client import SalesforceClient
from .fields import FieldConfigurableObject, dirty_fields

_sObject = TypeVar("_sObject", bound="SObject")


class SObject(FieldConfigurableObject):
    """
    A Salesforce record type. Subclasses declare fields as class attributes:

        class Account(SObject):
            Id = IdField()
            Name = TextField()

    The API name defaults to the class name; pass ``api_name`` to override it
    and ``connection`` to bind the type to a named client connection.
    """

    attributes: SObjectAttributes

    def __init_subclass__(
        cls,
        api_name: str | None = None,
        connection: str = "",
        id_field: str = "Id",
        **kwargs,
    ) -> None:
        super().__init_subclass__(**kwargs)
        if not api_name:
            api_name = cls.__name__
        connection = connection or SalesforceClient.DEFAULT_CONNECTION_NAME
        assert id_field in cls._fields, f"{cls.__name__} must declare an {id_field} field"
        cls.attributes = SObjectAttributes(api_name, connection, id_field)

    def __init__(self, /, **fields):
        fields.pop("attributes", None)
        super().__init__(**fields)

    @classmethod
    def from_api(cls: type[_sObject], record: dict[str, Any]) -> _sObject:
        """Build a clean (no dirty fields) instance from an API response record"""
        instance = cls(**record)
        dirty_fields(instance).clear()
        return instance

    @classmethod
    def _client_connection(cls) -> SalesforceClient:
        return SalesforceClient.get_connection(cls.attributes.connection)


class SObjectList(list[_sObject]):
    """A list that only holds SObject instances"""

    def __init__(self, iterable: Iterable[_sObject] = (), *, connection: str = ""):
        """
        Args:
            iterable: An optional iterable of SObject instances
            connection: Optional name of the Salesforce connection to use
        """
        # capture items first, the iterable may be a generator
        super().__init__(iterable)
        for item in self:
            if not isinstance(item, SObject):
                raise TypeError(
                    f"All items must be SObject instances, got {type(item)}"
                )

        self.connection = connection

    def append(self, item: _sObject | Any):
        """Add an SObject to the list."""
        if not isinstance(item, SObject):
            raise TypeError(f"Can only append SObject instances, got {type(item)}")
        super().append(item)  # type: ignore

    def extend(self, iterable):
        """Extend the list with an iterable of SObjects."""
        if not isinstance(iterable, (tuple, list, set)):
            # don't exhaust a generator during validation
            iterable = tuple(iterable)
        for item in iterable:
            if not isinstance(item, SObject):
                raise TypeError(
                    f"All items must be SObject instances, got {type(item)}"
                )
        super().extend(iterable)

    def assert_single_type(self) -> type[_sObject]:
        """Assert there is exactly one type of record in the list"""
        assert len(self) > 0, "There must be at least one record."
        record_type = type(self[0])
        assert all(type(record) is record_type for record in self), (
            "Records must be of the same type."
        )
        return record_type

    def _get_client(self) -> SalesforceClient:
        if self.connection:
            return SalesforceClient.get_connection(self.connection)
        if self:
            return self[0]._client_connection()
        raise ValueError(
            "Cannot determine Salesforce connection: list is empty and no connection is set"
        )
