from collections.abc import Iterator
from typing import Any, Generic, Literal, NamedTuple, TypeVar

from ..client import SalesforceClient
from ..formatting import format_soql, quote_soql_value
from ..logger import getLogger
from .._models import QueryResultJSON
from .fields import query_fields
from .sobject import SObject, SObjectList

_logger = getLogger("query")

BooleanOperator = Literal["AND", "OR"]
Comparator = Literal["=", "!=", ">", ">=", "<", "<=", "LIKE", "INCLUDES", "IN"]

_OPERATORS: dict[str, Comparator] = {
    "eq": "=",
    "ne": "!=",
    "gt": ">",
    "ge": ">=",
    "lt": "<",
    "le": "<=",
    "like": "LIKE",
    "includes": "INCLUDES",
    "in": "IN",
}


class Comparison:
    property: str
    operator: Comparator
    value: Any

    def __init__(self, property: str, op: Comparator, value: Any):
        self.property = property
        self.operator = op
        self.value = value

    def __str__(self):
        if isinstance(self.value, SoqlQuery):
            return f"{self.property} {self.operator} ({str(self.value)})"
        return f"{self.property} {self.operator} {quote_soql_value(self.value)}"


class BooleanOperation(NamedTuple):
    operator: BooleanOperator
    conditions: list["Comparison | BooleanOperation"]

    def __str__(self):
        formatted_conditions = [
            str(condition)
            if isinstance(condition, Comparison)
            else "(" + str(condition) + ")"
            for condition in self.conditions
        ]
        return f" {self.operator} ".join(formatted_conditions)


class Order(NamedTuple):
    field: str
    direction: Literal["ASC", "DESC"] = "ASC"

    def __str__(self):
        return f"{self.field} {self.direction}"


_SObject = TypeVar("_SObject", bound=SObject)


class QueryResult(Generic[_SObject]):
    """
    Records returned by the SOQL Query API. Iterating a QueryResult follows
    ``nextRecordsUrl`` until every batch has been retrieved.
    """

    done: bool
    "Indicates whether all records have been retrieved"
    totalSize: int
    "The total number of records that match the query criteria"
    records: list[_SObject]
    "The records in this batch"
    nextRecordsUrl: str | None
    "URL to the next batch of records, if more exist"

    def __init__(
        self,
        connection: SalesforceClient,
        sobject_type: type[_SObject],
        /,
        done: bool = True,
        totalSize: int = 0,
        records: list[dict[str, Any]] | None = None,
        nextRecordsUrl: str | None = None,
    ):
        self._connection = connection
        self._sobject_type = sobject_type
        self.done = done
        self.totalSize = totalSize
        self.records = [sobject_type.from_api(record) for record in records or []]
        self.nextRecordsUrl = nextRecordsUrl

    def query_more(self) -> "QueryResult[_SObject]":
        if not self.nextRecordsUrl:
            raise ValueError("Cannot get more records without nextRecordsUrl")

        result: QueryResultJSON = self._connection.get(self.nextRecordsUrl).json()
        return QueryResult(self._connection, self._sobject_type, **result)  # type: ignore

    def __iter__(self) -> Iterator[_SObject]:
        batch = self
        yield from batch.records
        while not batch.done and batch.nextRecordsUrl:
            batch = batch.query_more()
            yield from batch.records

    def __len__(self):
        return self.totalSize

    def as_list(self) -> SObjectList[_SObject]:
        return SObjectList(self, connection=self._sobject_type.attributes.connection)


class SoqlQuery(Generic[_SObject]):
    _where: Comparison | BooleanOperation | str | None = None
    _limit: int | None = None
    _order: list[Order | str] | None = None

    def __init__(self, sobject_type: type[_SObject]):
        self.sobject_type = sobject_type

    @property
    def fields(self) -> list[str]:
        return query_fields(self.sobject_type)

    @property
    def sobject_name(self) -> str:
        return self.sobject_type.attributes.type

    @staticmethod
    def build_conditional(kwargs: dict[str, Any]) -> Comparison | BooleanOperation:
        """
        Build a condition from keyword filters. ``Name="Acme"`` compares for
        equality; a ``__<op>`` suffix selects another comparator, for example
        ``Name__in=[...]`` or ``Amount__gt=1000``. Multiple filters are AND-ed.
        """
        conditions: list[Comparison | BooleanOperation] = []
        for key, value in kwargs.items():
            field, _, op = key.partition("__")
            if not op:
                op = "eq"
            elif op not in _OPERATORS:
                # custom field or relationship names contain "__"
                field, _, op = key.rpartition("__")
                if op not in _OPERATORS:
                    field, op = key, "eq"
            conditions.append(Comparison(field, _OPERATORS[op], value))
        if len(conditions) == 1:
            return conditions[0]
        return BooleanOperation("AND", conditions)

    def where(self, _raw: str | None = None, /, *args, **kwargs):
        """
        Filter with keyword comparisons, or with a raw condition whose
        replacement fields are quoted as SOQL literals:

            where("Name LIKE '{:like}%'", prefix)
            where("CloseDate < {close}", close=date.today())
        """
        if _raw:
            self._where = format_soql(_raw, *args, **kwargs)
        else:
            self._where = self.build_conditional(kwargs)
        return self

    def limit(self, limit: int):
        self._limit = limit
        return self

    def order_by(self, *orders: Order | str):
        self._order = list(orders)
        return self

    def format(self, fields: list[str] | None = None) -> str:
        if not fields:
            fields = self.fields
        segments = ["SELECT", ", ".join(fields), f"FROM {self.sobject_name}"]
        if self._where:
            segments.extend(["WHERE", str(self._where)])
        if self._order:
            segments.extend(["ORDER BY", ", ".join(str(order) for order in self._order)])
        if self._limit is not None:
            segments.append(f"LIMIT {self._limit}")
        return " ".join(segments)

    def __str__(self):
        return self.format()

    def execute(
        self, sf_client: SalesforceClient | None = None
    ) -> QueryResult[_SObject]:
        """
        Executes the SOQL query and returns the first batch of results.
        Iterate the result to page through the remaining batches.
        """
        client = sf_client or self.sobject_type._client_connection()
        soql = self.format()
        _logger.debug("Executing query: %s", soql)
        result: QueryResultJSON = client.get(
            client.query_url, params={"q": soql}
        ).json()
        return QueryResult(client, self.sobject_type, **result)  # type: ignore


def select(sobject_type: type[_SObject]) -> SoqlQuery[_SObject]:
    return SoqlQuery(sobject_type)
