from typing import NamedTuple, TypedDict


class SObjectAttributes(NamedTuple):
    type: str
    connection: str
    id_field: str = "Id"


class SObjectDictAttrs(TypedDict):
    type: str
    url: str


class SObjectDict(TypedDict, total=False):
    attributes: SObjectDictAttrs


class QueryResultJSON(TypedDict, total=False):
    totalSize: int
    done: bool
    nextRecordsUrl: str
    records: list[SObjectDict]


class SObjectSaveError(NamedTuple):
    statusCode: str
    message: str
    fields: list[str] = []

    def __str__(self):
        return f"{self.statusCode} ({', '.join(self.fields)}): {self.message}"


class SObjectSaveResult:
    """Outcome of writing a single record, as reported by the API"""

    id: str | None
    success: bool
    errors: list[SObjectSaveError]
    created: bool

    def __init__(
        self,
        id: str | None,
        success: bool,
        errors: list[SObjectSaveError | dict] | None = None,
        created: bool = False,
    ):
        self.id = id
        self.success = success
        self.errors = [
            error if isinstance(error, SObjectSaveError) else SObjectSaveError(**error)
            for error in errors or []
        ]
        self.created = created

    def __str__(self):
        outcome = "created" if self.created else "saved"
        if self.success:
            return f"{self.id} {outcome}"
        return f"{self.id} failed: " + "; ".join(str(error) for error in self.errors)

    def __repr__(self):
        return (
            f"{type(self).__name__}(id={self.id!r}, success={self.success!r}, "
            f"errors={self.errors!r}, created={self.created!r})"
        )
