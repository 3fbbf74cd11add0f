from .api import (
    delete,
    delete_list,
    fetch,
    save,
    save_insert,
    save_insert_list,
    save_list,
    save_update,
    save_update_list,
    save_upsert,
    update_record,
)

from ..data.query_builder import select

__all__ = [
    "delete",
    "delete_list",
    "fetch",
    "save",
    "save_insert",
    "save_insert_list",
    "save_list",
    "save_update",
    "save_update_list",
    "save_upsert",
    "update_record",
    "select",
]
